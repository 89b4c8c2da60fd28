from typing import List

from fastapi import APIRouter, Depends, Path, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_material_service
from heritage_crafts.db.models.users import User
from heritage_crafts.features.materials.schemas import (
    CourseProgressOut,
    LearningMaterialIn,
    LearningMaterialOut,
    LearningMaterialUpdateIn,
    LearningOverviewOut,
    MaterialStatsOut,
    ProgressIn,
    ProgressOut,
    ReorderIn,
)
from heritage_crafts.features.materials.services import LearningMaterialService

router = APIRouter(
    tags=["learning"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Supports d'un cours
# -----------------------------
@router.get("/courses/{course_id}/materials", summary="Supports d'un cours", response_model=List[LearningMaterialOut])
def list_materials(
    course_id: int = Path(..., ge=1),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.list_for_course(course_id)


@router.post(
    "/courses/{course_id}/materials",
    summary="Ajouter un support (artisan du cours)",
    status_code=status.HTTP_201_CREATED,
    response_model=LearningMaterialOut,
)
def create_material(
    payload: LearningMaterialIn,
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.create(course_id, user, payload)


@router.put(
    "/courses/{course_id}/materials/reorder",
    summary="Réordonner les supports",
    response_model=List[LearningMaterialOut],
)
def reorder_materials(
    payload: ReorderIn,
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.reorder(course_id, user, payload)


@router.get("/courses/{course_id}/materials/stats", summary="Statistiques des supports", response_model=MaterialStatsOut)
def material_stats(
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.stats(course_id, user)


@router.get("/courses/{course_id}/progress", summary="Ma progression dans un cours", response_model=CourseProgressOut)
def course_progress(
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.course_progress(course_id, user)

# -----------------------------
# Support individuel
# -----------------------------
@router.get("/materials/{material_id}", summary="Détail d'un support", response_model=LearningMaterialOut)
def get_material(
    material_id: int = Path(..., ge=1),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.get_entity(material_id)


@router.patch("/materials/{material_id}", summary="Modifier un support", response_model=LearningMaterialOut)
def update_material(
    payload: LearningMaterialUpdateIn,
    material_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.update(material_id, user, payload)


@router.delete("/materials/{material_id}", summary="Supprimer un support", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(
    material_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    svc.delete(material_id, user)


@router.put("/materials/{material_id}/progress", summary="Marquer ma progression", response_model=ProgressOut)
def record_progress(
    payload: ProgressIn,
    material_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.record_progress(material_id, user, payload)


@router.get("/learning/progress", summary="Ma progression sur tous mes cours", response_model=LearningOverviewOut)
def my_learning(
    user: User = Depends(get_current_user),
    svc: LearningMaterialService = Depends(get_material_service),
):
    return svc.overview(user)
