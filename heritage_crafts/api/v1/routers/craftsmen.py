from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_craftsman_service, get_current_user, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.craftsmen.schemas import (
    CraftsmanProfileCreateIn,
    CraftsmanProfileListOut,
    CraftsmanProfileOut,
    CraftsmanProfileUpdateIn,
    CraftsmanStatsOut,
    VerificationIn,
)
from heritage_crafts.features.craftsmen.services import CraftsmanService

router = APIRouter(
    prefix="/craftsmen",
    tags=["craftsmen"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Public list / search
# -----------------------------
@router.get("", summary="Lister / rechercher les artisans", response_model=CraftsmanProfileListOut)
def list_craftsmen(
    q: Optional[str] = Query(None),
    craft: Optional[str] = Query(None, description="Spécialité artisanale"),
    location: Optional[str] = Query(None),
    verified_only: bool = Query(False),
    page=Depends(pagination),
    svc: CraftsmanService = Depends(get_craftsman_service),
):
    return svc.search(q=q, craft=craft, location=location, verified_only=verified_only, **page)


@router.post(
    "",
    summary="Créer mon profil artisan",
    status_code=status.HTTP_201_CREATED,
    response_model=CraftsmanProfileOut,
)
def create_profile(
    payload: CraftsmanProfileCreateIn,
    user: User = Depends(get_current_user),
    svc: CraftsmanService = Depends(get_craftsman_service),
):
    return svc.create(user, payload)


@router.get("/me", summary="Mon profil artisan", response_model=CraftsmanProfileOut)
def get_my_profile(
    user: User = Depends(get_current_user),
    svc: CraftsmanService = Depends(get_craftsman_service),
):
    return svc.get(svc.get_for_user(user).id)


@router.get("/{profile_id}", summary="Détail d'un artisan", response_model=CraftsmanProfileOut)
def get_profile(profile_id: int = Path(..., ge=1), svc: CraftsmanService = Depends(get_craftsman_service)):
    return svc.get(profile_id)


@router.patch("/{profile_id}", summary="Modifier un profil artisan", response_model=CraftsmanProfileOut)
def update_profile(
    payload: CraftsmanProfileUpdateIn,
    profile_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CraftsmanService = Depends(get_craftsman_service),
):
    return svc.update(profile_id, user, payload)


@router.put(
    "/{profile_id}/verification",
    summary="Vérifier / rejeter un artisan (admin)",
    response_model=CraftsmanProfileOut,
)
def verify_profile(
    payload: VerificationIn,
    profile_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CraftsmanService = Depends(get_craftsman_service),
):
    return svc.verify(profile_id, user, payload.status)


@router.get("/{profile_id}/stats", summary="Statistiques d'un artisan", response_model=CraftsmanStatsOut)
def profile_stats(profile_id: int = Path(..., ge=1), svc: CraftsmanService = Depends(get_craftsman_service)):
    return svc.stats(profile_id)
