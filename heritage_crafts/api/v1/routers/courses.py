from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import (
    get_booking_service,
    get_course_service,
    get_current_user,
    pagination,
)
from heritage_crafts.db.models.enums import BookingStatus, CourseStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.features.bookings.schemas import AvailabilityOut, BookingListOut, BookingStatsOut
from heritage_crafts.features.bookings.services import BookingService
from heritage_crafts.features.courses.schemas import (
    CategoryCountOut,
    CourseCreateIn,
    CourseListOut,
    CourseOut,
    CourseUpdateIn,
)
from heritage_crafts.features.courses.services import CourseService

router = APIRouter(
    prefix="/courses",
    tags=["courses"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Public
# -----------------------------
@router.get("", summary="Lister les cours", response_model=CourseListOut)
def list_courses(
    category: Optional[str] = Query(None),
    craftsman_id: Optional[int] = Query(None, ge=1),
    status_: Optional[CourseStatus] = Query(CourseStatus.ACTIVE, alias="status"),
    q: Optional[str] = Query(None),
    page=Depends(pagination),
    svc: CourseService = Depends(get_course_service),
):
    return svc.list(category=category, craftsman_id=craftsman_id, status=status_, q=q, **page)


@router.get("/categories", summary="Catégories de cours avec leur nombre", response_model=List[CategoryCountOut])
def list_categories(svc: CourseService = Depends(get_course_service)):
    return svc.categories()


@router.get("/{course_id}", summary="Détail d'un cours", response_model=CourseOut)
def get_course(course_id: int = Path(..., ge=1), svc: CourseService = Depends(get_course_service)):
    return svc.get_entity(course_id)


@router.get("/{course_id}/availability", summary="Places disponibles", response_model=AvailabilityOut)
def course_availability(course_id: int = Path(..., ge=1), svc: BookingService = Depends(get_booking_service)):
    return svc.availability(course_id)

# -----------------------------
# Artisan (owner) / admin
# -----------------------------
@router.post("", summary="Créer un cours", status_code=status.HTTP_201_CREATED, response_model=CourseOut)
def create_course(
    payload: CourseCreateIn,
    user: User = Depends(get_current_user),
    svc: CourseService = Depends(get_course_service),
):
    return svc.create(user, payload)


@router.patch("/{course_id}", summary="Modifier un cours", response_model=CourseOut)
def update_course(
    payload: CourseUpdateIn,
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CourseService = Depends(get_course_service),
):
    return svc.update(course_id, user, payload)


@router.delete("/{course_id}", summary="Supprimer un cours", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CourseService = Depends(get_course_service),
):
    svc.delete(course_id, user)
    return None


@router.get("/{course_id}/bookings", summary="Réservations d'un cours", response_model=BookingListOut)
def course_bookings(
    course_id: int = Path(..., ge=1),
    status_: Optional[BookingStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.list_for_course(course_id, user, status=status_, **page)


@router.get("/{course_id}/bookings/stats", summary="Statistiques de réservation", response_model=BookingStatsOut)
def course_booking_stats(
    course_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.stats(course_id, user)
