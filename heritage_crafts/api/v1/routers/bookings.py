from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_booking_service, get_current_user, pagination
from heritage_crafts.db.models.enums import BookingStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.features.bookings.schemas import BookingCreateIn, BookingListOut, BookingOut
from heritage_crafts.features.bookings.services import BookingService

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
    responses={404: {"description": "Not Found"}},
)


@router.post("", summary="Réserver un cours", status_code=status.HTTP_201_CREATED, response_model=BookingOut)
def create_booking(
    payload: BookingCreateIn,
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.create(user, payload)


@router.get("/me", summary="Mes réservations", response_model=BookingListOut)
def list_my_bookings(
    status_: Optional[BookingStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.list_for_user(user, status=status_, **page)


@router.get("/{booking_id}", summary="Détail d'une réservation", response_model=BookingOut)
def get_booking(
    booking_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.get(booking_id, user)

# -----------------------------
# Transitions
# -----------------------------
@router.post("/{booking_id}/cancel", summary="Annuler ma réservation", response_model=BookingOut)
def cancel_booking(
    booking_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.cancel(booking_id, user)


@router.post("/{booking_id}/confirm", summary="Confirmer une réservation (artisan)", response_model=BookingOut)
def confirm_booking(
    booking_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.confirm(booking_id, user)


@router.post("/{booking_id}/complete", summary="Marquer une réservation terminée (artisan)", response_model=BookingOut)
def complete_booking(
    booking_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: BookingService = Depends(get_booking_service),
):
    return svc.complete(booking_id, user)
