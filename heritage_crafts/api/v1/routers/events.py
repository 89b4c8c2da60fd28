from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_event_service, get_optional_user, pagination
from heritage_crafts.db.models.enums import EventRegistrationStatus, EventStatus, EventType
from heritage_crafts.db.models.users import User
from heritage_crafts.features.events.schemas import (
    AttendanceIn,
    EventCreateIn,
    EventDetailOut,
    EventListOut,
    EventOut,
    EventRegisterIn,
    EventRegistrationListOut,
    EventRegistrationOut,
    EventStatsOut,
    EventUpdateIn,
    FeedbackIn,
)
from heritage_crafts.features.events.services import EventService

router = APIRouter(
    prefix="/events",
    tags=["events"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Calendrier public
# -----------------------------
@router.get(
    "",
    summary="Lister les événements publics",
    description="Par défaut : inscriptions ouvertes / closes et événements en cours.",
    response_model=EventListOut,
)
def list_events(
    event_type: Optional[EventType] = Query(None),
    category: Optional[str] = Query(None),
    status_: Optional[EventStatus] = Query(None, alias="status"),
    starts_after: Optional[datetime] = Query(None),
    starts_before: Optional[datetime] = Query(None),
    min_fee: Optional[Decimal] = Query(None, ge=0),
    max_fee: Optional[Decimal] = Query(None, ge=0),
    tag: Optional[str] = Query(None),
    page=Depends(pagination),
    svc: EventService = Depends(get_event_service),
):
    return svc.list_public(
        status=status_,
        event_type=event_type,
        category=category,
        starts_after=starts_after,
        starts_before=starts_before,
        min_fee=min_fee,
        max_fee=max_fee,
        tag=tag,
        **page,
    )


@router.post("", summary="Créer un événement (brouillon)", status_code=status.HTTP_201_CREATED, response_model=EventOut)
def create_event(
    payload: EventCreateIn,
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.create(user, payload)


@router.get("/me/registrations", summary="Mes inscriptions", response_model=EventRegistrationListOut)
def my_registrations(
    status_: Optional[EventRegistrationStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.my_registrations(user, status=status_, **page)


@router.get("/me/organized", summary="Événements que j'organise", response_model=EventListOut)
def my_events(
    status_: Optional[EventStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.list_organized(user, status=status_, **page)


@router.get("/{event_id}", summary="Détail d'un événement", response_model=EventDetailOut)
def get_event(
    event_id: int = Path(..., ge=1),
    user: Optional[User] = Depends(get_optional_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.detail(event_id, user)

# -----------------------------
# Organisateur / admin
# -----------------------------
@router.patch("/{event_id}", summary="Modifier un événement", response_model=EventOut)
def update_event(
    payload: EventUpdateIn,
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.update(event_id, user, payload)


@router.post("/{event_id}/publish", summary="Publier et ouvrir les inscriptions", response_model=EventOut)
def publish_event(
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.publish(event_id, user)


@router.post("/{event_id}/cancel", summary="Annuler un événement", response_model=EventOut)
def cancel_event(
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.cancel(event_id, user)


@router.post("/{event_id}/attendance", summary="Pointer un participant", response_model=EventRegistrationOut)
def mark_attendance(
    payload: AttendanceIn,
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.mark_attendance(event_id, user, payload)


@router.get("/{event_id}/registrations", summary="Inscriptions d'un événement", response_model=EventRegistrationListOut)
def list_registrations(
    event_id: int = Path(..., ge=1),
    status_: Optional[EventRegistrationStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.list_registrations(event_id, user, status=status_, **page)


@router.get("/{event_id}/stats", summary="Statistiques d'inscription", response_model=EventStatsOut)
def event_stats(
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.stats(event_id, user)

# -----------------------------
# Participant
# -----------------------------
@router.post(
    "/{event_id}/register",
    summary="S'inscrire (liste d'attente si complet)",
    status_code=status.HTTP_201_CREATED,
    response_model=EventRegistrationOut,
)
def register(
    payload: Optional[EventRegisterIn] = None,
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.register(event_id, user, payload or EventRegisterIn())


@router.delete("/{event_id}/register", summary="Annuler mon inscription", response_model=EventRegistrationOut)
def cancel_registration(
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.cancel_registration(event_id, user)


@router.post("/{event_id}/feedback", summary="Noter un événement suivi", response_model=EventRegistrationOut)
def submit_feedback(
    payload: FeedbackIn,
    event_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: EventService = Depends(get_event_service),
):
    return svc.submit_feedback(event_id, user, payload)
