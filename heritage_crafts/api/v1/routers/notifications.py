from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_notification_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.notifications.schemas import (
    NotificationListOut,
    NotificationOut,
    NotificationPreferencesIn,
    NotificationPreferencesOut,
)
from heritage_crafts.features.notifications.services import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Mes notifications", response_model=NotificationListOut)
def list_notifications(
    unread_only: bool = Query(False),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(get_notification_service),
):
    return svc.list_for_user(user.id, unread_only=unread_only, **page)


@router.get("/unread-count", summary="Nombre de notifications non lues")
def unread_count(user: User = Depends(get_current_user), svc: NotificationService = Depends(get_notification_service)):
    return {"unread_count": svc.unread_count(user.id)}


@router.post("/read-all", summary="Tout marquer comme lu")
def mark_all_read(user: User = Depends(get_current_user), svc: NotificationService = Depends(get_notification_service)):
    return {"updated": svc.mark_all_read(user.id)}


@router.get("/preferences", summary="Mes préférences de notification", response_model=NotificationPreferencesOut)
def get_preferences(user: User = Depends(get_current_user), svc: NotificationService = Depends(get_notification_service)):
    return svc.get_preferences(user.id)


@router.put("/preferences", summary="Modifier mes préférences", response_model=NotificationPreferencesOut)
def update_preferences(
    payload: NotificationPreferencesIn,
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(get_notification_service),
):
    return svc.update_preferences(user.id, payload)


@router.post("/{notification_id}/read", summary="Marquer comme lue", response_model=NotificationOut)
def mark_read(
    notification_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(get_notification_service),
):
    return svc.mark_read(notification_id, user_id=user.id)


@router.delete("/{notification_id}", summary="Supprimer une notification", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: NotificationService = Depends(get_notification_service),
):
    svc.delete(notification_id, user_id=user.id)
    return None
