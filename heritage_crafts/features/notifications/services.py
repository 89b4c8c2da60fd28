"""
Notifications persistées (pas d'envoi e-mail / push ici).

notify() respecte les préférences de l'utilisateur : un type désactivé
n'est pas enregistré et la méthode retourne None.
"""

from typing import Any, Dict, Optional

from heritage_crafts.core.errors import ForbiddenError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import NotificationType
from heritage_crafts.db.models.notifications import Notification, NotificationPreference
from heritage_crafts.db.repositories.notifications import (
    NotificationPreferenceRepository,
    NotificationRepository,
)
from heritage_crafts.features.notifications.schemas import (
    NotificationListOut,
    NotificationOut,
    NotificationPreferencesIn,
    NotificationPreferencesOut,
)

logger = get_logger(__name__)

# Type de notification -> drapeau de préférence ; absent = toujours envoyé
PREFERENCE_FLAGS: Dict[NotificationType, str] = {
    NotificationType.NEW_FOLLOWER: "new_follower_notify",
    NotificationType.COURSE_UPDATE: "course_update_notify",
    NotificationType.COURSE_REMINDER: "course_update_notify",
    NotificationType.PRODUCT_UPDATE: "product_update_notify",
    NotificationType.BOOKING_CONFIRMED: "order_status_notify",
    NotificationType.BOOKING_CANCELLED: "order_status_notify",
    NotificationType.ORDER_STATUS_UPDATE: "order_status_notify",
    NotificationType.PAYMENT_RECEIVED: "order_status_notify",
}


class NotificationService:
    def __init__(self, *, repo: NotificationRepository, pref_repo: NotificationPreferenceRepository):
        self.repo = repo
        self.prefs = pref_repo

    # --------------- Preferences ---------------
    def _preference_row(self, user_id: int) -> Optional[NotificationPreference]:
        return self.prefs.get_for_user(user_id)

    def should_notify(self, user_id: int, type_: NotificationType) -> bool:
        flag = PREFERENCE_FLAGS.get(type_)
        if flag is None:
            return True
        pref = self._preference_row(user_id)
        return True if pref is None else bool(getattr(pref, flag))

    def get_preferences(self, user_id: int) -> NotificationPreferencesOut:
        pref = self._preference_row(user_id)
        return NotificationPreferencesOut.model_validate(pref) if pref else NotificationPreferencesOut()

    def update_preferences(self, user_id: int, payload: NotificationPreferencesIn) -> NotificationPreferencesOut:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        pref = self._preference_row(user_id)
        if pref is None:
            pref = self.prefs.create(user_id=user_id, **changes)
        elif changes:
            pref = self.prefs.update(pref, **changes)
        return NotificationPreferencesOut.model_validate(pref)

    # --------------- Commands ---------------
    def notify(
        self,
        user_id: int,
        type_: NotificationType,
        *,
        title: Dict[str, str],
        message: Dict[str, str],
        details: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> Optional[Notification]:
        if not self.should_notify(user_id, type_):
            logger.debug("Notification %s suppressed for user %s", type_.value, user_id)
            return None
        return self.repo.create(
            commit=commit,
            user_id=user_id,
            type=type_,
            title=title,
            message=message,
            details=details,
        )

    def _get_owned(self, notification_id: int, user_id: int) -> Notification:
        notif = self.repo.get(notification_id)
        if not notif:
            raise NotFoundError("Notification not found")
        if notif.user_id != user_id:
            raise ForbiddenError("Forbidden")
        return notif

    def mark_read(self, notification_id: int, *, user_id: int) -> Notification:
        notif = self._get_owned(notification_id, user_id)
        if notif.is_read:
            return notif
        return self.repo.update(notif, is_read=True)

    def mark_all_read(self, user_id: int) -> int:
        return self.repo.mark_all_read(user_id)

    def delete(self, notification_id: int, *, user_id: int) -> None:
        self.repo.delete(self._get_owned(notification_id, user_id))

    # --------------- Queries ---------------
    def list_for_user(
        self, user_id: int, *, unread_only: bool = False, offset: int = 0, limit: int = 50
    ) -> NotificationListOut:
        rows = self.repo.list_for_user(user_id, unread_only=unread_only, offset=offset, limit=limit)
        return NotificationListOut(
            items=[NotificationOut.model_validate(r) for r in rows],
            unread_count=self.repo.count_unread(user_id),
        )

    def unread_count(self, user_id: int) -> int:
        return self.repo.count_unread(user_id)
