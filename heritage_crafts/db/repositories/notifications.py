from typing import Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.notifications import Notification, NotificationPreference


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    def list_for_user(
        self, user_id: int, *, unread_only: bool = False, offset: int = 0, limit: int = 100
    ) -> Sequence[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_unread(self, user_id: int) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        return self.session.exec(stmt).one()

    def mark_all_read(self, user_id: int) -> int:
        rows = self.list_for_user(user_id, unread_only=True, limit=10_000)
        for row in rows:
            row.is_read = True
            self.session.add(row)
        self.session.commit()
        return len(rows)


class NotificationPreferenceRepository(BaseRepository[NotificationPreference]):
    model = NotificationPreference

    def get_for_user(self, user_id: int) -> Optional[NotificationPreference]:
        stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        return self.session.exec(stmt).first()
