from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import String, cast
from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.enums import EventRegistrationStatus, EventStatus, EventType
from heritage_crafts.db.models.events import Event, EventRegistration


class EventRepository(BaseRepository[Event]):
    """CRUD événements + filtres du calendrier public."""
    model = Event

    def _filtered(
        self,
        stmt,
        *,
        statuses: Optional[Iterable[EventStatus]],
        public_only: bool,
        event_type: Optional[EventType],
        category: Optional[str],
        organizer_id: Optional[int],
        starts_after: Optional[datetime],
        starts_before: Optional[datetime],
        min_fee: Optional[Decimal],
        max_fee: Optional[Decimal],
        tag: Optional[str],
    ):
        if statuses:
            stmt = stmt.where(Event.status.in_(list(statuses)))
        if public_only:
            stmt = stmt.where(Event.is_public == True)  # noqa: E712
        if event_type is not None:
            stmt = stmt.where(Event.event_type == event_type)
        if category:
            stmt = stmt.where(Event.category == category)
        if organizer_id is not None:
            stmt = stmt.where(Event.organizer_id == organizer_id)
        if starts_after is not None:
            stmt = stmt.where(Event.start_datetime >= starts_after)
        if starts_before is not None:
            stmt = stmt.where(Event.start_datetime <= starts_before)
        if min_fee is not None:
            stmt = stmt.where(func.coalesce(Event.registration_fee, 0) >= min_fee)
        if max_fee is not None:
            stmt = stmt.where(func.coalesce(Event.registration_fee, 0) <= max_fee)
        if tag:
            # tags est une liste JSON : on cherche la valeur entre guillemets
            stmt = stmt.where(cast(Event.tags, String).like(f'%"{tag}"%'))
        return stmt

    def search(self, *, offset: int = 0, limit: int = 100, **filters) -> Sequence[Event]:
        stmt = self._filtered(select(Event), **filters)
        stmt = stmt.order_by(Event.start_datetime.asc(), Event.id.asc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_filtered(self, **filters) -> int:
        return self.session.exec(self._filtered(select(func.count(Event.id)), **filters)).one()


class EventRegistrationRepository(BaseRepository[EventRegistration]):
    model = EventRegistration

    def get_for_user(self, event_id: int, user_id: int) -> Optional[EventRegistration]:
        stmt = select(EventRegistration).where(
            EventRegistration.event_id == event_id,
            EventRegistration.user_id == user_id,
        )
        return self.session.exec(stmt).first()

    def count_with_status(self, event_id: int, status: EventRegistrationStatus) -> int:
        stmt = select(func.count(EventRegistration.id)).where(
            EventRegistration.event_id == event_id,
            EventRegistration.status == status,
        )
        return self.session.exec(stmt).one()

    def first_waitlisted(self, event_id: int) -> Optional[EventRegistration]:
        # liste d'attente : premier inscrit, premier promu
        stmt = (
            select(EventRegistration)
            .where(
                EventRegistration.event_id == event_id,
                EventRegistration.status == EventRegistrationStatus.WAITLISTED,
            )
            .order_by(EventRegistration.created_at.asc(), EventRegistration.id.asc())
        )
        return self.session.exec(stmt).first()

    def list_for_event(
        self,
        event_id: int,
        *,
        status: Optional[EventRegistrationStatus] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[EventRegistration]:
        stmt = select(EventRegistration).where(EventRegistration.event_id == event_id)
        if status is not None:
            stmt = stmt.where(EventRegistration.status == status)
        stmt = stmt.order_by(EventRegistration.created_at.asc(), EventRegistration.id.asc())
        return self.session.exec(stmt.offset(offset).limit(limit)).all()

    def list_for_user(
        self,
        user_id: int,
        *,
        status: Optional[EventRegistrationStatus] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[EventRegistration]:
        stmt = select(EventRegistration).where(EventRegistration.user_id == user_id)
        if status is not None:
            stmt = stmt.where(EventRegistration.status == status)
        stmt = stmt.order_by(EventRegistration.created_at.desc(), EventRegistration.id.desc())
        return self.session.exec(stmt.offset(offset).limit(limit)).all()

    def status_counts(self, event_id: int) -> Dict[EventRegistrationStatus, int]:
        stmt = (
            select(EventRegistration.status, func.count(EventRegistration.id))
            .where(EventRegistration.event_id == event_id)
            .group_by(EventRegistration.status)
        )
        return {status: n for status, n in self.session.exec(stmt).all()}

    def ratings(self, event_id: int) -> List[int]:
        stmt = select(EventRegistration.rating).where(
            EventRegistration.event_id == event_id,
            EventRegistration.rating.is_not(None),
        )
        return list(self.session.exec(stmt).all())
