"""
➡️ But : Calendrier des ateliers / événements et inscriptions.

🔹 Règles :

Un événement est créé en DRAFT, publish() ouvre les inscriptions (REGISTRATION_OPEN).

Une inscription est CONFIRMED tant qu'il reste des places, WAITLISTED sinon ;
une annulation confirmée promeut la plus ancienne inscription en liste d'attente.

Seuls les participants marqués ATTENDED peuvent laisser un avis (note 1 à 5).
"""

from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional

from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import EventRegistrationStatus, EventStatus, NotificationType
from heritage_crafts.db.models.events import Event, EventRegistration
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.events import EventRegistrationRepository, EventRepository
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
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.security.permissions import Permission, require_permission

logger = get_logger(__name__)

# visibles dans le calendrier public
PUBLIC_EVENT_STATUSES = (
    EventStatus.REGISTRATION_OPEN,
    EventStatus.REGISTRATION_CLOSED,
    EventStatus.IN_PROGRESS,
)

EVENT_TRANSITIONS: Dict[EventStatus, FrozenSet[EventStatus]] = {
    EventStatus.DRAFT: frozenset({EventStatus.PUBLISHED, EventStatus.REGISTRATION_OPEN, EventStatus.CANCELLED}),
    EventStatus.PUBLISHED: frozenset({EventStatus.DRAFT, EventStatus.REGISTRATION_OPEN, EventStatus.CANCELLED}),
    EventStatus.REGISTRATION_OPEN: frozenset(
        {EventStatus.REGISTRATION_CLOSED, EventStatus.IN_PROGRESS, EventStatus.CANCELLED}
    ),
    EventStatus.REGISTRATION_CLOSED: frozenset(
        {EventStatus.REGISTRATION_OPEN, EventStatus.IN_PROGRESS, EventStatus.CANCELLED}
    ),
    EventStatus.IN_PROGRESS: frozenset({EventStatus.COMPLETED}),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}

# une inscription encore "vivante" bloque une nouvelle inscription
LIVE_REGISTRATION_STATUSES = (
    EventRegistrationStatus.PENDING,
    EventRegistrationStatus.CONFIRMED,
    EventRegistrationStatus.WAITLISTED,
    EventRegistrationStatus.ATTENDED,
    EventRegistrationStatus.NO_SHOW,
)

# libérées quand l'événement est annulé
OPEN_REGISTRATION_STATUSES = (
    EventRegistrationStatus.PENDING,
    EventRegistrationStatus.CONFIRMED,
    EventRegistrationStatus.WAITLISTED,
)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Les dates avec fuseau sont ramenées en UTC naïf, comme les colonnes de la base."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class EventService:
    def __init__(
        self,
        *,
        repo: EventRepository,
        registration_repo: EventRegistrationRepository,
        notification_svc: NotificationService,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.registrations = registration_repo
        self.notifications = notification_svc
        self.now_fn = now_fn

    # --------------- Helpers ---------------
    def get_entity(self, event_id: int) -> Event:
        event = self.repo.get(event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    def _ensure_organizer(self, event: Event, user: User) -> None:
        if user.is_admin or event.organizer_id == user.id:
            return
        raise ForbiddenError("Only the organizer can manage this event")

    def _is_visible(self, event: Event, user: Optional[User]) -> bool:
        if user is not None and (user.is_admin or event.organizer_id == user.id):
            return True
        return event.is_public and event.status not in (EventStatus.DRAFT, EventStatus.PUBLISHED)

    def _get_registration(self, event_id: int, user_id: int) -> EventRegistration:
        registration = self.registrations.get_for_user(event_id, user_id)
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    def _check_dates(self, start: datetime, end: datetime, *, future_start: bool) -> None:
        if start >= end:
            raise InvalidOperationError("start_datetime must be before end_datetime")
        if future_start and start <= self.now_fn():
            raise InvalidOperationError("Event cannot start in the past")

    def _check_transition(self, event: Event, target: EventStatus) -> None:
        if target == event.status:
            return
        if target not in EVENT_TRANSITIONS[event.status]:
            raise InvalidOperationError(f"Cannot move event from {event.status.value} to {target.value}")

    def _notify_registrant(self, registration: EventRegistration, event: Event, title: Dict[str, str]) -> None:
        self.notifications.notify(
            registration.user_id,
            NotificationType.ACTIVITY_UPDATE,
            title=title,
            message=event.title,
            details={"event_id": event.id, "registration_id": registration.id},
        )

    # --------------- Commands ---------------
    def create(self, user: User, payload: EventCreateIn) -> Event:
        require_permission(user, Permission.CREATE_EVENT)
        data = payload.model_dump()
        data["start_datetime"] = to_naive_utc(payload.start_datetime)
        data["end_datetime"] = to_naive_utc(payload.end_datetime)
        self._check_dates(data["start_datetime"], data["end_datetime"], future_start=True)

        event = self.repo.create(organizer_id=user.id, status=EventStatus.DRAFT, **data)
        logger.info("Event %s created by user %s", event.id, user.id)
        return event

    def update(self, event_id: int, user: User, payload: EventUpdateIn) -> Event:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)

        changes = payload.model_dump(exclude_unset=True)
        if (
            event.status not in (EventStatus.DRAFT, EventStatus.PUBLISHED)
            and self.registrations.count_with_status(event.id, EventRegistrationStatus.CONFIRMED) > 0
            and set(changes) - {"status"}
        ):
            raise InvalidOperationError("Cannot modify an event that already has confirmed registrations")

        for key in ("start_datetime", "end_datetime"):
            if key in changes:
                changes[key] = to_naive_utc(changes[key])
        if "start_datetime" in changes or "end_datetime" in changes:
            self._check_dates(
                changes.get("start_datetime", event.start_datetime),
                changes.get("end_datetime", event.end_datetime),
                future_start="start_datetime" in changes,
            )
        if "status" in changes:
            if changes["status"] == EventStatus.CANCELLED:
                changes.pop("status")
                if changes:
                    event = self.repo.update(event, **changes)
                return self.cancel(event.id, user)
            self._check_transition(event, changes["status"])

        if not changes:
            return event
        return self.repo.update(event, **changes)

    def publish(self, event_id: int, user: User) -> Event:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)
        if event.status not in (EventStatus.DRAFT, EventStatus.PUBLISHED):
            raise InvalidOperationError("Only draft events can be published")
        if event.start_datetime <= self.now_fn():
            raise InvalidOperationError("Event cannot start in the past")

        event = self.repo.update(event, status=EventStatus.REGISTRATION_OPEN)
        logger.info("Event %s published", event.id)
        return event

    def cancel(self, event_id: int, user: User) -> Event:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)
        self._check_transition(event, EventStatus.CANCELLED)

        affected = [
            r
            for r in self.registrations.list_for_event(event.id, limit=100_000)
            if r.status in OPEN_REGISTRATION_STATUSES
        ]
        for registration in affected:
            self.registrations.update(registration, commit=False, status=EventRegistrationStatus.CANCELLED)
        event = self.repo.update(event, status=EventStatus.CANCELLED)
        logger.info("Event %s cancelled (%d registrations released)", event.id, len(affected))

        for registration in affected:
            self._notify_registrant(registration, event, {"zh-HK": "活動已取消", "en": "Event cancelled"})
        return event

    def register(self, event_id: int, user: User, payload: EventRegisterIn) -> EventRegistration:
        require_permission(user, Permission.REGISTER_EVENTS)
        event = self.get_entity(event_id)
        if event.status != EventStatus.REGISTRATION_OPEN:
            raise InvalidOperationError("Event is not open for registration")

        existing = self.registrations.get_for_user(event.id, user.id)
        if existing and existing.status in LIVE_REGISTRATION_STATUSES:
            raise ConflictError("You are already registered for this event")

        confirmed = self.registrations.count_with_status(event.id, EventRegistrationStatus.CONFIRMED)
        full = event.max_participants is not None and confirmed >= event.max_participants
        status = EventRegistrationStatus.WAITLISTED if full else EventRegistrationStatus.CONFIRMED

        if existing:
            # la contrainte (event, user) est unique : on réactive l'inscription annulée,
            # en fin de liste d'attente
            registration = self.registrations.update(
                existing, status=status, notes=payload.notes, attended_at=None, created_at=self.now_fn()
            )
        else:
            registration = self.registrations.create(
                event_id=event.id, user_id=user.id, status=status, notes=payload.notes
            )
        logger.info("User %s registered to event %s (%s)", user.id, event.id, status.value)

        if event.organizer_id != user.id:
            self.notifications.notify(
                event.organizer_id,
                NotificationType.ACTIVITY_UPDATE,
                title={"zh-HK": "新活動報名", "en": "New event registration"},
                message=event.title,
                details={"event_id": event.id, "registration_id": registration.id, "status": status.value},
            )
        return registration

    def cancel_registration(self, event_id: int, user: User) -> EventRegistration:
        event = self.get_entity(event_id)
        registration = self._get_registration(event.id, user.id)
        if registration.status == EventRegistrationStatus.CANCELLED:
            raise InvalidOperationError("Registration is already cancelled")
        if registration.status in (EventRegistrationStatus.ATTENDED, EventRegistrationStatus.NO_SHOW):
            raise InvalidOperationError("Cannot cancel a registration after the event")

        was_confirmed = registration.status == EventRegistrationStatus.CONFIRMED
        self.registrations.update(registration, commit=False, status=EventRegistrationStatus.CANCELLED)
        promoted = self.registrations.first_waitlisted(event.id) if was_confirmed else None
        if promoted is not None:
            self.registrations.update(promoted, commit=False, status=EventRegistrationStatus.CONFIRMED)
        self.registrations.session.commit()
        self.registrations.session.refresh(registration)
        logger.info("User %s cancelled registration to event %s", user.id, event.id)

        if promoted is not None:
            logger.info("Registration %s promoted from the waitlist", promoted.id)
            self._notify_registrant(promoted, event, {"zh-HK": "已由候補轉為正式報名", "en": "Your spot is confirmed"})
        return registration

    def mark_attendance(self, event_id: int, user: User, payload: AttendanceIn) -> EventRegistration:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)
        registration = self._get_registration(event.id, payload.user_id)
        if registration.status not in (
            EventRegistrationStatus.CONFIRMED,
            EventRegistrationStatus.ATTENDED,
            EventRegistrationStatus.NO_SHOW,
        ):
            raise InvalidOperationError("Only confirmed participants can be checked in")

        if payload.attended:
            return self.registrations.update(
                registration, status=EventRegistrationStatus.ATTENDED, attended_at=self.now_fn()
            )
        return self.registrations.update(registration, status=EventRegistrationStatus.NO_SHOW, attended_at=None)

    def submit_feedback(self, event_id: int, user: User, payload: FeedbackIn) -> EventRegistration:
        event = self.get_entity(event_id)
        registration = self._get_registration(event.id, user.id)
        if registration.status != EventRegistrationStatus.ATTENDED:
            raise InvalidOperationError("Only attendees can leave feedback")
        return self.registrations.update(registration, rating=payload.rating, feedback=payload.feedback)

    # --------------- Queries ---------------
    def detail(self, event_id: int, user: Optional[User]) -> EventDetailOut:
        event = self.get_entity(event_id)
        if not self._is_visible(event, user):
            raise NotFoundError("Event not found")
        counts = self.registrations.status_counts(event.id)
        confirmed = counts.get(EventRegistrationStatus.CONFIRMED, 0)
        spots_left = None
        if event.max_participants is not None:
            spots_left = max(event.max_participants - confirmed, 0)
        return EventDetailOut(
            **EventOut.model_validate(event).model_dump(),
            confirmed_count=confirmed,
            waitlist_count=counts.get(EventRegistrationStatus.WAITLISTED, 0),
            spots_left=spots_left,
        )

    def list_public(
        self, *, status: Optional[EventStatus] = None, offset: int = 0, limit: int = 20, **filters
    ) -> EventListOut:
        for key in ("starts_after", "starts_before"):
            filters[key] = to_naive_utc(filters.get(key))
        query = dict(
            statuses=[status] if status is not None else PUBLIC_EVENT_STATUSES,
            public_only=True,
            organizer_id=None,
            **filters,
        )
        rows = self.repo.search(offset=offset, limit=limit, **query)
        return EventListOut(items=[EventOut.model_validate(e) for e in rows], total=self.repo.count_filtered(**query))

    def list_organized(
        self, user: User, *, status: Optional[EventStatus] = None, offset: int = 0, limit: int = 20
    ) -> EventListOut:
        query = dict(
            statuses=[status] if status is not None else None,
            public_only=False,
            event_type=None,
            category=None,
            organizer_id=user.id,
            starts_after=None,
            starts_before=None,
            min_fee=None,
            max_fee=None,
            tag=None,
        )
        rows = self.repo.search(offset=offset, limit=limit, **query)
        return EventListOut(items=[EventOut.model_validate(e) for e in rows], total=self.repo.count_filtered(**query))

    def list_registrations(
        self,
        event_id: int,
        user: User,
        *,
        status: Optional[EventRegistrationStatus] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> EventRegistrationListOut:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)
        rows = self.registrations.list_for_event(event.id, status=status, offset=offset, limit=limit)
        return EventRegistrationListOut(items=[EventRegistrationOut.model_validate(r) for r in rows])

    def my_registrations(
        self, user: User, *, status: Optional[EventRegistrationStatus] = None, offset: int = 0, limit: int = 50
    ) -> EventRegistrationListOut:
        rows = self.registrations.list_for_user(user.id, status=status, offset=offset, limit=limit)
        return EventRegistrationListOut(items=[EventRegistrationOut.model_validate(r) for r in rows])

    def stats(self, event_id: int, user: User) -> EventStatsOut:
        event = self.get_entity(event_id)
        self._ensure_organizer(event, user)
        counts = self.registrations.status_counts(event.id)
        ratings = self.registrations.ratings(event.id)
        return EventStatsOut(
            total_registrations=sum(counts.values()),
            confirmed=counts.get(EventRegistrationStatus.CONFIRMED, 0),
            waitlisted=counts.get(EventRegistrationStatus.WAITLISTED, 0),
            cancelled=counts.get(EventRegistrationStatus.CANCELLED, 0),
            attended=counts.get(EventRegistrationStatus.ATTENDED, 0),
            no_show=counts.get(EventRegistrationStatus.NO_SHOW, 0),
            average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
            feedback_count=len(ratings),
        )
