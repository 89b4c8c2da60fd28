"""
Réservations de cours.

Règles :
- un seul booking actif (PENDING / CONFIRMED) par utilisateur et par cours
- capacité = max_participants (None = illimité), seuls les bookings actifs comptent
- PENDING -> CONFIRMED (artisan) -> COMPLETED ; PENDING / CONFIRMED -> CANCELLED (apprenant)
"""

from typing import Optional

from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.bookings import Booking
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import BookingStatus, CourseStatus, NotificationType
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.bookings.schemas import (
    AvailabilityOut,
    BookingCreateIn,
    BookingListOut,
    BookingOut,
    BookingStatsOut,
)

logger = get_logger(__name__)


class BookingService:
    def __init__(
        self,
        *,
        repo: BookingRepository,
        course_repo: CourseRepository,
        craftsman_repo: CraftsmanProfileRepository,
        notification_svc: NotificationService,
    ):
        self.repo = repo
        self.courses = course_repo
        self.craftsmen = craftsman_repo
        self.notifications = notification_svc

    # --------------- Helpers ---------------
    def _get_course(self, course_id: int) -> Course:
        course = self.courses.get(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _course_owner_user_id(self, course: Course) -> Optional[int]:
        profile = self.craftsmen.get(course.craftsman_id)
        return profile.user_id if profile else None

    def _ensure_course_manager(self, course: Course, user: User) -> None:
        if user.is_admin:
            return
        if self._course_owner_user_id(course) != user.id:
            raise ForbiddenError("Only the course craftsman can manage its bookings")

    def _has_capacity(self, course: Course) -> bool:
        if course.max_participants is None:
            return True
        return self.repo.count_active_for_course(course.id) < course.max_participants

    # --------------- Commands ---------------
    def create(self, user: User, payload: BookingCreateIn) -> Booking:
        course = self._get_course(payload.course_id)
        if course.status != CourseStatus.ACTIVE:
            raise InvalidOperationError("Course is not available for booking")

        if self.repo.get_active_for_user_and_course(user.id, course.id):
            raise ConflictError("You already have an active booking for this course")

        if not self._has_capacity(course):
            raise ConflictError("Course is full")

        booking = self.repo.create(
            user_id=user.id,
            course_id=course.id,
            status=BookingStatus.PENDING,
            notes=payload.notes,
        )
        logger.info("Booking %s created: user=%s course=%s", booking.id, user.id, course.id)

        owner_id = self._course_owner_user_id(course)
        if owner_id is not None:
            self.notifications.notify(
                owner_id,
                NotificationType.NEW_BOOKING,
                title={"zh-HK": "新預約", "en": "New booking"},
                message=course.title,
                details={"booking_id": booking.id, "course_id": course.id},
            )
        return booking

    def cancel(self, booking_id: int, user: User) -> Booking:
        booking = self._get_booking(booking_id)
        if booking.user_id != user.id:
            raise ForbiddenError("You can only cancel your own bookings")
        if booking.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidOperationError(f"Cannot cancel a booking with status {booking.status.value}")

        booking = self.repo.update(booking, status=BookingStatus.CANCELLED)
        logger.info("Booking %s cancelled by user %s", booking.id, user.id)

        course = self.courses.get(booking.course_id)
        self.notifications.notify(
            booking.user_id,
            NotificationType.BOOKING_CANCELLED,
            title={"zh-HK": "預約已取消", "en": "Booking cancelled"},
            message=course.title if course else {"en": "Your booking was cancelled"},
            details={"booking_id": booking.id, "course_id": booking.course_id},
        )
        return booking

    def confirm(self, booking_id: int, user: User) -> Booking:
        booking = self._get_booking(booking_id)
        course = self._get_course(booking.course_id)
        self._ensure_course_manager(course, user)
        if booking.status != BookingStatus.PENDING:
            raise InvalidOperationError("Only pending bookings can be confirmed")

        booking = self.repo.update(booking, status=BookingStatus.CONFIRMED)
        self.notifications.notify(
            booking.user_id,
            NotificationType.BOOKING_CONFIRMED,
            title={"zh-HK": "預約已確認", "en": "Booking confirmed"},
            message=course.title,
            details={"booking_id": booking.id, "course_id": course.id},
        )
        return booking

    def complete(self, booking_id: int, user: User) -> Booking:
        booking = self._get_booking(booking_id)
        course = self._get_course(booking.course_id)
        self._ensure_course_manager(course, user)
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidOperationError("Only confirmed bookings can be completed")
        return self.repo.update(booking, status=BookingStatus.COMPLETED)

    # --------------- Queries ---------------
    def get(self, booking_id: int, user: User) -> Booking:
        booking = self._get_booking(booking_id)
        if booking.user_id != user.id:
            self._ensure_course_manager(self._get_course(booking.course_id), user)
        return booking

    def list_for_user(
        self, user: User, *, status: Optional[BookingStatus] = None, offset: int = 0, limit: int = 50
    ) -> BookingListOut:
        rows = self.repo.list_for_user(user.id, status=status, offset=offset, limit=limit)
        return BookingListOut(items=[BookingOut.model_validate(r) for r in rows])

    def list_for_course(
        self, course_id: int, user: User, *, status: Optional[BookingStatus] = None, offset: int = 0, limit: int = 100
    ) -> BookingListOut:
        course = self._get_course(course_id)
        self._ensure_course_manager(course, user)
        rows = self.repo.list_for_course(course.id, status=status, offset=offset, limit=limit)
        return BookingListOut(items=[BookingOut.model_validate(r) for r in rows])

    def availability(self, course_id: int) -> AvailabilityOut:
        course = self._get_course(course_id)
        current = self.repo.count_active_for_course(course.id)
        available = course.status == CourseStatus.ACTIVE and (
            course.max_participants is None or current < course.max_participants
        )
        return AvailabilityOut(
            available=available,
            current_bookings=current,
            max_participants=course.max_participants,
            waitlist_count=0,
        )

    def stats(self, course_id: int, user: User) -> BookingStatsOut:
        course = self._get_course(course_id)
        self._ensure_course_manager(course, user)
        counts = self.repo.status_counts_for_course(course.id)
        return BookingStatsOut(
            total=sum(counts.values()),
            pending=counts.get(BookingStatus.PENDING, 0),
            confirmed=counts.get(BookingStatus.CONFIRMED, 0),
            cancelled=counts.get(BookingStatus.CANCELLED, 0),
            completed=counts.get(BookingStatus.COMPLETED, 0),
        )
