from typing import Dict, List, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.bookings import Booking
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import BookingStatus

ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
# ouvrent l'accès aux supports de cours
ENROLLED_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


class BookingRepository(BaseRepository[Booking]):
    model = Booking

    def get_active_for_user_and_course(self, user_id: int, course_id: int) -> Optional[Booking]:
        stmt = select(Booking).where(
            Booking.user_id == user_id,
            Booking.course_id == course_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        return self.session.exec(stmt).first()

    def count_active_for_course(self, course_id: int) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.course_id == course_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        return self.session.exec(stmt).one()

    def list_for_user(
        self, user_id: int, *, status: Optional[BookingStatus] = None, offset: int = 0, limit: int = 100
    ) -> Sequence[Booking]:
        stmt = select(Booking).where(Booking.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def list_for_course(
        self, course_id: int, *, status: Optional[BookingStatus] = None, offset: int = 0, limit: int = 100
    ) -> Sequence[Booking]:
        # premier arrivé, premier servi
        stmt = select(Booking).where(Booking.course_id == course_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.created_at.asc(), Booking.id.asc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def status_counts_for_course(self, course_id: int) -> Dict[BookingStatus, int]:
        stmt = (
            select(Booking.status, func.count(Booking.id))
            .where(Booking.course_id == course_id)
            .group_by(Booking.status)
        )
        return {status: n for status, n in self.session.exec(stmt).all()}

    def count_for_craftsman(self, craftsman_id: int) -> int:
        stmt = (
            select(func.count(Booking.id))
            .join(Course, Course.id == Booking.course_id)
            .where(Course.craftsman_id == craftsman_id)
        )
        return self.session.exec(stmt).one()

    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        stmt = select(Booking.id).where(
            Booking.user_id == user_id,
            Booking.course_id == course_id,
            Booking.status.in_(ENROLLED_BOOKING_STATUSES),
        )
        return self.session.exec(stmt).first() is not None

    def enrolled_course_ids(self, user_id: int) -> List[int]:
        stmt = (
            select(Booking.course_id)
            .where(Booking.user_id == user_id, Booking.status.in_(ENROLLED_BOOKING_STATUSES))
            .distinct()
        )
        return list(self.session.exec(stmt).all())

    def count_enrolled_students(self, course_id: int) -> int:
        stmt = select(func.count(func.distinct(Booking.user_id))).where(
            Booking.course_id == course_id,
            Booking.status.in_(ENROLLED_BOOKING_STATUSES),
        )
        return self.session.exec(stmt).one()
