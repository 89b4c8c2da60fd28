from typing import List, Optional

from heritage_crafts.core.errors import ConflictError, ForbiddenError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import CourseStatus, NotificationType
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.follows import FollowRepository
from heritage_crafts.features.craftsmen.services import CraftsmanService
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.courses.schemas import (
    CategoryCountOut,
    CourseCreateIn,
    CourseListOut,
    CourseOut,
    CourseUpdateIn,
)

logger = get_logger(__name__)


class CourseService:
    def __init__(
        self,
        *,
        repo: CourseRepository,
        booking_repo: BookingRepository,
        follow_repo: FollowRepository,
        craftsman_svc: CraftsmanService,
        notification_svc: NotificationService,
    ):
        self.repo = repo
        self.bookings = booking_repo
        self.follows = follow_repo
        self.craftsmen = craftsman_svc
        self.notifications = notification_svc

    # --------------- Helpers ---------------
    def get_entity(self, course_id: int) -> Course:
        course = self.repo.get(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _ensure_owner_or_admin(self, course: Course, user: User) -> None:
        if user.is_admin:
            return
        profile = self.craftsmen.repo.get_by_user(user.id)
        if not profile or profile.id != course.craftsman_id:
            raise ForbiddenError("Forbidden")

    def _notify_followers(self, course: Course) -> None:
        profile = self.craftsmen.get_entity(course.craftsman_id)
        for follower in self.follows.list_followers(profile.user_id, limit=10_000):
            self.notifications.notify(
                follower.id,
                NotificationType.COURSE_UPDATE,
                title={"zh-HK": "新課程", "en": "New course"},
                message=course.title,
                details={"course_id": course.id},
            )

    # --------------- Commands ---------------
    def create(self, user: User, payload: CourseCreateIn) -> Course:
        profile = self.craftsmen.get_for_user(user)
        course = self.repo.create(craftsman_id=profile.id, **payload.model_dump())
        logger.info("Course %s created by craftsman %s", course.id, profile.id)
        if course.status == CourseStatus.ACTIVE:
            self._notify_followers(course)
        return course

    def update(self, course_id: int, user: User, payload: CourseUpdateIn) -> Course:
        course = self.get_entity(course_id)
        self._ensure_owner_or_admin(course, user)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            return course
        return self.repo.update(course, **changes)

    def delete(self, course_id: int, user: User) -> None:
        """Retrait (INACTIVE) : les réservations passées et les commentaires gardent leur cours."""
        course = self.get_entity(course_id)
        self._ensure_owner_or_admin(course, user)
        if self.bookings.count_active_for_course(course.id) > 0:
            raise ConflictError("Cannot delete a course with active bookings")
        self.repo.update(course, status=CourseStatus.INACTIVE)
        logger.info("Course %s withdrawn by user %s", course_id, user.id)

    # --------------- Queries ---------------
    def list(
        self,
        *,
        category: Optional[str] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[CourseStatus] = CourseStatus.ACTIVE,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> CourseListOut:
        rows = self.repo.search(
            category=category, craftsman_id=craftsman_id, status=status, q=q, offset=offset, limit=limit
        )
        total = self.repo.count_filtered(category=category, craftsman_id=craftsman_id, status=status, q=q)
        return CourseListOut(items=[CourseOut.model_validate(r) for r in rows], total=total)

    def categories(self) -> List[CategoryCountOut]:
        return [CategoryCountOut(category=c, count=n) for c, n in self.repo.categories_with_counts()]
