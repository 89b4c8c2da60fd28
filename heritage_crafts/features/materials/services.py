"""
➡️ But : Supports de cours (vidéos, documents, pas-à-pas, quiz) et suivi de progression.

Seul l'artisan du cours (ou un admin) gère les supports ; la progression n'est
ouverte qu'aux apprenants ayant une réservation CONFIRMED ou COMPLETED.
"""

from typing import Any, Dict, List, Optional

from heritage_crafts.core.errors import ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import LearningMaterialType
from heritage_crafts.db.models.materials import LearningMaterial, LearningProgress
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.materials import LearningMaterialRepository, LearningProgressRepository
from heritage_crafts.db.repositories.media import MediaFileRepository
from heritage_crafts.features.materials.schemas import (
    CourseProgressOut,
    LearningMaterialIn,
    LearningMaterialUpdateIn,
    LearningOverviewOut,
    MaterialStatsOut,
    ProgressIn,
    ProgressOut,
    ReorderIn,
)

logger = get_logger(__name__)

MEDIA_MATERIAL_TYPES = (LearningMaterialType.VIDEO, LearningMaterialType.IMAGE)


def validate_material(
    *,
    title: Dict[str, str],
    type_: LearningMaterialType,
    content: Optional[Dict[str, Any]],
    media_file_id: Optional[int],
) -> None:
    """Règles de contenu par type ; lève InvalidOperationError."""
    if not any(isinstance(v, str) and v.strip() for v in title.values()):
        raise InvalidOperationError("Title must have content in at least one language")
    if type_ == LearningMaterialType.STEP_BY_STEP and not isinstance((content or {}).get("steps"), list):
        raise InvalidOperationError("Step-by-step materials must have a steps list")
    if type_ == LearningMaterialType.QUIZ and not isinstance((content or {}).get("questions"), list):
        raise InvalidOperationError("Quiz materials must have a questions list")
    if type_ in MEDIA_MATERIAL_TYPES and media_file_id is None:
        raise InvalidOperationError(f"{type_.value} materials must have a media file")


class LearningMaterialService:
    def __init__(
        self,
        *,
        repo: LearningMaterialRepository,
        progress_repo: LearningProgressRepository,
        course_repo: CourseRepository,
        craftsman_repo: CraftsmanProfileRepository,
        booking_repo: BookingRepository,
        media_repo: MediaFileRepository,
    ):
        self.repo = repo
        self.progress = progress_repo
        self.courses = course_repo
        self.craftsmen = craftsman_repo
        self.bookings = booking_repo
        self.media = media_repo

    # --------------- Helpers ---------------
    def _get_course(self, course_id: int) -> Course:
        course = self.courses.get(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_entity(self, material_id: int) -> LearningMaterial:
        material = self.repo.get(material_id)
        if not material:
            raise NotFoundError("Learning material not found")
        return material

    def _ensure_course_owner(self, course: Course, user: User) -> None:
        if user.is_admin:
            return
        profile = self.craftsmen.get_by_user(user.id)
        if not profile or profile.id != course.craftsman_id:
            raise ForbiddenError("Only the course craftsman can manage its materials")

    def _ensure_enrolled(self, course_id: int, user: User) -> None:
        if not self.bookings.is_enrolled(user.id, course_id):
            raise ForbiddenError("No confirmed booking for this course")

    def _check_media(self, media_file_id: Optional[int]) -> None:
        if media_file_id is not None and not self.media.get(media_file_id):
            raise NotFoundError("Media file not found")

    def _course_progress(self, course_id: int, user_id: int) -> CourseProgressOut:
        materials = self.repo.list_for_course(course_id)
        rows = self.progress.list_for_user(user_id, [m.id for m in materials])
        completed = sum(1 for r in rows if r.completed)
        total = len(materials)
        return CourseProgressOut(
            course_id=course_id,
            total_materials=total,
            completed_materials=completed,
            progress_percentage=round(completed * 100 / total) if total else 0,
            last_accessed_at=max((r.updated_at for r in rows), default=None),
            materials=[ProgressOut.model_validate(r) for r in rows],
        )

    # --------------- Commands ---------------
    def create(self, course_id: int, user: User, payload: LearningMaterialIn) -> LearningMaterial:
        course = self._get_course(course_id)
        self._ensure_course_owner(course, user)
        validate_material(
            title=payload.title, type_=payload.type, content=payload.content, media_file_id=payload.media_file_id
        )
        self._check_media(payload.media_file_id)

        data = payload.model_dump()
        if data["order_index"] is None:
            last = self.repo.max_order_index(course.id)
            data["order_index"] = (last if last is not None else 0) + 1
        material = self.repo.create(course_id=course.id, **data)
        logger.info("Learning material %s (%s) added to course %s", material.id, material.type.value, course.id)
        return material

    def update(self, material_id: int, user: User, payload: LearningMaterialUpdateIn) -> LearningMaterial:
        material = self.get_entity(material_id)
        self._ensure_course_owner(self._get_course(material.course_id), user)

        changes = payload.model_dump(exclude_unset=True)
        validate_material(
            title=changes.get("title") or material.title,
            type_=changes.get("type") or material.type,
            content=changes.get("content", material.content),
            media_file_id=changes.get("media_file_id", material.media_file_id),
        )
        self._check_media(changes.get("media_file_id"))
        if not changes:
            return material
        return self.repo.update(material, **changes)

    def delete(self, material_id: int, user: User) -> None:
        material = self.get_entity(material_id)
        self._ensure_course_owner(self._get_course(material.course_id), user)
        removed = self.progress.delete_for_material(material.id, commit=False)
        self.repo.delete(material)
        logger.info("Learning material %s deleted (%d progress rows)", material_id, removed)

    def reorder(self, course_id: int, user: User, payload: ReorderIn) -> List[LearningMaterial]:
        course = self._get_course(course_id)
        self._ensure_course_owner(course, user)

        materials = {m.id: m for m in self.repo.list_for_course(course.id)}
        if len(set(payload.material_ids)) != len(payload.material_ids) or set(payload.material_ids) != set(materials):
            raise InvalidOperationError("material_ids must list every material of the course exactly once")

        for position, material_id in enumerate(payload.material_ids):
            self.repo.update(materials[material_id], commit=False, order_index=position + 1)
        self.repo.session.commit()
        return list(self.repo.list_for_course(course.id))

    def record_progress(self, material_id: int, user: User, payload: ProgressIn) -> LearningProgress:
        material = self.get_entity(material_id)
        self._ensure_enrolled(material.course_id, user)

        completed_at = utcnow() if payload.completed else None
        row = self.progress.get_for_user(user.id, material.id)
        if row is None:
            return self.progress.create(
                user_id=user.id,
                material_id=material.id,
                completed=payload.completed,
                completed_at=completed_at,
                notes=payload.notes,
            )
        return self.progress.update(row, completed=payload.completed, completed_at=completed_at, notes=payload.notes)

    # --------------- Queries ---------------
    def list_for_course(self, course_id: int) -> List[LearningMaterial]:
        course = self._get_course(course_id)
        return list(self.repo.list_for_course(course.id))

    def course_progress(self, course_id: int, user: User) -> CourseProgressOut:
        course = self._get_course(course_id)
        self._ensure_enrolled(course.id, user)
        return self._course_progress(course.id, user.id)

    def overview(self, user: User) -> LearningOverviewOut:
        return LearningOverviewOut(
            courses=[self._course_progress(cid, user.id) for cid in sorted(self.bookings.enrolled_course_ids(user.id))]
        )

    def stats(self, course_id: int, user: User) -> MaterialStatsOut:
        course = self._get_course(course_id)
        self._ensure_course_owner(course, user)

        materials = self.repo.list_for_course(course.id)
        students = self.bookings.count_enrolled_students(course.id)
        completed = self.progress.count_completed(m.id for m in materials)
        possible = len(materials) * students
        return MaterialStatsOut(
            total_materials=len(materials),
            materials_by_type={t.value: n for t, n in self.repo.type_counts(course.id).items()},
            total_students=students,
            average_completion_rate=round(completed * 100 / possible, 2) if possible else 0.0,
        )
