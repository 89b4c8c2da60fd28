from typing import List, Optional, Sequence, Tuple

from sqlalchemy import String, cast
from sqlmodel import select, func, or_

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.enums import CourseStatus


class CourseRepository(BaseRepository[Course]):
    """CRUD cours + filtres catalogue."""
    model = Course

    def _filtered(
        self,
        stmt,
        *,
        category: Optional[str],
        craftsman_id: Optional[int],
        status: Optional[CourseStatus],
        q: Optional[str],
    ):
        if category:
            stmt = stmt.where(Course.craft_category == category)
        if craftsman_id is not None:
            stmt = stmt.where(Course.craftsman_id == craftsman_id)
        if status is not None:
            stmt = stmt.where(Course.status == status)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(
                or_(
                    cast(Course.title, String).ilike(like),
                    cast(Course.description, String).ilike(like),
                    Course.craft_category.ilike(like),
                )
            )
        return stmt

    def search(
        self,
        *,
        category: Optional[str] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[CourseStatus] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[Course]:
        stmt = self._filtered(select(Course), category=category, craftsman_id=craftsman_id, status=status, q=q)
        stmt = stmt.order_by(Course.created_at.desc(), Course.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_filtered(
        self,
        *,
        category: Optional[str] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[CourseStatus] = None,
        q: Optional[str] = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count(Course.id)), category=category, craftsman_id=craftsman_id, status=status, q=q
        )
        return self.session.exec(stmt).one()

    def list_by_categories(
        self, categories: List[str], *, status: CourseStatus = CourseStatus.ACTIVE, limit: int = 20
    ) -> Sequence[Course]:
        if not categories:
            return []
        stmt = (
            select(Course)
            .where(Course.craft_category.in_(categories), Course.status == status)
            .order_by(Course.created_at.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def list_for_craftsmen(self, craftsman_ids: List[int], *, limit: int = 20) -> Sequence[Course]:
        if not craftsman_ids:
            return []
        stmt = (
            select(Course)
            .where(Course.craftsman_id.in_(craftsman_ids), Course.status == CourseStatus.ACTIVE)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def categories_with_counts(self, *, status: CourseStatus = CourseStatus.ACTIVE) -> List[Tuple[str, int]]:
        stmt = (
            select(Course.craft_category, func.count(Course.id))
            .where(Course.status == status)
            .group_by(Course.craft_category)
            .order_by(Course.craft_category)
        )
        return [(cat, n) for cat, n in self.session.exec(stmt).all()]

    def count_for_craftsman(self, craftsman_id: int) -> int:
        return self.session.exec(select(func.count(Course.id)).where(Course.craftsman_id == craftsman_id)).one()
