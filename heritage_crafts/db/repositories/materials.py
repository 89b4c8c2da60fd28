from typing import Dict, Iterable, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.enums import LearningMaterialType
from heritage_crafts.db.models.materials import LearningMaterial, LearningProgress


class LearningMaterialRepository(BaseRepository[LearningMaterial]):
    model = LearningMaterial

    def list_for_course(self, course_id: int) -> Sequence[LearningMaterial]:
        stmt = (
            select(LearningMaterial)
            .where(LearningMaterial.course_id == course_id)
            .order_by(LearningMaterial.order_index.asc(), LearningMaterial.id.asc())
        )
        return self.session.exec(stmt).all()

    def max_order_index(self, course_id: int) -> Optional[int]:
        stmt = select(func.max(LearningMaterial.order_index)).where(LearningMaterial.course_id == course_id)
        return self.session.exec(stmt).one()

    def type_counts(self, course_id: int) -> Dict[LearningMaterialType, int]:
        stmt = (
            select(LearningMaterial.type, func.count(LearningMaterial.id))
            .where(LearningMaterial.course_id == course_id)
            .group_by(LearningMaterial.type)
        )
        return {t: n for t, n in self.session.exec(stmt).all()}


class LearningProgressRepository(BaseRepository[LearningProgress]):
    model = LearningProgress

    def get_for_user(self, user_id: int, material_id: int) -> Optional[LearningProgress]:
        stmt = select(LearningProgress).where(
            LearningProgress.user_id == user_id,
            LearningProgress.material_id == material_id,
        )
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int, material_ids: Iterable[int]) -> Sequence[LearningProgress]:
        ids = list(material_ids)
        if not ids:
            return []
        stmt = select(LearningProgress).where(
            LearningProgress.user_id == user_id,
            LearningProgress.material_id.in_(ids),
        )
        return self.session.exec(stmt).all()

    def count_completed(self, material_ids: Iterable[int]) -> int:
        ids = list(material_ids)
        if not ids:
            return 0
        stmt = select(func.count(LearningProgress.id)).where(
            LearningProgress.material_id.in_(ids),
            LearningProgress.completed == True,  # noqa: E712
        )
        return self.session.exec(stmt).one()

    def delete_for_material(self, material_id: int, *, commit: bool = True) -> int:
        rows = self.session.exec(select(LearningProgress).where(LearningProgress.material_id == material_id)).all()
        for row in rows:
            self.session.delete(row)
        self._persist(None, commit)
        return len(rows)
