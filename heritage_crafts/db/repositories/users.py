from typing import Optional, Sequence

from sqlmodel import select, func, or_

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.users import User
from heritage_crafts.db.models.enums import UserRole


class UserRepository(BaseRepository[User]):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return self.session.exec(stmt).first()

    def _filtered(self, stmt, *, role: Optional[UserRole], q: Optional[str]):
        if role is not None:
            stmt = stmt.where(User.role == role)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(or_(User.email.ilike(like), User.name.ilike(like)))
        return stmt

    def search(
        self,
        *,
        role: Optional[UserRole] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[User]:
        stmt = self._filtered(select(User), role=role, q=q)
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_filtered(self, *, role: Optional[UserRole] = None, q: Optional[str] = None) -> int:
        stmt = self._filtered(select(func.count(User.id)), role=role, q=q)
        return self.session.exec(stmt).one()

    def count_by_role(self) -> dict:
        rows = self.session.exec(select(User.role, func.count(User.id)).group_by(User.role)).all()
        return {role.value if hasattr(role, "value") else role: n for role, n in rows}
