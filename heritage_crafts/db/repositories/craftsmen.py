from typing import List, Optional, Sequence

from sqlalchemy import String, cast
from sqlmodel import select, func, or_

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.enums import VerificationStatus
from heritage_crafts.db.models.users import User


class CraftsmanProfileRepository(BaseRepository[CraftsmanProfile]):
    """CRUD profils artisans + recherche."""
    model = CraftsmanProfile

    def get_by_user(self, user_id: int) -> Optional[CraftsmanProfile]:
        stmt = select(CraftsmanProfile).where(CraftsmanProfile.user_id == user_id)
        return self.session.exec(stmt).first()

    def list_for_users(self, user_ids: List[int]) -> Sequence[CraftsmanProfile]:
        if not user_ids:
            return []
        return self.session.exec(select(CraftsmanProfile).where(CraftsmanProfile.user_id.in_(user_ids))).all()

    def _filtered(
        self,
        stmt,
        *,
        q: Optional[str],
        craft: Optional[str],
        location: Optional[str],
        status: Optional[VerificationStatus],
    ):
        stmt = stmt.join(User, User.id == CraftsmanProfile.user_id)
        if status is not None:
            stmt = stmt.where(CraftsmanProfile.verification_status == status)
        if craft:
            stmt = stmt.where(cast(CraftsmanProfile.craft_specialties, String).ilike(f"%{craft}%"))
        if location:
            stmt = stmt.where(CraftsmanProfile.workshop_location.ilike(f"%{location}%"))
        if q:
            like = f"%{q}%"
            # JSON stocké en texte (ensure_ascii=False) : un LIKE sur la colonne castée suffit
            stmt = stmt.where(
                or_(
                    User.name.ilike(like),
                    cast(CraftsmanProfile.craft_specialties, String).ilike(like),
                    cast(CraftsmanProfile.bio, String).ilike(like),
                )
            )
        return stmt

    def search(
        self,
        *,
        q: Optional[str] = None,
        craft: Optional[str] = None,
        location: Optional[str] = None,
        status: Optional[VerificationStatus] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[CraftsmanProfile]:
        stmt = self._filtered(select(CraftsmanProfile), q=q, craft=craft, location=location, status=status)
        stmt = stmt.order_by(CraftsmanProfile.created_at.desc(), CraftsmanProfile.id.desc())
        return self.session.exec(stmt.offset(offset).limit(limit)).all()

    def count_filtered(
        self,
        *,
        q: Optional[str] = None,
        craft: Optional[str] = None,
        location: Optional[str] = None,
        status: Optional[VerificationStatus] = None,
    ) -> int:
        stmt = self._filtered(select(func.count(CraftsmanProfile.id)), q=q, craft=craft, location=location, status=status)
        return self.session.exec(stmt).one()

    def list_by_status(self, status: VerificationStatus, *, limit: int = 1000) -> Sequence[CraftsmanProfile]:
        stmt = select(CraftsmanProfile).where(CraftsmanProfile.verification_status == status).limit(limit)
        return self.session.exec(stmt).all()

    def count_by_status(self, status: VerificationStatus) -> int:
        stmt = select(func.count(CraftsmanProfile.id)).where(CraftsmanProfile.verification_status == status)
        return self.session.exec(stmt).one()
