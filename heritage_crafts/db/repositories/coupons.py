from typing import Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.coupons import Coupon


class CouponRepository(BaseRepository[Coupon]):
    model = Coupon

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return self.session.exec(select(Coupon).where(func.upper(Coupon.code) == code.upper())).first()

    def list_filtered(self, *, active_only: bool = False, offset: int = 0, limit: int = 100) -> Sequence[Coupon]:
        stmt = select(Coupon)
        if active_only:
            stmt = stmt.where(Coupon.is_active.is_(True))
        stmt = stmt.order_by(Coupon.created_at.desc(), Coupon.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()
