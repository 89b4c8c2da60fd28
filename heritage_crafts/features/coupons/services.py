from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, List, Optional

from heritage_crafts.core.errors import ConflictError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.coupons import Coupon
from heritage_crafts.db.models.enums import DiscountType, UserRole
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.coupons import CouponRepository
from heritage_crafts.security.permissions import require_role
from heritage_crafts.features.coupons.schemas import (
    CouponCreateIn,
    CouponUpdateIn,
    CouponValidationOut,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")


def compute_discount(coupon: Coupon, amount: Decimal) -> Decimal:
    """Remise plafonnée par maximum_discount_amount et par le montant lui-même."""
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = amount * Decimal(coupon.discount_value) / Decimal(100)
    else:
        discount = Decimal(coupon.discount_value)
    if coupon.maximum_discount_amount is not None:
        discount = min(discount, Decimal(coupon.maximum_discount_amount))
    discount = min(discount, amount)
    return discount.quantize(CENT, rounding=ROUND_HALF_UP)


class CouponService:
    def __init__(self, *, repo: CouponRepository, now_fn: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.now_fn = now_fn

    # --------------- Admin CRUD ---------------
    def create(self, actor: User, payload: CouponCreateIn) -> Coupon:
        require_role(actor, UserRole.ADMIN)
        if payload.valid_from >= payload.valid_until:
            raise InvalidOperationError("valid_from must be before valid_until")
        if payload.discount_type == DiscountType.PERCENTAGE and payload.discount_value > 100:
            raise InvalidOperationError("Percentage discount cannot exceed 100")
        code = payload.code.strip().upper()
        if self.repo.get_by_code(code):
            raise ConflictError("Coupon code already exists")
        data = payload.model_dump()
        data["code"] = code
        coupon = self.repo.create(**data)
        logger.info("Coupon %s created by admin %s", code, actor.id)
        return coupon

    def update(self, actor: User, coupon_id: int, payload: CouponUpdateIn) -> Coupon:
        require_role(actor, UserRole.ADMIN)
        coupon = self.get(coupon_id)
        changes = payload.model_dump(exclude_unset=True)
        valid_from = changes.get("valid_from", coupon.valid_from)
        valid_until = changes.get("valid_until", coupon.valid_until)
        if valid_from >= valid_until:
            raise InvalidOperationError("valid_from must be before valid_until")
        return self.repo.update(coupon, **changes) if changes else coupon

    def delete(self, actor: User, coupon_id: int) -> None:
        require_role(actor, UserRole.ADMIN)
        self.repo.delete(self.get(coupon_id))

    def get(self, coupon_id: int) -> Coupon:
        coupon = self.repo.get(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def list(self, actor: User, *, active_only: bool = False, offset: int = 0, limit: int = 100) -> List[Coupon]:
        require_role(actor, UserRole.ADMIN)
        return list(self.repo.list_filtered(active_only=active_only, offset=offset, limit=limit))

    # --------------- Validation / application ---------------
    def validate(
        self,
        code: str,
        order_amount: Decimal,
        *,
        categories: Optional[Iterable[str]] = None,
        craftsman_ids: Optional[Iterable[int]] = None,
    ) -> CouponValidationOut:
        coupon = self.repo.get_by_code(code.strip())
        if not coupon:
            return CouponValidationOut(valid=False, error="Coupon not found")
        if not coupon.is_active:
            return CouponValidationOut(valid=False, error="Coupon is not active")

        now = self.now_fn()
        if now < coupon.valid_from or now > coupon.valid_until:
            return CouponValidationOut(valid=False, error="Coupon has expired or is not yet valid")
        if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
            return CouponValidationOut(valid=False, error="Coupon usage limit reached")
        if coupon.minimum_order_amount is not None and order_amount < coupon.minimum_order_amount:
            return CouponValidationOut(
                valid=False,
                error=f"Minimum order amount is {Decimal(coupon.minimum_order_amount).quantize(CENT)}",
            )
        if coupon.applicable_categories:
            if not set(categories or []) & set(coupon.applicable_categories):
                return CouponValidationOut(valid=False, error="Coupon not applicable to these categories")
        if coupon.applicable_craftsmen:
            if not set(craftsman_ids or []) & set(coupon.applicable_craftsmen):
                return CouponValidationOut(valid=False, error="Coupon not applicable to these craftsmen")

        return CouponValidationOut(
            valid=True,
            discount_amount=compute_discount(coupon, order_amount),
            coupon_id=coupon.id,
        )

    def apply(self, coupon_id: int, *, commit: bool = True) -> Coupon:
        coupon = self.get(coupon_id)
        return self.repo.update(coupon, commit=commit, used_count=coupon.used_count + 1)
