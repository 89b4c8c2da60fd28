from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import DiscountType


class CouponCreateIn(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    minimum_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    maximum_discount_amount: Optional[Decimal] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    applicable_categories: Optional[List[str]] = None
    applicable_craftsmen: Optional[List[int]] = None


class CouponUpdateIn(BaseModel):
    description: Optional[str] = None
    discount_value: Optional[Decimal] = Field(default=None, gt=0)
    minimum_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    maximum_discount_amount: Optional[Decimal] = Field(default=None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None
    applicable_categories: Optional[List[str]] = None
    applicable_craftsmen: Optional[List[int]] = None


class CouponOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    minimum_order_amount: Optional[Decimal] = None
    maximum_discount_amount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    used_count: int
    valid_from: datetime
    valid_until: datetime
    is_active: bool
    applicable_categories: Optional[List[str]] = None
    applicable_craftsmen: Optional[List[int]] = None


class CouponValidateIn(BaseModel):
    code: str
    order_amount: Decimal = Field(..., ge=0)
    categories: List[str] = Field(default_factory=list)
    craftsman_ids: List[int] = Field(default_factory=list)


class CouponValidationOut(BaseModel):
    valid: bool
    error: Optional[str] = None
    discount_amount: Decimal = Decimal("0.00")
    coupon_id: Optional[int] = None
