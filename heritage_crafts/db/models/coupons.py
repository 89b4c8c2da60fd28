from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import DiscountType


class Coupon(BaseModelDB, table=True):
    code: str = Field(index=True, unique=True)
    description: Optional[str] = Field(default=None)
    discount_type: DiscountType
    discount_value: Decimal = Field(max_digits=10, decimal_places=2)
    minimum_order_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    maximum_discount_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    usage_limit: Optional[int] = Field(default=None)
    used_count: int = Field(default=0)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = Field(default=True)
    applicable_categories: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    applicable_craftsmen: Optional[List[int]] = Field(default=None, sa_column=Column(JSON))
