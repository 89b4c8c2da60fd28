from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import OrderStatus, PaymentStatus


class Order(BaseModelDB, table=True):
    user_id: int = Field(foreign_key="user.id", index=True)
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    coupon_code: Optional[str] = Field(default=None)
    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, index=True)
    shipping_address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    notes: Optional[str] = Field(default=None)


class OrderItem(BaseModelDB, table=True):
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    quantity: int = Field(ge=1)
    price: Decimal = Field(max_digits=10, decimal_places=2)  # prix unitaire au moment de l'achat
    customization_notes: Optional[str] = Field(default=None)
