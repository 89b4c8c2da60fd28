from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import OrderStatus, PaymentStatus


# ---------- IN ----------

class ShippingAddressIn(BaseModel):
    recipient_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=4, max_length=30)
    address_line1: str = Field(..., min_length=1, max_length=200)
    address_line2: Optional[str] = Field(default=None, max_length=200)
    district: Optional[str] = Field(default=None, max_length=100)
    city: str = "Hong Kong"
    country: str = "HK"


class OrderFromCartIn(BaseModel):
    shipping_address: ShippingAddressIn
    notes: Optional[str] = Field(default=None, max_length=1000)
    coupon_code: Optional[str] = None


class OrderLineIn(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    customization_notes: Optional[str] = Field(default=None, max_length=500)


class OrderDirectIn(OrderFromCartIn):
    items: List[OrderLineIn] = Field(..., min_length=1)


class OrderStatusUpdateIn(BaseModel):
    status: OrderStatus


# ---------- OUT ----------

class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal
    customization_notes: Optional[str] = None


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    total_amount: Decimal
    discount_amount: Decimal = Decimal("0.00")
    coupon_code: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    shipping_address: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


class OrderListOut(BaseModel):
    items: List[OrderOut]


class OrderStatsOut(BaseModel):
    total_orders: int
    total_revenue: Decimal
    pending_orders: int
    completed_orders: int
    cancelled_orders: int
