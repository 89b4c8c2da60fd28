from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import PaymentStatus


# ---------- IN ----------

class PaymentIn(BaseModel):
    order_id: int = Field(..., ge=1)
    provider: str
    amount: Decimal = Field(..., gt=0)
    payment_method_id: str = Field(..., min_length=1)


class RefundIn(BaseModel):
    amount: Optional[Decimal] = Field(default=None, gt=0)
    reason: str = Field(default="", max_length=500)


# ---------- OUT ----------

class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    provider: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    transaction_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime


class PaymentHistoryOut(BaseModel):
    order_id: int
    items: List[PaymentOut]
    paid_amount: Decimal
    refunded_amount: Decimal


class WebhookAckOut(BaseModel):
    received: bool = True
    handled: bool = False
