from decimal import Decimal
from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB
from .enums import PaymentStatus


class Payment(BaseModelDB, table=True):
    """Trace de chaque tentative de paiement ou de remboursement (montant négatif)."""

    order_id: int = Field(foreign_key="order.id", index=True)
    provider: str
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="HKD", max_length=3)
    status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    transaction_id: Optional[str] = Field(default=None, index=True)
    failure_reason: Optional[str] = Field(default=None)
