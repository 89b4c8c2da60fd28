from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field

from heritage_crafts.db.models.enums import ProductStatus


class CartItemIn(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(default=1)


class CartItemUpdateIn(BaseModel):
    quantity: int = Field(..., ge=0)


class CartMergeIn(BaseModel):
    items: List[CartItemIn]


class CartLineOut(BaseModel):
    product_id: int
    name: Dict[str, str]
    price: Decimal
    quantity: int
    subtotal: Decimal
    status: ProductStatus
    available_quantity: int


class CartSummaryOut(BaseModel):
    items: List[CartLineOut]
    total_items: int
    total_amount: Decimal


class CartValidationOut(BaseModel):
    valid: bool
    errors: List[str]
