from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import ProductStatus


# ---------- IN / UPDATE ----------

class ProductCreateIn(BaseModel):
    name: Dict[str, str] = Field(..., min_length=1, description="Nom multilingue")
    description: Optional[Dict[str, str]] = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    inventory_quantity: int = Field(default=0, ge=0)
    is_customizable: bool = False
    craft_category: Optional[str] = Field(default=None, max_length=100)
    images: List[str] = Field(default_factory=list)


class ProductUpdateIn(BaseModel):
    name: Optional[Dict[str, str]] = Field(default=None, min_length=1)
    description: Optional[Dict[str, str]] = None
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    is_customizable: Optional[bool] = None
    craft_category: Optional[str] = Field(default=None, max_length=100)
    images: Optional[List[str]] = None
    status: Optional[ProductStatus] = None


class InventoryUpdateIn(BaseModel):
    quantity: int


# ---------- OUT ----------

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    craftsman_id: int
    name: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    price: Decimal
    inventory_quantity: int
    is_customizable: bool
    craft_category: Optional[str] = None
    images: List[str] = []
    status: ProductStatus
    average_rating: float = 0.0
    review_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductListOut(BaseModel):
    items: List[ProductOut]
    total: int
