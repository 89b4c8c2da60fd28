from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import ProductStatus


class Product(BaseModelDB, table=True):
    craftsman_id: int = Field(foreign_key="craftsmanprofile.id", index=True)
    name: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    description: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    price: Decimal = Field(max_digits=10, decimal_places=2)
    inventory_quantity: int = Field(default=0, ge=0)
    is_customizable: bool = Field(default=False)
    craft_category: Optional[str] = Field(default=None, index=True)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    status: ProductStatus = Field(default=ProductStatus.ACTIVE, index=True)

    average_rating: float = Field(default=0.0)
    review_count: int = Field(default=0)
