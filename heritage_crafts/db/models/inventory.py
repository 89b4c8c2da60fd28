from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB
from .enums import AlertType


class InventoryAlert(BaseModelDB, table=True):
    product_id: int = Field(foreign_key="product.id", index=True)
    craftsman_id: int = Field(foreign_key="craftsmanprofile.id", index=True)
    alert_type: AlertType
    threshold: int = Field(default=5)
    current_quantity: int = Field(default=0)
    message: Optional[str] = Field(default=None)
    is_acknowledged: bool = Field(default=False, index=True)


class InventoryAlertSetting(BaseModelDB, table=True):
    """Seuil de stock bas personnalisé par artisan."""

    craftsman_id: int = Field(foreign_key="craftsmanprofile.id", unique=True, index=True)
    low_stock_threshold: int = Field(default=5, ge=0)
