from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import AlertType


class ThresholdIn(BaseModel):
    low_stock_threshold: int = Field(..., ge=0)


class RestockReminderIn(BaseModel):
    product_id: int = Field(..., ge=1)
    message: Optional[str] = Field(default=None, max_length=500)


class InventoryAlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    craftsman_id: int
    alert_type: AlertType
    threshold: int
    current_quantity: int
    message: Optional[str] = None
    is_acknowledged: bool
    created_at: datetime


class InventoryAlertListOut(BaseModel):
    items: List[InventoryAlertOut]


class InventoryStatsOut(BaseModel):
    total: int
    unacknowledged: int
    by_type: Dict[str, int]


class ThresholdOut(BaseModel):
    craftsman_id: int
    low_stock_threshold: int


class CleanupOut(BaseModel):
    deleted: int
