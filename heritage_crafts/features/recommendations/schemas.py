from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import BehaviorEventType, EntityType


# ---------- Suivi du comportement ----------

class BehaviorEventIn(BaseModel):
    event_type: BehaviorEventType
    entity_type: Optional[EntityType] = None
    entity_id: Optional[int] = Field(default=None, ge=1)
    details: Optional[Dict[str, Any]] = None


class BehaviorEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    event_type: BehaviorEventType
    entity_type: Optional[EntityType] = None
    entity_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


# ---------- Préférences / recommandations ----------

class PriceRangeOut(BaseModel):
    min: Decimal
    max: Decimal


class UserPreferencesOut(BaseModel):
    user_id: int
    craft_categories: List[str]
    price_range: Optional[PriceRangeOut] = None
    preferred_language: str


class RecommendationItemOut(BaseModel):
    id: int
    type: str  # craftsman | course | product
    title: str
    description: str = ""
    craft_category: Optional[str] = None
    price: Optional[Decimal] = None
    score: float
    reason: str


class RecommendationSectionOut(BaseModel):
    type: str  # personal | trending | category | popular | similar
    title: str
    reason: str
    items: List[RecommendationItemOut]


class RecommendationsOut(BaseModel):
    sections: List[RecommendationSectionOut]
