from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import BehaviorEventType, EntityType


class UserBehaviorEvent(BaseModelDB, table=True):
    """Événements de navigation (vue, clic, achat…) servant aux recommandations."""

    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    event_type: BehaviorEventType = Field(index=True)
    entity_type: Optional[EntityType] = Field(default=None, index=True)
    entity_id: Optional[int] = Field(default=None, index=True)
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
