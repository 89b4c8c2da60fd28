from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB
from .enums import EventRegistrationStatus, EventStatus, EventType


class Event(BaseModelDB, table=True):
    """Atelier, exposition ou démonstration organisé par un artisan."""

    organizer_id: int = Field(foreign_key="user.id", index=True)
    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    description: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    event_type: EventType = Field(index=True)
    category: str = Field(index=True)
    start_datetime: datetime = Field(index=True)
    end_datetime: datetime
    timezone: str = Field(default="Asia/Hong_Kong")
    location: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    max_participants: Optional[int] = Field(default=None, ge=1)
    registration_fee: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    status: EventStatus = Field(default=EventStatus.DRAFT, index=True)
    is_public: bool = Field(default=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    requirements: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))


class EventRegistration(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registration"),
    )

    event_id: int = Field(foreign_key="event.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    status: EventRegistrationStatus = Field(default=EventRegistrationStatus.PENDING, index=True)
    notes: Optional[str] = Field(default=None, max_length=1000)
    attended_at: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=2000)
