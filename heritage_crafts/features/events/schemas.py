from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import EventRegistrationStatus, EventStatus, EventType


# ---------- IN / UPDATE ----------

class EventCreateIn(BaseModel):
    title: Dict[str, str] = Field(..., min_length=1, description="Titre multilingue")
    description: Optional[Dict[str, str]] = None
    event_type: EventType
    category: str = Field(..., min_length=1, max_length=100)
    start_datetime: datetime
    end_datetime: datetime
    timezone: str = Field(default="Asia/Hong_Kong", max_length=64)
    location: Optional[Dict[str, Any]] = Field(default=None, description="Adresse multilingue, salle, lien en ligne...")
    max_participants: Optional[int] = Field(default=None, ge=1, le=10000)
    registration_fee: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_public: bool = True
    tags: List[str] = Field(default_factory=list)
    requirements: Optional[Dict[str, Any]] = None


class EventUpdateIn(BaseModel):
    title: Optional[Dict[str, str]] = Field(default=None, min_length=1)
    description: Optional[Dict[str, str]] = None
    event_type: Optional[EventType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    location: Optional[Dict[str, Any]] = None
    max_participants: Optional[int] = Field(default=None, ge=1, le=10000)
    registration_fee: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    status: Optional[EventStatus] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    requirements: Optional[Dict[str, Any]] = None


class EventRegisterIn(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class AttendanceIn(BaseModel):
    user_id: int = Field(..., ge=1)
    attended: bool


class FeedbackIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=2000)


# ---------- OUT ----------

class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organizer_id: int
    title: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    event_type: EventType
    category: str
    start_datetime: datetime
    end_datetime: datetime
    timezone: str
    location: Optional[Dict[str, Any]] = None
    max_participants: Optional[int] = None
    registration_fee: Optional[Decimal] = None
    status: EventStatus
    is_public: bool
    tags: List[str] = []
    requirements: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventDetailOut(EventOut):
    confirmed_count: int = 0
    waitlist_count: int = 0
    spots_left: Optional[int] = None


class EventListOut(BaseModel):
    items: List[EventOut]
    total: int


class EventRegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    user_id: int
    status: EventRegistrationStatus
    notes: Optional[str] = None
    attended_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    created_at: datetime


class EventRegistrationListOut(BaseModel):
    items: List[EventRegistrationOut]


class EventStatsOut(BaseModel):
    total_registrations: int
    confirmed: int
    waitlisted: int
    cancelled: int
    attended: int
    no_show: int
    average_rating: Optional[float] = None
    feedback_count: int
