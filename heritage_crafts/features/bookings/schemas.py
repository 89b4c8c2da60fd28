from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import BookingStatus


class BookingCreateIn(BaseModel):
    course_id: int = Field(..., ge=1)
    notes: Optional[str] = Field(default=None, max_length=1000)


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    status: BookingStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class BookingListOut(BaseModel):
    items: List[BookingOut]


class AvailabilityOut(BaseModel):
    available: bool
    current_bookings: int
    max_participants: Optional[int] = None
    waitlist_count: int = 0


class BookingStatsOut(BaseModel):
    total: int
    pending: int
    confirmed: int
    cancelled: int
    completed: int
