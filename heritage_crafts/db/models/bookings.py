from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB
from .enums import BookingStatus


class Booking(BaseModelDB, table=True):
    """Réservation d'une place dans un cours par un apprenant."""

    user_id: int = Field(foreign_key="user.id", index=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    status: BookingStatus = Field(default=BookingStatus.PENDING, index=True)
    notes: Optional[str] = Field(default=None, max_length=1000)
