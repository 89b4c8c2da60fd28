from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import VerificationStatus


# ---------- IN / UPDATE ----------

class CraftsmanProfileCreateIn(BaseModel):
    craft_specialties: List[str] = Field(..., min_length=1, description="Ex: 手雕麻將, 竹編")
    bio: Optional[Dict[str, str]] = Field(default=None, description="Texte multilingue")
    experience_years: Optional[int] = Field(default=None, ge=0, le=100)
    workshop_location: Optional[str] = Field(default=None, max_length=200)
    contact_info: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None


class CraftsmanProfileUpdateIn(BaseModel):
    craft_specialties: Optional[List[str]] = Field(default=None, min_length=1)
    bio: Optional[Dict[str, str]] = None
    experience_years: Optional[int] = Field(default=None, ge=0, le=100)
    workshop_location: Optional[str] = Field(default=None, max_length=200)
    contact_info: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None


class VerificationIn(BaseModel):
    status: VerificationStatus


# ---------- OUT ----------

class CraftsmanProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    craft_specialties: List[str]
    bio: Optional[Dict[str, str]] = None
    experience_years: Optional[int] = None
    workshop_location: Optional[str] = None
    contact_info: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None
    verification_status: VerificationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_name: Optional[str] = None


class CraftsmanProfileListOut(BaseModel):
    items: List[CraftsmanProfileOut]
    total: int


class CraftsmanStatsOut(BaseModel):
    course_count: int
    product_count: int
    follower_count: int
    total_bookings: int
    average_product_rating: float
