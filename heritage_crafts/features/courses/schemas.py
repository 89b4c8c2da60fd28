from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import CourseStatus


# ---------- IN / UPDATE ----------

class CourseCreateIn(BaseModel):
    title: Dict[str, str] = Field(..., min_length=1, description="Titre multilingue")
    description: Optional[Dict[str, str]] = None
    craft_category: str = Field(..., min_length=1, max_length=100)
    max_participants: Optional[int] = Field(default=None, ge=1, le=1000)
    duration_hours: Optional[Decimal] = Field(default=None, gt=0, max_digits=6, decimal_places=2)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    images: List[str] = Field(default_factory=list)
    status: CourseStatus = CourseStatus.ACTIVE


class CourseUpdateIn(BaseModel):
    title: Optional[Dict[str, str]] = Field(default=None, min_length=1)
    description: Optional[Dict[str, str]] = None
    craft_category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    max_participants: Optional[int] = Field(default=None, ge=1, le=1000)
    duration_hours: Optional[Decimal] = Field(default=None, gt=0, max_digits=6, decimal_places=2)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    images: Optional[List[str]] = None
    status: Optional[CourseStatus] = None


# ---------- OUT ----------

class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    craftsman_id: int
    title: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    craft_category: str
    max_participants: Optional[int] = None
    duration_hours: Optional[Decimal] = None
    price: Optional[Decimal] = None
    images: List[str] = []
    status: CourseStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CourseListOut(BaseModel):
    items: List[CourseOut]
    total: int


class CategoryCountOut(BaseModel):
    category: str
    count: int
