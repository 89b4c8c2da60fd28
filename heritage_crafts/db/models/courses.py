from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import CourseStatus


class Course(BaseModelDB, table=True):
    craftsman_id: int = Field(foreign_key="craftsmanprofile.id", index=True)
    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    description: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    craft_category: str = Field(index=True)
    max_participants: Optional[int] = Field(default=None, ge=1)
    duration_hours: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=2)
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    status: CourseStatus = Field(default=CourseStatus.ACTIVE, index=True)
