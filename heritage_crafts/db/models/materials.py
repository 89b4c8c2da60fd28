from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB
from .enums import LearningMaterialType


class LearningMaterial(BaseModelDB, table=True):
    """Support de cours (vidéo, document, pas-à-pas, quiz) ordonné par order_index."""

    course_id: int = Field(foreign_key="course.id", index=True)
    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))
    description: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    type: LearningMaterialType = Field(index=True)
    content: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    media_file_id: Optional[int] = Field(default=None, foreign_key="mediafile.id")
    order_index: int = Field(default=0, ge=0)
    is_required: bool = Field(default=True)


class LearningProgress(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "material_id", name="uq_learning_progress"),
    )

    user_id: int = Field(foreign_key="user.id", index=True)
    material_id: int = Field(foreign_key="learningmaterial.id", index=True)
    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
