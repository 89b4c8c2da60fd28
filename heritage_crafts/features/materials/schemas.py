from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import LearningMaterialType


class LearningMaterialIn(BaseModel):
    title: Dict[str, str] = Field(..., min_length=1, description="Titre multilingue")
    description: Optional[Dict[str, str]] = None
    type: LearningMaterialType
    content: Optional[Dict[str, Any]] = Field(
        default=None, description="STEP_BY_STEP : {'steps': [...]} ; QUIZ : {'questions': [...]}"
    )
    media_file_id: Optional[int] = Field(default=None, ge=1)
    order_index: Optional[int] = Field(default=None, ge=0, description="Par défaut : à la fin du cours")
    is_required: bool = True


class LearningMaterialUpdateIn(BaseModel):
    title: Optional[Dict[str, str]] = Field(default=None, min_length=1)
    description: Optional[Dict[str, str]] = None
    type: Optional[LearningMaterialType] = None
    content: Optional[Dict[str, Any]] = None
    media_file_id: Optional[int] = Field(default=None, ge=1)
    order_index: Optional[int] = Field(default=None, ge=0)
    is_required: Optional[bool] = None


class ReorderIn(BaseModel):
    material_ids: List[int] = Field(..., min_length=1, description="Nouvel ordre complet des supports du cours")


class ProgressIn(BaseModel):
    completed: bool
    notes: Optional[str] = Field(default=None, max_length=2000)


class LearningMaterialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    type: LearningMaterialType
    content: Optional[Dict[str, Any]] = None
    media_file_id: Optional[int] = None
    order_index: int
    is_required: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material_id: int
    completed: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class CourseProgressOut(BaseModel):
    course_id: int
    total_materials: int
    completed_materials: int
    progress_percentage: int
    last_accessed_at: Optional[datetime] = None
    materials: List[ProgressOut] = []


class LearningOverviewOut(BaseModel):
    courses: List[CourseProgressOut]


class MaterialStatsOut(BaseModel):
    total_materials: int
    materials_by_type: Dict[str, int]
    total_students: int
    average_completion_rate: float
