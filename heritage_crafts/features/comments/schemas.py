from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import EntityType, ReportStatus


# ---------- Commentaires ----------

class CommentCreateIn(BaseModel):
    entity_type: EntityType
    entity_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[int] = Field(default=None, ge=1)


class CommentUpdateIn(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    user_name: Optional[str] = None
    content: str
    parent_id: Optional[int] = None
    like_count: int = 0
    created_at: datetime
    updated_at: datetime
    replies: List["CommentOut"] = Field(default_factory=list)


class CommentListOut(BaseModel):
    items: List[CommentOut]
    total: int


class LikeToggleOut(BaseModel):
    liked: bool
    like_count: int


# ---------- Signalements ----------

class ReportCreateIn(BaseModel):
    entity_type: EntityType
    entity_id: int = Field(..., ge=1)
    reason: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class ReportReviewIn(BaseModel):
    status: ReportStatus
    note: Optional[str] = Field(default=None, max_length=1000)


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reporter_id: int
    entity_type: EntityType
    entity_id: int
    reason: str
    description: Optional[str] = None
    status: ReportStatus
    reviewed_by: Optional[int] = None
    review_note: Optional[str] = None
    created_at: datetime


class ReportListOut(BaseModel):
    items: List[ReportOut]
