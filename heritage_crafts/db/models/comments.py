from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB
from .enums import EntityType, ReportStatus


class Comment(BaseModelDB, table=True):
    entity_type: EntityType = Field(index=True)
    entity_id: int = Field(index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    content: str = Field(max_length=2000)
    parent_id: Optional[int] = Field(default=None, foreign_key="comment.id", index=True)
    is_deleted: bool = Field(default=False)


class CommentLike(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_like"),
    )

    comment_id: int = Field(foreign_key="comment.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)


class Report(BaseModelDB, table=True):
    reporter_id: int = Field(foreign_key="user.id", index=True)
    entity_type: EntityType
    entity_id: int = Field(index=True)
    reason: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: ReportStatus = Field(default=ReportStatus.PENDING, index=True)
    reviewed_by: Optional[int] = Field(default=None, foreign_key="user.id")
    review_note: Optional[str] = Field(default=None)
