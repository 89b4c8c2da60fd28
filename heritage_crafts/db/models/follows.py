from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB


class Follow(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
    )

    follower_id: int = Field(foreign_key="user.id", index=True)
    following_id: int = Field(foreign_key="user.id", index=True)
