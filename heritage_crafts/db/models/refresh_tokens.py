from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field

from .base import BaseModelDB


class RefreshToken(BaseModelDB, table=True):
    """Refresh tokens émis (un par session), révocables côté serveur."""

    jti: str = Field(index=True, unique=True)
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    expires_at: datetime
    revoked_at: Optional[datetime] = Field(default=None)
    user_agent: Optional[str] = Field(default=None)
    ip: Optional[str] = Field(default=None)
