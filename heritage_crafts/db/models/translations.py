from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB, utcnow


class TranslationCache(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("source_hash", "source_language", "target_language", name="uq_translation_cache_key"),
    )

    source_hash: str = Field(index=True, max_length=64)
    source_text: str
    source_language: str = Field(max_length=8)
    target_language: str = Field(max_length=8)
    translated_text: str
    provider: str
    use_count: int = Field(default=1)
    last_used: datetime = Field(default_factory=utcnow)
    expires_at: datetime
