from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TranslateIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    source_language: str
    target_language: str


class TranslateBatchIn(BaseModel):
    texts: List[str] = Field(..., min_length=1, max_length=100)
    source_language: str
    target_language: str


class TranslateContentIn(BaseModel):
    content: Dict[str, str] = Field(..., min_length=1)
    target_languages: List[str] = Field(..., min_length=1)
    source_language: Optional[str] = None


class QualityIn(BaseModel):
    source_text: str
    translated_text: str
    source_language: str
    target_language: str


class QualityOut(BaseModel):
    score: float
    confidence: float
    needs_review: bool
    issues: List[str]


class TranslationOut(BaseModel):
    translated_text: str
    source_language: str
    target_language: str
    provider: Optional[str] = None
    cached: bool = False


class TranslateBatchOut(BaseModel):
    items: List[str]


class CacheStatsOut(BaseModel):
    total_entries: int
    expired_entries: int
    total_uses: int
    max_entries: int


class ClearExpiredOut(BaseModel):
    deleted: int
