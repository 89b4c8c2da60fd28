from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- IN ----------

class ReviewCreateIn(BaseModel):
    product_id: int = Field(..., ge=1)
    order_id: Optional[int] = Field(default=None, ge=1)
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=200)
    comment: Optional[str] = Field(default=None, max_length=2000)


class ReviewUpdateIn(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=200)
    comment: Optional[str] = Field(default=None, max_length=2000)


# ---------- OUT ----------

class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    user_id: int
    order_id: Optional[int] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_verified_purchase: bool
    helpful_count: int
    created_at: datetime
    updated_at: datetime


class ReviewListOut(BaseModel):
    items: List[ReviewOut]


class ReviewSummaryOut(BaseModel):
    product_id: int
    average_rating: float
    review_count: int
    distribution: Dict[int, int]


class HelpfulOut(BaseModel):
    review_id: int
    helpful_count: int
