from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB


class ProductReview(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("product_id", "user_id", "order_id", name="uq_review_product_user_order"),
    )

    product_id: int = Field(foreign_key="product.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    order_id: Optional[int] = Field(default=None, foreign_key="order.id")
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=200)
    comment: Optional[str] = Field(default=None, max_length=2000)
    is_verified_purchase: bool = Field(default=False)
    helpful_count: int = Field(default=0)


class ReviewHelpfulVote(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_helpful_vote"),
    )

    review_id: int = Field(foreign_key="productreview.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
