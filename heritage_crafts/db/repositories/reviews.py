from typing import Dict, Optional, Sequence, Tuple

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.reviews import ProductReview, ReviewHelpfulVote


class ProductReviewRepository(BaseRepository[ProductReview]):
    model = ProductReview

    def get_existing(self, product_id: int, user_id: int, order_id: Optional[int]) -> Optional[ProductReview]:
        stmt = select(ProductReview).where(
            ProductReview.product_id == product_id,
            ProductReview.user_id == user_id,
        )
        if order_id is None:
            stmt = stmt.where(ProductReview.order_id.is_(None))
        else:
            stmt = stmt.where(ProductReview.order_id == order_id)
        return self.session.exec(stmt).first()

    def list_for_product(
        self,
        product_id: int,
        *,
        rating: Optional[int] = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[ProductReview]:
        stmt = select(ProductReview).where(ProductReview.product_id == product_id)
        if rating is not None:
            stmt = stmt.where(ProductReview.rating == rating)
        if sort == "helpful":
            stmt = stmt.order_by(ProductReview.helpful_count.desc(), ProductReview.created_at.desc())
        elif sort == "rating_high":
            stmt = stmt.order_by(ProductReview.rating.desc(), ProductReview.created_at.desc())
        elif sort == "rating_low":
            stmt = stmt.order_by(ProductReview.rating.asc(), ProductReview.created_at.desc())
        elif sort == "oldest":
            stmt = stmt.order_by(ProductReview.created_at.asc(), ProductReview.id.asc())
        else:
            stmt = stmt.order_by(ProductReview.created_at.desc(), ProductReview.id.desc())
        return self.session.exec(stmt.offset(offset).limit(limit)).all()

    def avg_and_count_for_product(self, product_id: int) -> Tuple[float, int]:
        stmt = select(func.avg(ProductReview.rating), func.count(ProductReview.id)).where(
            ProductReview.product_id == product_id
        )
        avg, count = self.session.exec(stmt).one()
        return (round(float(avg), 2) if avg is not None else 0.0), int(count or 0)

    def rating_distribution(self, product_id: int) -> Dict[int, int]:
        stmt = (
            select(ProductReview.rating, func.count(ProductReview.id))
            .where(ProductReview.product_id == product_id)
            .group_by(ProductReview.rating)
        )
        dist = {r: 0 for r in range(1, 6)}
        for rating, n in self.session.exec(stmt).all():
            dist[int(rating)] = n
        return dist


class ReviewHelpfulVoteRepository(BaseRepository[ReviewHelpfulVote]):
    model = ReviewHelpfulVote

    def get_vote(self, review_id: int, user_id: int) -> Optional[ReviewHelpfulVote]:
        stmt = select(ReviewHelpfulVote).where(
            ReviewHelpfulVote.review_id == review_id, ReviewHelpfulVote.user_id == user_id
        )
        return self.session.exec(stmt).first()

    def delete_for_review(self, review_id: int, *, commit: bool = True) -> None:
        for vote in self.session.exec(select(ReviewHelpfulVote).where(ReviewHelpfulVote.review_id == review_id)).all():
            self.session.delete(vote)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
