"""
Avis produits : un avis par (produit, utilisateur, commande).

La note moyenne et le nombre d'avis du produit sont recalculés
après chaque création / modification / suppression.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.reviews import ProductReview
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.orders import OrderRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.reviews import ProductReviewRepository, ReviewHelpfulVoteRepository
from heritage_crafts.features.reviews.schemas import (
    HelpfulOut,
    ReviewCreateIn,
    ReviewListOut,
    ReviewOut,
    ReviewSummaryOut,
    ReviewUpdateIn,
)

logger = get_logger(__name__)

REVIEW_SORTS = ("newest", "oldest", "helpful", "rating_high", "rating_low")


class ReviewService:
    def __init__(
        self,
        *,
        repo: ProductReviewRepository,
        vote_repo: ReviewHelpfulVoteRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
    ):
        self.repo = repo
        self.votes = vote_repo
        self.products = product_repo
        self.orders = order_repo

    # --------------- Helpers ---------------
    def get_entity(self, review_id: int) -> ProductReview:
        review = self.repo.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    def _ensure_author_or_admin(self, review: ProductReview, user: User) -> None:
        if review.user_id != user.id and not user.is_admin:
            raise ForbiddenError("Forbidden")

    def _refresh_product_rating(self, product_id: int) -> None:
        product = self.products.get(product_id)
        if not product:
            return
        average, count = self.repo.avg_and_count_for_product(product_id)
        self.products.update(product, average_rating=average, review_count=count)

    # --------------- Commands ---------------
    def create(self, user: User, payload: ReviewCreateIn) -> ReviewOut:
        if not self.products.get(payload.product_id):
            raise NotFoundError("Product not found")

        verified = False
        if payload.order_id is not None:
            if not self.orders.user_has_order_with_product(user.id, payload.order_id, payload.product_id):
                raise InvalidOperationError("Order does not contain this product")
            verified = True

        if self.repo.get_existing(payload.product_id, user.id, payload.order_id):
            raise ConflictError("You have already reviewed this product")

        try:
            review = self.repo.create(
                user_id=user.id,
                is_verified_purchase=verified,
                **payload.model_dump(),
            )
        except IntegrityError:
            self.repo.session.rollback()
            raise ConflictError("You have already reviewed this product")

        self._refresh_product_rating(review.product_id)
        logger.info("Review %s created for product %s by user %s", review.id, review.product_id, user.id)
        return ReviewOut.model_validate(review)

    def update(self, review_id: int, user: User, payload: ReviewUpdateIn) -> ReviewOut:
        review = self.get_entity(review_id)
        self._ensure_author_or_admin(review, user)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if changes:
            review = self.repo.update(review, **changes)
            if "rating" in changes:
                self._refresh_product_rating(review.product_id)
        return ReviewOut.model_validate(review)

    def delete(self, review_id: int, user: User) -> None:
        review = self.get_entity(review_id)
        self._ensure_author_or_admin(review, user)
        product_id = review.product_id
        self.votes.delete_for_review(review.id, commit=False)
        self.repo.delete(review)
        self._refresh_product_rating(product_id)

    def mark_helpful(self, review_id: int, user: User) -> HelpfulOut:
        review = self.get_entity(review_id)
        if review.user_id == user.id:
            raise InvalidOperationError("You cannot vote for your own review")
        if self.votes.get_vote(review.id, user.id):
            raise ConflictError("You have already marked this review as helpful")

        self.votes.create(commit=False, review_id=review.id, user_id=user.id)
        review = self.repo.update(review, helpful_count=review.helpful_count + 1)
        return HelpfulOut(review_id=review.id, helpful_count=review.helpful_count)

    # --------------- Queries ---------------
    def get(self, review_id: int) -> ReviewOut:
        return ReviewOut.model_validate(self.get_entity(review_id))

    def list_for_product(
        self,
        product_id: int,
        *,
        rating: Optional[int] = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 50,
    ) -> ReviewListOut:
        if sort not in REVIEW_SORTS:
            raise InvalidOperationError(f"Unsupported sort: {sort}")
        rows = self.repo.list_for_product(product_id, rating=rating, sort=sort, offset=offset, limit=limit)
        return ReviewListOut(items=[ReviewOut.model_validate(r) for r in rows])

    def summary(self, product_id: int) -> ReviewSummaryOut:
        if not self.products.get(product_id):
            raise NotFoundError("Product not found")
        average, count = self.repo.avg_and_count_for_product(product_id)
        return ReviewSummaryOut(
            product_id=product_id,
            average_rating=average,
            review_count=count,
            distribution=self.repo.rating_distribution(product_id),
        )
