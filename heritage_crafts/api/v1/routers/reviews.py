from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_review_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.reviews.schemas import (
    HelpfulOut,
    ReviewCreateIn,
    ReviewListOut,
    ReviewOut,
    ReviewSummaryOut,
    ReviewUpdateIn,
)
from heritage_crafts.features.reviews.services import ReviewService

router = APIRouter(
    prefix="/reviews",
    tags=["reviews"],
    responses={404: {"description": "Not Found"}},
)


@router.get("/products/{product_id}", summary="Avis d'un produit", response_model=ReviewListOut)
def list_product_reviews(
    product_id: int = Path(..., ge=1),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort: str = Query("newest", description="newest | oldest | helpful | rating_high | rating_low"),
    page=Depends(pagination),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_for_product(product_id, rating=rating, sort=sort, **page)


@router.get("/products/{product_id}/summary", summary="Résumé des notes d'un produit", response_model=ReviewSummaryOut)
def product_review_summary(product_id: int = Path(..., ge=1), svc: ReviewService = Depends(get_review_service)):
    return svc.summary(product_id)


@router.post("", summary="Publier un avis", status_code=status.HTTP_201_CREATED, response_model=ReviewOut)
def create_review(
    payload: ReviewCreateIn,
    user: User = Depends(get_current_user),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.create(user, payload)


@router.get("/{review_id}", summary="Détail d'un avis", response_model=ReviewOut)
def get_review(review_id: int = Path(..., ge=1), svc: ReviewService = Depends(get_review_service)):
    return svc.get(review_id)


@router.patch("/{review_id}", summary="Modifier un avis", response_model=ReviewOut)
def update_review(
    payload: ReviewUpdateIn,
    review_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.update(review_id, user, payload)


@router.delete("/{review_id}", summary="Supprimer un avis", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ReviewService = Depends(get_review_service),
):
    svc.delete(review_id, user)
    return None


@router.post("/{review_id}/helpful", summary="Marquer un avis comme utile", response_model=HelpfulOut)
def mark_helpful(
    review_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.mark_helpful(review_id, user)
