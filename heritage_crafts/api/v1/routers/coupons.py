from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_coupon_service, get_current_user, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.coupons.schemas import (
    CouponCreateIn,
    CouponOut,
    CouponUpdateIn,
    CouponValidateIn,
    CouponValidationOut,
)
from heritage_crafts.features.coupons.services import CouponService

router = APIRouter(
    prefix="/coupons",
    tags=["coupons"],
    responses={404: {"description": "Not Found"}},
)


@router.post("/validate", summary="Vérifier un code promo", response_model=CouponValidationOut)
def validate_coupon(
    payload: CouponValidateIn,
    _: User = Depends(get_current_user),
    svc: CouponService = Depends(get_coupon_service),
):
    return svc.validate(
        payload.code,
        payload.order_amount,
        categories=payload.categories,
        craftsman_ids=payload.craftsman_ids,
    )

# -----------------------------
# Admin CRUD
# -----------------------------
@router.get("", summary="Lister les coupons (admin)", response_model=List[CouponOut])
def list_coupons(
    active_only: bool = Query(False),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: CouponService = Depends(get_coupon_service),
):
    return svc.list(user, active_only=active_only, **page)


@router.post("", summary="Créer un coupon (admin)", status_code=status.HTTP_201_CREATED, response_model=CouponOut)
def create_coupon(
    payload: CouponCreateIn,
    user: User = Depends(get_current_user),
    svc: CouponService = Depends(get_coupon_service),
):
    return svc.create(user, payload)


@router.patch("/{coupon_id}", summary="Modifier un coupon (admin)", response_model=CouponOut)
def update_coupon(
    payload: CouponUpdateIn,
    coupon_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CouponService = Depends(get_coupon_service),
):
    return svc.update(user, coupon_id, payload)


@router.delete("/{coupon_id}", summary="Supprimer un coupon (admin)", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CouponService = Depends(get_coupon_service),
):
    svc.delete(user, coupon_id)
    return None
