from fastapi import APIRouter, Depends, Path, status

from heritage_crafts.api.v1.dependencies import get_cart_service, get_current_user
from heritage_crafts.db.models.users import User
from heritage_crafts.features.cart.schemas import (
    CartItemIn,
    CartItemUpdateIn,
    CartMergeIn,
    CartSummaryOut,
    CartValidationOut,
)
from heritage_crafts.features.cart.services import CartService

router = APIRouter(
    prefix="/cart",
    tags=["cart"],
)


@router.get("", summary="Contenu de mon panier", response_model=CartSummaryOut)
def get_cart(user: User = Depends(get_current_user), svc: CartService = Depends(get_cart_service)):
    return svc.summary(user.id)


@router.post("/items", summary="Ajouter un produit au panier", response_model=CartSummaryOut)
def add_item(
    payload: CartItemIn,
    user: User = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add(user.id, payload)


@router.put("/items/{product_id}", summary="Changer la quantité (0 = retirer)", response_model=CartSummaryOut)
def update_item(
    payload: CartItemUpdateIn,
    product_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update(user.id, product_id, payload.quantity)


@router.delete("/items/{product_id}", summary="Retirer un produit du panier", response_model=CartSummaryOut)
def remove_item(
    product_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove(user.id, product_id)


@router.delete("", summary="Vider le panier", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(user: User = Depends(get_current_user), svc: CartService = Depends(get_cart_service)):
    svc.clear(user.id)
    return None


@router.get("/validate", summary="Valider le panier avant commande", response_model=CartValidationOut)
def validate_cart(user: User = Depends(get_current_user), svc: CartService = Depends(get_cart_service)):
    return svc.validate(user.id, language=user.preferred_language)


@router.post("/merge", summary="Fusionner un panier invité", response_model=CartSummaryOut)
def merge_cart(
    payload: CartMergeIn,
    user: User = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    summary, _ = svc.merge(user.id, payload.items)
    return summary
