from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_order_service, pagination
from heritage_crafts.db.models.enums import OrderStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.features.orders.schemas import (
    OrderDirectIn,
    OrderFromCartIn,
    OrderListOut,
    OrderOut,
    OrderStatsOut,
    OrderStatusUpdateIn,
)
from heritage_crafts.features.orders.services import OrderService

router = APIRouter(
    prefix="/orders",
    tags=["orders"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Création
# -----------------------------
@router.post("", summary="Commander le contenu du panier", status_code=status.HTTP_201_CREATED, response_model=OrderOut)
def create_from_cart(
    payload: OrderFromCartIn,
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.create_from_cart(user, payload)


@router.post("/direct", summary="Commande directe (sans panier)", status_code=status.HTTP_201_CREATED, response_model=OrderOut)
def create_direct(
    payload: OrderDirectIn,
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.create_direct(user, payload)

# -----------------------------
# Listes / stats
# -----------------------------
@router.get("/me", summary="Mes commandes", response_model=OrderListOut)
def list_my_orders(
    status_: Optional[OrderStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_for_user(user, status=status_, **page)


@router.get("/craftsman", summary="Commandes contenant mes produits (artisan)", response_model=OrderListOut)
def list_craftsman_orders(
    status_: Optional[OrderStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_for_craftsman(user, status=status_, **page)


@router.get("", summary="Toutes les commandes (admin)", response_model=OrderListOut)
def list_all_orders(
    status_: Optional[OrderStatus] = Query(None, alias="status"),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_all(user, status=status_, **page)


@router.get("/stats", summary="Statistiques de commandes", response_model=OrderStatsOut)
def order_stats(
    global_scope: bool = Query(False, alias="global", description="Toutes les commandes (admin)"),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.stats(user, global_scope=global_scope)

# -----------------------------
# Détail / transitions
# -----------------------------
@router.get("/{order_id}", summary="Détail d'une commande", response_model=OrderOut)
def get_order(
    order_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get(order_id, user)


@router.put("/{order_id}/status", summary="Changer le statut (artisan / admin)", response_model=OrderOut)
def update_status(
    payload: OrderStatusUpdateIn,
    order_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.update_status(order_id, user, payload.status)


@router.post("/{order_id}/cancel", summary="Annuler une commande", response_model=OrderOut)
def cancel_order(
    order_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.cancel(order_id, user)
