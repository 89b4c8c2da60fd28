from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_inventory_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.inventory.schemas import (
    CleanupOut,
    InventoryAlertListOut,
    InventoryAlertOut,
    InventoryStatsOut,
    RestockReminderIn,
    ThresholdIn,
    ThresholdOut,
)
from heritage_crafts.features.inventory.services import InventoryService

router = APIRouter(
    prefix="/inventory",
    tags=["inventory"],
    responses={404: {"description": "Not Found"}},
)


@router.post("/check", summary="Analyser les stocks et créer les alertes", response_model=List[InventoryAlertOut])
def check_inventory(
    craftsman_id: Optional[int] = Query(None, ge=1, description="Admin uniquement"),
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.check(user, craftsman_id=craftsman_id)


@router.get("/alerts", summary="Lister les alertes de stock", response_model=InventoryAlertListOut)
def list_alerts(
    craftsman_id: Optional[int] = Query(None, ge=1),
    acknowledged: Optional[bool] = Query(None),
    page=Depends(pagination),
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.list(user, craftsman_id=craftsman_id, acknowledged=acknowledged, **page)


@router.get("/alerts/stats", summary="Statistiques des alertes", response_model=InventoryStatsOut)
def alert_stats(
    craftsman_id: Optional[int] = Query(None, ge=1),
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.stats(user, craftsman_id=craftsman_id)


@router.post("/alerts/{alert_id}/acknowledge", summary="Acquitter une alerte", response_model=InventoryAlertOut)
def acknowledge_alert(
    alert_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.acknowledge(alert_id, user)


@router.post(
    "/restock-reminders",
    summary="Créer un rappel de réapprovisionnement",
    status_code=status.HTTP_201_CREATED,
    response_model=InventoryAlertOut,
)
def restock_reminder(
    payload: RestockReminderIn,
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.restock_reminder(user, payload)


@router.delete("/alerts/cleanup", summary="Purger les alertes acquittées (admin)", response_model=CleanupOut)
def cleanup_alerts(
    days: int = Query(30, ge=1),
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.cleanup(user, days=days)


@router.get("/threshold", summary="Mon seuil de stock bas", response_model=ThresholdOut)
def get_threshold(user: User = Depends(get_current_user), svc: InventoryService = Depends(get_inventory_service)):
    return svc.get_threshold(user)


@router.put("/threshold", summary="Modifier mon seuil de stock bas", response_model=ThresholdOut)
def set_threshold(
    payload: ThresholdIn,
    user: User = Depends(get_current_user),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.set_threshold(user, payload.low_stock_threshold)
