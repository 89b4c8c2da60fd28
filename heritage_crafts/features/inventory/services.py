"""
➡️ But : Alertes de stock (bas, épuisé, rappel de réapprovisionnement) pour les artisans.

check() parcourt les produits ACTIVE / OUT_OF_STOCK et crée au plus une alerte
par produit et par période de 24 h.
"""

from datetime import datetime, timedelta
from typing import Callable, List, Optional

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import AlertType
from heritage_crafts.db.models.inventory import InventoryAlert
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.inventory import InventoryAlertRepository, InventoryAlertSettingRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.features.inventory.schemas import (
    CleanupOut,
    InventoryAlertListOut,
    InventoryAlertOut,
    InventoryStatsOut,
    RestockReminderIn,
    ThresholdOut,
)

logger = get_logger(__name__)

ALERT_COOLDOWN = timedelta(hours=24)


class InventoryService:
    def __init__(
        self,
        *,
        repo: InventoryAlertRepository,
        setting_repo: InventoryAlertSettingRepository,
        product_repo: ProductRepository,
        craftsman_repo: CraftsmanProfileRepository,
        now_fn: Callable[[], datetime] = utcnow,
        default_threshold: int = settings.LOW_STOCK_THRESHOLD,
    ):
        self.repo = repo
        self.settings = setting_repo
        self.products = product_repo
        self.craftsmen = craftsman_repo
        self.now_fn = now_fn
        self.default_threshold = default_threshold

    # --------------- Helpers ---------------
    def _scope(self, user: User, craftsman_id: Optional[int] = None) -> Optional[int]:
        """Un artisan ne voit que ses produits ; un admin peut tout voir ou filtrer."""
        if user.is_admin:
            return craftsman_id
        profile = self.craftsmen.get_by_user(user.id)
        if not profile:
            raise ForbiddenError("A craftsman profile is required")
        return profile.id

    def threshold_for(self, craftsman_id: int) -> int:
        setting = self.settings.get_for_craftsman(craftsman_id)
        return setting.low_stock_threshold if setting else self.default_threshold

    def _get_alert(self, alert_id: int, user: User) -> InventoryAlert:
        alert = self.repo.get(alert_id)
        if not alert:
            raise NotFoundError("Alert not found")
        if not user.is_admin and self._scope(user) != alert.craftsman_id:
            raise ForbiddenError("Forbidden")
        return alert

    # --------------- Commands ---------------
    def check(self, user: User, *, craftsman_id: Optional[int] = None) -> List[InventoryAlertOut]:
        scope = self._scope(user, craftsman_id)
        since = self.now_fn() - ALERT_COOLDOWN
        thresholds = {}
        created = []

        for product in self.products.list_for_alert_check(scope):
            if self.repo.has_recent_for_product(product.id, since):
                continue
            if product.craftsman_id not in thresholds:
                thresholds[product.craftsman_id] = self.threshold_for(product.craftsman_id)
            threshold = thresholds[product.craftsman_id]

            qty = product.inventory_quantity
            if qty <= 0:
                alert_type = AlertType.OUT_OF_STOCK
            elif qty <= threshold:
                alert_type = AlertType.LOW_STOCK
            else:
                continue

            alert = self.repo.create(
                commit=False,
                product_id=product.id,
                craftsman_id=product.craftsman_id,
                alert_type=alert_type,
                threshold=threshold,
                current_quantity=qty,
                created_at=self.now_fn(),
            )
            created.append(alert)

        self.repo.session.commit()
        if created:
            logger.info("Inventory check created %s alert(s)", len(created))
        return [InventoryAlertOut.model_validate(a) for a in created]

    def acknowledge(self, alert_id: int, user: User) -> InventoryAlertOut:
        alert = self._get_alert(alert_id, user)
        if not alert.is_acknowledged:
            alert = self.repo.update(alert, is_acknowledged=True)
        return InventoryAlertOut.model_validate(alert)

    def restock_reminder(self, user: User, payload: RestockReminderIn) -> InventoryAlertOut:
        product = self.products.get(payload.product_id)
        if not product:
            raise NotFoundError("Product not found")
        if not user.is_admin and self._scope(user) != product.craftsman_id:
            raise ForbiddenError("Forbidden")
        if self.repo.get_open_reminder(product.id):
            raise ConflictError("A restock reminder already exists for this product")

        alert = self.repo.create(
            product_id=product.id,
            craftsman_id=product.craftsman_id,
            alert_type=AlertType.RESTOCK_REMINDER,
            threshold=self.threshold_for(product.craftsman_id),
            current_quantity=product.inventory_quantity,
            message=payload.message,
            created_at=self.now_fn(),
        )
        return InventoryAlertOut.model_validate(alert)

    def cleanup(self, user: User, *, days: int = 30) -> CleanupOut:
        if not user.is_admin:
            raise ForbiddenError("Forbidden")
        if days < 0:
            raise InvalidOperationError("days must be >= 0")
        deleted = self.repo.delete_acknowledged_before(self.now_fn() - timedelta(days=days))
        logger.info("Inventory cleanup removed %s acknowledged alert(s)", deleted)
        return CleanupOut(deleted=deleted)

    def set_threshold(self, user: User, value: int) -> ThresholdOut:
        if value < 0:
            raise InvalidOperationError("Threshold must be >= 0")
        profile = self.craftsmen.get_by_user(user.id)
        if not profile:
            raise ForbiddenError("A craftsman profile is required")

        setting = self.settings.get_for_craftsman(profile.id)
        if setting is None:
            setting = self.settings.create(craftsman_id=profile.id, low_stock_threshold=value)
        else:
            setting = self.settings.update(setting, low_stock_threshold=value)
        return ThresholdOut(craftsman_id=profile.id, low_stock_threshold=setting.low_stock_threshold)

    # --------------- Queries ---------------
    def list(
        self,
        user: User,
        *,
        craftsman_id: Optional[int] = None,
        acknowledged: Optional[bool] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> InventoryAlertListOut:
        scope = self._scope(user, craftsman_id)
        rows = self.repo.list_filtered(craftsman_id=scope, acknowledged=acknowledged, offset=offset, limit=limit)
        return InventoryAlertListOut(items=[InventoryAlertOut.model_validate(a) for a in rows])

    def stats(self, user: User, *, craftsman_id: Optional[int] = None) -> InventoryStatsOut:
        counts = self.repo.counts(self._scope(user, craftsman_id))
        total = counts.pop("total")
        unacknowledged = counts.pop("unacknowledged")
        return InventoryStatsOut(total=total, unacknowledged=unacknowledged, by_type=counts)

    def get_threshold(self, user: User) -> ThresholdOut:
        profile = self.craftsmen.get_by_user(user.id)
        if not profile:
            raise ForbiddenError("A craftsman profile is required")
        return ThresholdOut(craftsman_id=profile.id, low_stock_threshold=self.threshold_for(profile.id))
