from datetime import datetime
from typing import Dict, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.inventory import InventoryAlert, InventoryAlertSetting
from heritage_crafts.db.models.enums import AlertType


class InventoryAlertRepository(BaseRepository[InventoryAlert]):
    model = InventoryAlert

    def has_recent_for_product(self, product_id: int, since: datetime) -> bool:
        stmt = select(InventoryAlert.id).where(
            InventoryAlert.product_id == product_id,
            InventoryAlert.created_at >= since,
            InventoryAlert.alert_type != AlertType.RESTOCK_REMINDER,
        )
        return self.session.exec(stmt).first() is not None

    def get_open_reminder(self, product_id: int) -> Optional[InventoryAlert]:
        stmt = select(InventoryAlert).where(
            InventoryAlert.product_id == product_id,
            InventoryAlert.alert_type == AlertType.RESTOCK_REMINDER,
            InventoryAlert.is_acknowledged.is_(False),
        )
        return self.session.exec(stmt).first()

    def list_filtered(
        self,
        *,
        craftsman_id: Optional[int] = None,
        acknowledged: Optional[bool] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[InventoryAlert]:
        stmt = select(InventoryAlert)
        if craftsman_id is not None:
            stmt = stmt.where(InventoryAlert.craftsman_id == craftsman_id)
        if acknowledged is not None:
            stmt = stmt.where(InventoryAlert.is_acknowledged.is_(acknowledged))
        stmt = stmt.order_by(InventoryAlert.created_at.desc(), InventoryAlert.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def counts(self, craftsman_id: Optional[int] = None) -> Dict[str, int]:
        base = select(InventoryAlert.alert_type, InventoryAlert.is_acknowledged, func.count(InventoryAlert.id))
        if craftsman_id is not None:
            base = base.where(InventoryAlert.craftsman_id == craftsman_id)
        rows = self.session.exec(base.group_by(InventoryAlert.alert_type, InventoryAlert.is_acknowledged)).all()

        out = {"total": 0, "unacknowledged": 0}
        out.update({t.value: 0 for t in AlertType})
        for alert_type, acknowledged, n in rows:
            out["total"] += n
            out[alert_type.value] += n
            if not acknowledged:
                out["unacknowledged"] += n
        return out

    def delete_acknowledged_before(self, cutoff: datetime) -> int:
        rows = self.session.exec(
            select(InventoryAlert).where(
                InventoryAlert.is_acknowledged.is_(True),
                InventoryAlert.created_at < cutoff,
            )
        ).all()
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        return len(rows)


class InventoryAlertSettingRepository(BaseRepository[InventoryAlertSetting]):
    model = InventoryAlertSetting

    def get_for_craftsman(self, craftsman_id: int) -> Optional[InventoryAlertSetting]:
        stmt = select(InventoryAlertSetting).where(InventoryAlertSetting.craftsman_id == craftsman_id)
        return self.session.exec(stmt).first()
