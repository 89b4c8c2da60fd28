from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.behavior import UserBehaviorEvent
from heritage_crafts.db.models.enums import EntityType


class BehaviorEventRepository(BaseRepository[UserBehaviorEvent]):
    model = UserBehaviorEvent

    def list_for_user_since(self, user_id: int, since: datetime) -> Sequence[UserBehaviorEvent]:
        stmt = (
            select(UserBehaviorEvent)
            .where(UserBehaviorEvent.user_id == user_id, UserBehaviorEvent.created_at >= since)
            .order_by(UserBehaviorEvent.created_at.desc())
        )
        return self.session.exec(stmt).all()

    def counts_by_entity_since(
        self, entity_type: EntityType, since: datetime, *, limit: Optional[int] = None
    ) -> List[Tuple[int, int]]:
        """(entity_id, nombre d'événements) trié par popularité décroissante."""
        stmt = (
            select(UserBehaviorEvent.entity_id, func.count(UserBehaviorEvent.id).label("n"))
            .where(
                UserBehaviorEvent.entity_type == entity_type,
                UserBehaviorEvent.entity_id.is_not(None),
                UserBehaviorEvent.created_at >= since,
            )
            .group_by(UserBehaviorEvent.entity_id)
            .order_by(func.count(UserBehaviorEvent.id).desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [(eid, n) for eid, n in self.session.exec(stmt).all()]

    def count_map_since(self, entity_type: EntityType, since: datetime) -> Dict[int, int]:
        return dict(self.counts_by_entity_since(entity_type, since))
