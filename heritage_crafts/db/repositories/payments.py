from typing import Optional, Sequence

from sqlmodel import select

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.payments import Payment


class PaymentRepository(BaseRepository[Payment]):
    model = Payment

    def list_for_order(self, order_id: int) -> Sequence[Payment]:
        stmt = select(Payment).where(Payment.order_id == order_id).order_by(Payment.created_at, Payment.id)
        return self.session.exec(stmt).all()

    def get_by_transaction(self, transaction_id: str) -> Optional[Payment]:
        return self.session.exec(select(Payment).where(Payment.transaction_id == transaction_id)).first()
