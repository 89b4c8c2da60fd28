from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.orders import Order, OrderItem
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.enums import OrderStatus, PaymentStatus


class OrderRepository(BaseRepository[Order]):
    model = Order

    def list_for_user(
        self, user_id: int, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 100
    ) -> Sequence[Order]:
        stmt = select(Order).where(Order.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def list_for_craftsman(
        self, craftsman_id: int, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 100
    ) -> Sequence[Order]:
        sub = (
            select(OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Product.craftsman_id == craftsman_id)
        )
        stmt = select(Order).where(Order.id.in_(sub))
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def list_all(self, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 100) -> Sequence[Order]:
        stmt = select(Order)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def _scoped(self, stmt, user_id: Optional[int]):
        return stmt.where(Order.user_id == user_id) if user_id is not None else stmt

    def status_counts(self, user_id: Optional[int] = None) -> Dict[OrderStatus, int]:
        stmt = self._scoped(select(Order.status, func.count(Order.id)).group_by(Order.status), user_id)
        return {status: n for status, n in self.session.exec(stmt).all()}

    def revenue(self, user_id: Optional[int] = None) -> Decimal:
        """Chiffre d'affaires : commandes livrées ET payées."""
        stmt = self._scoped(
            select(func.coalesce(func.sum(Order.total_amount), 0)).where(
                Order.status == OrderStatus.DELIVERED,
                Order.payment_status == PaymentStatus.COMPLETED,
            ),
            user_id,
        )
        return Decimal(str(self.session.exec(stmt).one())).quantize(Decimal("0.01"))

    def has_pending_for_product(self, product_id: int) -> bool:
        stmt = (
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                OrderItem.product_id == product_id,
                Order.status.in_((OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)),
            )
        )
        return self.session.exec(stmt).first() is not None

    def user_has_order_with_product(self, user_id: int, order_id: int, product_id: int) -> bool:
        stmt = (
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.id == order_id, Order.user_id == user_id, OrderItem.product_id == product_id)
        )
        return self.session.exec(stmt).first() is not None


class OrderItemRepository(BaseRepository[OrderItem]):
    model = OrderItem

    def list_for_order(self, order_id: int) -> Sequence[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        return self.session.exec(stmt).all()

    def craftsman_ids_for_order(self, order_id: int) -> List[int]:
        stmt = (
            select(Product.craftsman_id)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .where(OrderItem.order_id == order_id)
            .distinct()
        )
        return list(self.session.exec(stmt).all())
