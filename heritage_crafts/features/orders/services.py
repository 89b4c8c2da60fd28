"""
Commandes : création transactionnelle depuis le panier, suivi de statut, annulation.

Toute la création (réservation de stock, lignes, coupon, vidage du panier)
se fait dans une seule transaction : commit=False partout puis un commit final.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set

from sqlmodel import Session

from heritage_crafts.core.errors import ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import NotificationType, OrderStatus, PaymentStatus, ProductStatus
from heritage_crafts.db.models.orders import Order
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.orders import OrderItemRepository, OrderRepository
from heritage_crafts.features.cart.services import CartService
from heritage_crafts.features.coupons.services import CouponService
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.products.services import ProductService
from heritage_crafts.features.orders.schemas import (
    OrderDirectIn,
    OrderFromCartIn,
    OrderItemOut,
    OrderLineIn,
    OrderListOut,
    OrderOut,
    OrderStatsOut,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")

ALLOWED_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

NON_CANCELLABLE = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


def merge_lines(lines: Sequence[OrderLineIn]) -> List[OrderLineIn]:
    """Une ligne par produit (quantités additionnées), dans l'ordre de première apparition."""
    merged: Dict[int, OrderLineIn] = {}
    for line in lines:
        current = merged.get(line.product_id)
        if current is None:
            merged[line.product_id] = line.model_copy()
            continue
        notes = [n for n in (current.customization_notes, line.customization_notes) if n]
        merged[line.product_id] = current.model_copy(
            update={"quantity": current.quantity + line.quantity, "customization_notes": "; ".join(notes) or None}
        )
    return list(merged.values())


class OrderService:
    def __init__(
        self,
        *,
        session: Session,
        repo: OrderRepository,
        item_repo: OrderItemRepository,
        craftsman_repo: CraftsmanProfileRepository,
        product_svc: ProductService,
        cart_svc: CartService,
        coupon_svc: CouponService,
        notification_svc: NotificationService,
    ):
        self.session = session
        self.repo = repo
        self.items = item_repo
        self.craftsmen = craftsman_repo
        self.products = product_svc
        self.cart = cart_svc
        self.coupons = coupon_svc
        self.notifications = notification_svc

    # --------------- Helpers ---------------
    def _to_out(self, order: Order) -> OrderOut:
        out = OrderOut.model_validate(order)
        out.items = [OrderItemOut.model_validate(i) for i in self.items.list_for_order(order.id)]
        return out

    def get_entity(self, order_id: int) -> Order:
        order = self.repo.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _craftsman_user_ids(self, order_id: int) -> List[int]:
        user_ids = []
        for craftsman_id in self.items.craftsman_ids_for_order(order_id):
            profile = self.craftsmen.get(craftsman_id)
            if profile:
                user_ids.append(profile.user_id)
        return user_ids

    def _is_involved_craftsman(self, order: Order, user: User) -> bool:
        profile = self.craftsmen.get_by_user(user.id)
        return bool(profile) and profile.id in self.items.craftsman_ids_for_order(order.id)

    def ensure_can_view(self, order: Order, user: User) -> None:
        if order.user_id == user.id or user.is_admin or self._is_involved_craftsman(order, user):
            return
        raise ForbiddenError("Forbidden")

    def ensure_can_manage(self, order: Order, user: User) -> None:
        if user.is_admin or self._is_involved_craftsman(order, user):
            return
        raise ForbiddenError("Forbidden")

    # --------------- Création ---------------
    def _place_order(
        self,
        user: User,
        lines: Sequence[OrderLineIn],
        payload: OrderFromCartIn,
        *,
        clear_cart: bool,
    ) -> OrderOut:
        try:
            total = Decimal("0.00")
            priced = []
            categories: Set[str] = set()
            craftsman_ids: Set[int] = set()

            for line in merge_lines(lines):
                product = self.products.get_entity(line.product_id)
                if product.status != ProductStatus.ACTIVE:
                    raise InvalidOperationError(f"Product {product.id} is not available")
                unit_price = Decimal(product.price)
                # reserve() lève ConflictError si le stock est insuffisant
                self.products.reserve(product.id, line.quantity, commit=False)
                total += unit_price * line.quantity
                priced.append((line, unit_price))
                if product.craft_category:
                    categories.add(product.craft_category)
                craftsman_ids.add(product.craftsman_id)

            discount = Decimal("0.00")
            coupon_code = None
            if payload.coupon_code:
                check = self.coupons.validate(
                    payload.coupon_code, total, categories=categories, craftsman_ids=craftsman_ids
                )
                if not check.valid:
                    raise InvalidOperationError(check.error or "Invalid coupon")
                discount = check.discount_amount
                coupon = self.coupons.apply(check.coupon_id, commit=False)
                coupon_code = coupon.code

            total_amount = (total - discount).quantize(CENT)
            # rien à encaisser (coupon couvrant tout) : la commande est réglée d'office
            settled = total_amount <= 0
            order = self.repo.create(
                commit=False,
                user_id=user.id,
                total_amount=total_amount,
                discount_amount=discount,
                coupon_code=coupon_code,
                status=OrderStatus.CONFIRMED if settled else OrderStatus.PENDING,
                payment_status=PaymentStatus.COMPLETED if settled else PaymentStatus.PENDING,
                shipping_address=payload.shipping_address.model_dump(),
                notes=payload.notes,
            )
            for line, unit_price in priced:
                self.items.create(
                    commit=False,
                    order_id=order.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price=unit_price,
                    customization_notes=line.customization_notes,
                )
            if clear_cart:
                self.cart.clear(user.id, commit=False)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(order)
        logger.info("Order %s created: user=%s total=%s", order.id, user.id, order.total_amount)

        for craftsman_user_id in self._craftsman_user_ids(order.id):
            self.notifications.notify(
                craftsman_user_id,
                NotificationType.NEW_ORDER,
                title={"zh-HK": "新訂單", "en": "New order"},
                message={"zh-HK": f"訂單 #{order.id}", "en": f"Order #{order.id}"},
                details={"order_id": order.id},
            )
        return self._to_out(order)

    def create_from_cart(self, user: User, payload: OrderFromCartIn) -> OrderOut:
        check = self.cart.validate(user.id, language=user.preferred_language)
        if not check.valid:
            raise InvalidOperationError("Cart validation failed", details=check.errors)
        cart_items = self.cart.repo.list_for_user(user.id)
        if not cart_items:
            raise InvalidOperationError("Cart is empty")
        lines = [OrderLineIn(product_id=i.product_id, quantity=i.quantity) for i in cart_items]
        return self._place_order(user, lines, payload, clear_cart=True)

    def create_direct(self, user: User, payload: OrderDirectIn) -> OrderOut:
        return self._place_order(user, payload.items, payload, clear_cart=False)

    # --------------- Statut ---------------
    def update_status(self, order_id: int, user: User, status: OrderStatus) -> OrderOut:
        order = self.get_entity(order_id)
        self.ensure_can_manage(order, user)

        if status == OrderStatus.CANCELLED:
            return self._cancel(order)

        if status not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidOperationError(
                f"Cannot change order status from {order.status.value} to {status.value}"
            )
        order = self.repo.update(order, status=status)
        self.notifications.notify(
            order.user_id,
            NotificationType.ORDER_STATUS_UPDATE,
            title={"zh-HK": "訂單狀態更新", "en": "Order status updated"},
            message={"zh-HK": f"訂單 #{order.id}: {status.value}", "en": f"Order #{order.id}: {status.value}"},
            details={"order_id": order.id, "status": status.value},
        )
        return self._to_out(order)

    def cancel(self, order_id: int, user: User) -> OrderOut:
        order = self.get_entity(order_id)
        if order.user_id != user.id and not user.is_admin:
            raise ForbiddenError("Forbidden")
        return self._cancel(order)

    def _cancel(self, order: Order) -> OrderOut:
        if order.status in NON_CANCELLABLE:
            raise InvalidOperationError(f"Cannot cancel an order with status {order.status.value}")
        try:
            for item in self.items.list_for_order(order.id):
                self.products.release(item.product_id, item.quantity, commit=False)
            payment_status = (
                PaymentStatus.REFUNDED if order.payment_status == PaymentStatus.COMPLETED else PaymentStatus.FAILED
            )
            order = self.repo.update(
                order, commit=False, status=OrderStatus.CANCELLED, payment_status=payment_status
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(order)
        logger.info("Order %s cancelled", order.id)
        return self._to_out(order)

    # --------------- Queries ---------------
    def get(self, order_id: int, user: User) -> OrderOut:
        order = self.get_entity(order_id)
        self.ensure_can_view(order, user)
        return self._to_out(order)

    def list_for_user(
        self, user: User, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 50
    ) -> OrderListOut:
        rows = self.repo.list_for_user(user.id, status=status, offset=offset, limit=limit)
        return OrderListOut(items=[self._to_out(o) for o in rows])

    def list_for_craftsman(
        self, user: User, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 50
    ) -> OrderListOut:
        profile = self.craftsmen.get_by_user(user.id)
        if not profile:
            raise ForbiddenError("A craftsman profile is required")
        rows = self.repo.list_for_craftsman(profile.id, status=status, offset=offset, limit=limit)
        return OrderListOut(items=[self._to_out(o) for o in rows])

    def list_all(
        self, user: User, *, status: Optional[OrderStatus] = None, offset: int = 0, limit: int = 50
    ) -> OrderListOut:
        if not user.is_admin:
            raise ForbiddenError("Forbidden")
        rows = self.repo.list_all(status=status, offset=offset, limit=limit)
        return OrderListOut(items=[self._to_out(o) for o in rows])

    def stats(self, user: User, *, global_scope: bool = False) -> OrderStatsOut:
        if global_scope and not user.is_admin:
            raise ForbiddenError("Forbidden")
        scope = None if global_scope else user.id
        counts = self.repo.status_counts(scope)
        return OrderStatsOut(
            total_orders=sum(counts.values()),
            total_revenue=self.repo.revenue(scope),
            pending_orders=sum(
                counts.get(s, 0) for s in (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
            ),
            completed_orders=counts.get(OrderStatus.DELIVERED, 0),
            cancelled_orders=counts.get(OrderStatus.CANCELLED, 0),
        )
