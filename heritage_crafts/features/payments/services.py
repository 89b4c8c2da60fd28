"""
➡️ But : Encaissement et remboursement des commandes via Stripe / PayPal,
plus le traitement des webhooks des prestataires.

🔹 Règles :

Chaque tentative crée une ligne Payment (PENDING puis COMPLETED / FAILED).

Un remboursement est une ligne Payment de montant négatif, statut REFUNDED.

Les webhooks sont idempotents : une commande déjà payée n'est pas retraitée.

Un webhook de succès dont le montant ne correspond pas au total de la commande
est ignoré (journalisé) ; un webhook PayPal non vérifié par PayPal est rejeté (400).
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    PaymentFailedError,
)
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import NotificationType, OrderStatus, PaymentProvider, PaymentStatus
from heritage_crafts.db.models.orders import Order
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.orders import OrderRepository
from heritage_crafts.db.repositories.payments import PaymentRepository
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.orders.services import OrderService
from heritage_crafts.features.payments.gateways import PaymentGateway
from heritage_crafts.features.payments.schemas import (
    PaymentHistoryOut,
    PaymentIn,
    PaymentOut,
    RefundIn,
    WebhookAckOut,
)

logger = get_logger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")


class PaymentService:
    def __init__(
        self,
        *,
        repo: PaymentRepository,
        order_repo: OrderRepository,
        order_svc: OrderService,
        notification_svc: NotificationService,
        gateways: Dict[str, PaymentGateway],
        currency: str = settings.PAYMENT_CURRENCY,
    ):
        self.repo = repo
        self.orders = order_repo
        self.order_svc = order_svc
        self.notifications = notification_svc
        self.gateways = gateways
        self.currency = currency

    # --------------- Helpers ---------------
    def _gateway(self, provider: str) -> PaymentGateway:
        try:
            key = PaymentProvider(provider.lower()).value
        except ValueError:
            raise InvalidOperationError(f"Unsupported payment provider: {provider}")
        gateway = self.gateways.get(key)
        if gateway is None:
            raise InvalidOperationError(f"Unsupported payment provider: {provider}")
        return gateway

    def _paid_amounts(self, order_id: int):
        paid = Decimal("0.00")
        refunded = Decimal("0.00")
        for p in self.repo.list_for_order(order_id):
            if p.status == PaymentStatus.COMPLETED and p.amount > 0:
                paid += p.amount
            elif p.status == PaymentStatus.REFUNDED and p.amount < 0:
                refunded += -p.amount
        return paid, refunded

    def _mark_paid(self, order: Order, payment) -> None:
        self.repo.update(payment, commit=False, status=PaymentStatus.COMPLETED)
        changes = {"payment_status": PaymentStatus.COMPLETED}
        if order.status == OrderStatus.PENDING:
            changes["status"] = OrderStatus.CONFIRMED
        self.orders.update(order, commit=False, **changes)
        self.repo.session.commit()
        logger.info("Order %s paid via %s (%s)", order.id, payment.provider, payment.transaction_id)

        self.notifications.notify(
            order.user_id,
            NotificationType.PAYMENT_RECEIVED,
            title={"zh-HK": "付款成功", "en": "Payment received"},
            message={
                "zh-HK": f"訂單 #{order.id} 已付款 {payment.amount} {payment.currency}",
                "en": f"Order #{order.id} paid: {payment.amount} {payment.currency}",
            },
            details={"order_id": order.id, "payment_id": payment.id},
        )

    def _mark_failed(self, order: Order, payment, reason: str) -> None:
        self.repo.update(payment, commit=False, status=PaymentStatus.FAILED, failure_reason=reason)
        self.orders.update(order, commit=False, payment_status=PaymentStatus.FAILED)
        self.repo.session.commit()
        logger.warning("Payment %s for order %s failed: %s", payment.id, order.id, reason)

    # --------------- Commands ---------------
    def process(self, user: User, payload: PaymentIn) -> PaymentOut:
        order = self.order_svc.get_entity(payload.order_id)
        if order.user_id != user.id:
            raise ForbiddenError("Forbidden")
        if order.payment_status == PaymentStatus.COMPLETED:
            raise ConflictError("Order has already been paid")
        if order.status == OrderStatus.CANCELLED:
            raise InvalidOperationError("Cannot pay a cancelled order")
        if abs(Decimal(payload.amount) - Decimal(order.total_amount)) > AMOUNT_TOLERANCE:
            raise InvalidOperationError("Payment amount does not match order total")

        gateway = self._gateway(payload.provider)
        payment = self.repo.create(
            order_id=order.id,
            provider=gateway.name,
            amount=Decimal(order.total_amount),
            currency=self.currency,
            status=PaymentStatus.PENDING,
        )

        result = gateway.charge(
            order_id=order.id,
            amount=Decimal(order.total_amount),
            currency=self.currency,
            payment_method_id=payload.payment_method_id,
        )
        if result.transaction_id:
            payment.transaction_id = result.transaction_id

        if not result.success:
            reason = result.error or "Payment failed"
            self._mark_failed(order, payment, reason)
            raise PaymentFailedError(reason)

        self._mark_paid(order, payment)
        self.repo.session.refresh(payment)
        return PaymentOut.model_validate(payment)

    def refund(self, order_id: int, user: User, payload: RefundIn) -> PaymentOut:
        order = self.order_svc.get_entity(order_id)
        self.order_svc.ensure_can_manage(order, user)
        if order.payment_status != PaymentStatus.COMPLETED:
            raise InvalidOperationError("Order has not been paid")

        paid, refunded = self._paid_amounts(order.id)
        refundable = paid - refunded
        amount = Decimal(payload.amount) if payload.amount is not None else refundable
        if amount <= 0 or amount > refundable:
            raise InvalidOperationError("Refund amount exceeds paid amount")

        completed = [
            p for p in self.repo.list_for_order(order.id) if p.status == PaymentStatus.COMPLETED and p.amount > 0
        ]
        source = completed[-1]
        gateway = self._gateway(source.provider)
        result = gateway.refund(transaction_id=source.transaction_id, amount=amount, currency=source.currency)
        if not result.success:
            raise PaymentFailedError(result.error or "Refund failed")

        refund = self.repo.create(
            commit=False,
            order_id=order.id,
            provider=source.provider,
            amount=-amount,
            currency=source.currency,
            status=PaymentStatus.REFUNDED,
            transaction_id=result.transaction_id,
            failure_reason=payload.reason or None,
        )
        if refunded + amount >= paid:
            self.orders.update(order, commit=False, payment_status=PaymentStatus.REFUNDED)
        self.repo.session.commit()
        self.repo.session.refresh(refund)
        logger.info("Order %s refunded %s by user %s", order.id, amount, user.id)
        return PaymentOut.model_validate(refund)

    # --------------- Queries ---------------
    def history(self, order_id: int, user: User) -> PaymentHistoryOut:
        order = self.order_svc.get_entity(order_id)
        self.order_svc.ensure_can_view(order, user)
        paid, refunded = self._paid_amounts(order.id)
        return PaymentHistoryOut(
            order_id=order.id,
            items=[PaymentOut.model_validate(p) for p in self.repo.list_for_order(order.id)],
            paid_amount=paid,
            refunded_amount=refunded,
        )

    # --------------- Webhooks ---------------
    def _order_from_reference(self, reference) -> Optional[Order]:
        try:
            order_id = int(reference)
        except (TypeError, ValueError):
            logger.warning("Webhook without a usable order reference: %r", reference)
            return None
        order = self.orders.get(order_id)
        if not order:
            logger.warning("Webhook for unknown order %s", order_id)
        return order

    def _payment_for_transaction(
        self, order: Order, provider: str, transaction_id: Optional[str], amount: Optional[Decimal]
    ):
        payment = self.repo.get_by_transaction(transaction_id) if transaction_id else None
        if payment is None:
            payment = self.repo.create(
                commit=False,
                order_id=order.id,
                provider=provider,
                amount=amount if amount is not None else Decimal(order.total_amount),
                currency=self.currency,
                status=PaymentStatus.PENDING,
                transaction_id=transaction_id,
            )
        return payment

    def _apply_event(self, provider: str, succeeded: bool, reference, transaction_id, amount, reason) -> bool:
        order = self._order_from_reference(reference)
        if order is None:
            return False
        if order.payment_status == PaymentStatus.COMPLETED:
            logger.info("Webhook ignored: order %s already paid", order.id)
            return False

        try:
            amount = Decimal(str(amount)) if amount is not None else None
        except InvalidOperation:
            amount = None
        if succeeded and (amount is None or abs(amount - Decimal(order.total_amount)) > AMOUNT_TOLERANCE):
            logger.warning(
                "Webhook ignored: %s amount %s does not match order %s total %s",
                provider, amount, order.id, order.total_amount,
            )
            return False

        payment = self._payment_for_transaction(order, provider, transaction_id, amount)
        if succeeded:
            self._mark_paid(order, payment)
        else:
            self._mark_failed(order, payment, reason or "Payment failed")
        return True

    def handle_stripe_event(self, event: dict) -> WebhookAckOut:
        event_type = event.get("type")
        intent = (event.get("data") or {}).get("object") or {}
        if event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
            logger.debug("Stripe event %s ignored", event_type)
            return WebhookAckOut(handled=False)

        amount = intent.get("amount")
        handled = self._apply_event(
            PaymentProvider.STRIPE.value,
            event_type == "payment_intent.succeeded",
            (intent.get("metadata") or {}).get("orderId"),
            intent.get("id"),
            Decimal(amount) / 100 if amount is not None else None,
            (intent.get("last_payment_error") or {}).get("message"),
        )
        return WebhookAckOut(handled=handled)

    def handle_paypal_event(self, event: dict, headers: Mapping[str, str]) -> WebhookAckOut:
        gateway = self._gateway(PaymentProvider.PAYPAL.value)
        if not gateway.verify_webhook(headers=headers, event=event):
            logger.warning("PayPal webhook %s rejected: signature not verified", event.get("id"))
            raise InvalidOperationError("Invalid webhook signature")

        event_type = event.get("event_type")
        resource = event.get("resource") or {}
        if event_type not in ("PAYMENT.CAPTURE.COMPLETED", "PAYMENT.CAPTURE.DENIED"):
            logger.debug("PayPal event %s ignored", event_type)
            return WebhookAckOut(handled=False)

        handled = self._apply_event(
            PaymentProvider.PAYPAL.value,
            event_type == "PAYMENT.CAPTURE.COMPLETED",
            resource.get("custom_id"),
            resource.get("id"),
            (resource.get("amount") or {}).get("value"),
            "Payment denied",
        )
        return WebhookAckOut(handled=handled)
