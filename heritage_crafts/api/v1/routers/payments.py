import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, Path, Request, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_payment_service
from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import InvalidOperationError
from heritage_crafts.db.models.users import User
from heritage_crafts.features.payments.schemas import (
    PaymentHistoryOut,
    PaymentIn,
    PaymentOut,
    RefundIn,
    WebhookAckOut,
)
from heritage_crafts.features.payments.services import PaymentService
from heritage_crafts.features.payments.webhooks import verify_stripe_signature

router = APIRouter(
    prefix="/payments",
    tags=["payments"],
    responses={404: {"description": "Not Found"}},
)


async def raw_body(request: Request) -> bytes:
    """Corps brut (signatures) ; les handlers restent synchrones et tournent dans le threadpool."""
    return await request.body()


def _parse_event(raw: bytes) -> dict:
    try:
        event = json.loads(raw)
    except ValueError:
        raise InvalidOperationError("Invalid webhook payload")
    if not isinstance(event, dict):
        raise InvalidOperationError("Invalid webhook payload")
    return event

# -----------------------------
# Paiement / remboursement
# -----------------------------
@router.post(
    "",
    summary="Payer une commande",
    status_code=status.HTTP_201_CREATED,
    response_model=PaymentOut,
    responses={402: {"description": "Paiement refusé par le prestataire"}},
)
def process_payment(
    payload: PaymentIn,
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.process(user, payload)


@router.post("/orders/{order_id}/refund", summary="Rembourser une commande", response_model=PaymentOut)
def refund_order(
    payload: RefundIn,
    order_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.refund(order_id, user, payload)


@router.get("/orders/{order_id}", summary="Historique des paiements d'une commande", response_model=PaymentHistoryOut)
def payment_history(
    order_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.history(order_id, user)

# -----------------------------
# Webhooks (pas d'auth bearer : signature prestataire)
# -----------------------------
@router.post("/webhooks/stripe", summary="Webhook Stripe", response_model=WebhookAckOut)
def stripe_webhook(
    raw: bytes = Depends(raw_body),
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    svc: PaymentService = Depends(get_payment_service),
):
    verify_stripe_signature(
        raw,
        stripe_signature,
        settings.STRIPE_WEBHOOK_SECRET,
        tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )
    return svc.handle_stripe_event(_parse_event(raw))


@router.post(
    "/webhooks/paypal",
    summary="Webhook PayPal",
    description="La signature est vérifiée auprès de PayPal (PAYPAL_WEBHOOK_ID) ; 400 sinon.",
    response_model=WebhookAckOut,
)
def paypal_webhook(
    request: Request,
    raw: bytes = Depends(raw_body),
    svc: PaymentService = Depends(get_payment_service),
):
    return svc.handle_paypal_event(_parse_event(raw), headers=request.headers)
