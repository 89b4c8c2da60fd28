"""
➡️ But : Adaptateurs vers les prestataires de paiement (Stripe, PayPal) via httpx.

Chaque gateway expose charge() et refund() et retourne un GatewayResult
(PayPal vérifie aussi ses webhooks via verify_webhook()) ;
les erreurs réseau sont converties en ExternalServiceError.
Le client httpx est injectable (tests : httpx.MockTransport).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Protocol

import httpx

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ExternalServiceError
from heritage_crafts.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class GatewayResult:
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None


class PaymentGateway(Protocol):
    name: str

    def charge(self, *, order_id: int, amount: Decimal, currency: str, payment_method_id: str) -> GatewayResult:
        ...

    def refund(self, *, transaction_id: str, amount: Decimal, currency: str) -> GatewayResult:
        ...


def to_minor_units(amount: Decimal) -> int:
    """Montant en centimes (Stripe)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


class StripeGateway:
    name = "stripe"

    def __init__(self, *, secret_key: Optional[str], api_base: str, client: Optional[httpx.Client] = None):
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.client = client or httpx.Client(timeout=15.0)

    def _post(self, path: str, data: dict) -> dict:
        if not self.secret_key:
            raise ExternalServiceError("Stripe is not configured")
        try:
            resp = self.client.post(
                f"{self.api_base}{path}",
                data=data,
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        except httpx.HTTPError as e:
            logger.error("Stripe request failed: %s", e)
            raise ExternalServiceError("Payment provider unreachable")
        body = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            error = (body.get("error") or {}).get("message") or f"Stripe error {resp.status_code}"
            return {"_error": error}
        return body

    def charge(self, *, order_id: int, amount: Decimal, currency: str, payment_method_id: str) -> GatewayResult:
        body = self._post(
            "/payment_intents",
            {
                "amount": to_minor_units(amount),
                "currency": currency.lower(),
                "payment_method": payment_method_id,
                "confirm": "true",
                "metadata[orderId]": str(order_id),
            },
        )
        if "_error" in body:
            return GatewayResult(success=False, error=body["_error"])
        if body.get("status") == "succeeded":
            return GatewayResult(success=True, transaction_id=body.get("id"))
        return GatewayResult(
            success=False,
            transaction_id=body.get("id"),
            error=f"Payment status: {body.get('status', 'unknown')}",
        )

    def refund(self, *, transaction_id: str, amount: Decimal, currency: str) -> GatewayResult:
        body = self._post("/refunds", {"payment_intent": transaction_id, "amount": to_minor_units(amount)})
        if "_error" in body:
            return GatewayResult(success=False, error=body["_error"])
        return GatewayResult(success=body.get("status") in ("succeeded", "pending"), transaction_id=body.get("id"))


class PayPalGateway:
    name = "paypal"

    # en-têtes de transmission -> champs attendus par verify-webhook-signature
    WEBHOOK_HEADERS = {
        "auth_algo": "paypal-auth-algo",
        "cert_url": "paypal-cert-url",
        "transmission_id": "paypal-transmission-id",
        "transmission_sig": "paypal-transmission-sig",
        "transmission_time": "paypal-transmission-time",
    }

    def __init__(
        self,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        api_base: str,
        webhook_id: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id
        self.api_base = api_base.rstrip("/")
        self.client = client or httpx.Client(timeout=15.0)

    def _access_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise ExternalServiceError("PayPal is not configured")
        try:
            resp = self.client.post(
                f"{self.api_base}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("PayPal authentication failed: %s", e)
            raise ExternalServiceError("Payment provider unreachable")
        return resp.json()["access_token"]

    def _post(self, path: str, payload: Optional[dict] = None) -> httpx.Response:
        token = self._access_token()
        try:
            return self.client.post(
                f"{self.api_base}{path}",
                json=payload or {},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error("PayPal request failed: %s", e)
            raise ExternalServiceError("Payment provider unreachable")

    def charge(self, *, order_id: int, amount: Decimal, currency: str, payment_method_id: str) -> GatewayResult:
        # payment_method_id = identifiant de la commande PayPal approuvée côté client
        resp = self._post(f"/v2/checkout/orders/{payment_method_id}/capture")
        body = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            return GatewayResult(success=False, error=body.get("message") or f"PayPal error {resp.status_code}")
        if body.get("status") != "COMPLETED":
            return GatewayResult(success=False, error=f"Payment status: {body.get('status', 'unknown')}")

        capture_id = body.get("id")
        for unit in body.get("purchase_units", []):
            captures = (unit.get("payments") or {}).get("captures") or []
            if captures:
                capture_id = captures[0].get("id", capture_id)
                break
        return GatewayResult(success=True, transaction_id=capture_id)

    def refund(self, *, transaction_id: str, amount: Decimal, currency: str) -> GatewayResult:
        resp = self._post(
            f"/v2/payments/captures/{transaction_id}/refund",
            {"amount": {"value": f"{Decimal(amount):.2f}", "currency_code": currency.upper()}},
        )
        body = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            return GatewayResult(success=False, error=body.get("message") or f"PayPal error {resp.status_code}")
        return GatewayResult(success=body.get("status") in ("COMPLETED", "PENDING"), transaction_id=body.get("id"))

    def verify_webhook(self, *, headers: Mapping[str, str], event: dict) -> bool:
        """
        Délègue la vérification de signature à PayPal.
        Faux si le webhook n'est pas configuré ou si un en-tête de transmission manque.
        """
        if not self.webhook_id:
            logger.warning("PayPal webhook rejected: PAYPAL_WEBHOOK_ID is not set")
            return False
        received = {k.lower(): v for k, v in headers.items()}
        payload = {field: received.get(header) for field, header in self.WEBHOOK_HEADERS.items()}
        if not all(payload.values()):
            return False
        payload.update(webhook_id=self.webhook_id, webhook_event=event)

        resp = self._post("/v1/notifications/verify-webhook-signature", payload)
        body = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            logger.warning("PayPal webhook verification error %s", resp.status_code)
            return False
        return body.get("verification_status") == "SUCCESS"


def default_gateways() -> dict:
    return {
        "stripe": StripeGateway(secret_key=settings.STRIPE_SECRET_KEY, api_base=settings.STRIPE_API_BASE),
        "paypal": PayPalGateway(
            client_id=settings.PAYPAL_CLIENT_ID,
            client_secret=settings.PAYPAL_CLIENT_SECRET,
            api_base=settings.PAYPAL_API_BASE,
            webhook_id=settings.PAYPAL_WEBHOOK_ID,
        ),
    }
