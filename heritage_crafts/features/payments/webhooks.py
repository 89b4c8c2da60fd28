import hashlib
import hmac
import time
from typing import Optional

from heritage_crafts.core.errors import InvalidOperationError


def stripe_signature(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def verify_stripe_signature(
    payload: bytes,
    header: Optional[str],
    secret: Optional[str],
    *,
    tolerance: int = 300,
    now: Optional[float] = None,
) -> None:
    """
    Vérifie l'en-tête Stripe-Signature ("t=...,v1=...,v1=...").
    Lève InvalidOperationError (400) si absent, mal formé, expiré ou invalide.
    """
    if not secret:
        raise InvalidOperationError("Webhook secret not configured")
    if not header:
        raise InvalidOperationError("Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not timestamp.isdigit() or not signatures:
        raise InvalidOperationError("Invalid Stripe-Signature header")

    now = time.time() if now is None else now
    if tolerance and abs(now - int(timestamp)) > tolerance:
        raise InvalidOperationError("Webhook timestamp outside tolerance")

    expected = stripe_signature(payload, secret, int(timestamp))
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise InvalidOperationError("Invalid webhook signature")
