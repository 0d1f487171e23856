"""Webhook signature helpers for the supported gateways."""

import hashlib
import hmac
import json
import logging
import time

logger = logging.getLogger(__name__)

STRIPE_TOLERANCE_SECONDS = 300


def hmac_hex(secret: str, message: bytes, digestmod=hashlib.sha512) -> str:
    return hmac.new(secret.encode(), message, digestmod).hexdigest()


def verify_hmac(secret: str, message: bytes, received_sig: str, digestmod=hashlib.sha512) -> bool:
    if not isinstance(received_sig, str):
        return False
    expected = hmac_hex(secret, message, digestmod)
    return hmac.compare_digest(expected.encode(), received_sig.strip().lower().encode())


def verify_stripe_signature(body: bytes, header: str, secret: str, tolerance=STRIPE_TOLERANCE_SECONDS, now=None) -> bool:
    """Check a ``Stripe-Signature`` header (``t=<ts>,v1=<sig>[,v1=...]``).

    The signed message is ``"<ts>." + body`` hashed with HMAC-SHA256.
    """
    timestamp = None
    signatures = []
    for part in (header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)
    if not timestamp or not signatures:
        return False
    try:
        ts = int(timestamp)
    except ValueError:
        return False
    now = int(time.time()) if now is None else now
    if tolerance and abs(now - ts) > tolerance:
        logger.warning("Stripe signature timestamp outside tolerance: %s", ts)
        return False
    signed = timestamp.encode() + b"." + body
    return any(verify_hmac(secret, signed, sig, hashlib.sha256) for sig in signatures)


def opay_callback_message(payload: dict) -> bytes:
    """Rebuild the string OPay signs for a transaction-status callback."""
    refunded = "t" if payload.get("refunded") else "f"
    msg = (
        '{Amount:"%s",Currency:"%s",Reference:"%s",Refunded:%s,Status:"%s",'
        'Timestamp:"%s",Token:"%s",TransactionID:"%s"}'
    ) % (
        payload.get("amount", ""),
        payload.get("currency", ""),
        payload.get("reference", ""),
        refunded,
        payload.get("status", ""),
        payload.get("timestamp", ""),
        payload.get("token", ""),
        payload.get("transactionId", ""),
    )
    return msg.encode()


def opay_request_signature(secret: str, body: dict) -> str:
    return hmac_hex(secret, json.dumps(body, separators=(",", ":")).encode())
