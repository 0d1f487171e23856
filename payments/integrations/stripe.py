import logging

from django.conf import settings

from .base import (
    PaymentGateway, Charge, PaymentStatus, WebhookEvent, GatewayError, SUCCEEDED,
    check_echoed_id, load_event, minor_amount, nested_object, path_segment, request_json,
)
from ..signatures import verify_stripe_signature

logger = logging.getLogger(__name__)

SUCCESS_EVENTS = {"payment_intent.succeeded", "checkout.session.completed"}


class StripeGateway(PaymentGateway):
    """Stripe PaymentIntents over the REST API (form-encoded, basic auth)."""

    name = "stripe"

    def __init__(self, secret_key=None, webhook_secret=None, api_base=None):
        self.secret_key = settings.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
        self.api_base = (api_base or settings.STRIPE_API_BASE).rstrip("/")

    def _auth(self):
        if not self.secret_key:
            raise GatewayError("Stripe is not configured")
        return (self.secret_key, "")

    def create_charge(self, amount, currency, customer, reference=None, metadata=None) -> Charge:
        form = {
            "amount": int(amount),
            "currency": currency.lower(),
            "automatic_payment_methods[enabled]": "true",
        }
        if customer is not None and customer.email:
            form["receipt_email"] = customer.email
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = value
        headers = {"Idempotency-Key": reference} if reference else {}
        data = request_json(
            "POST", f"{self.api_base}/payment_intents",
            provider=self.name, auth=self._auth(), data=form, headers=headers,
        )
        if not data.get("id") or not data.get("client_secret"):
            raise GatewayError("Stripe did not return a payment intent")
        return Charge(id=data["id"], client_auth=data["client_secret"], raw=data)

    def retrieve_status(self, payment_id: str) -> PaymentStatus:
        data = request_json(
            "GET", f"{self.api_base}/payment_intents/{path_segment(payment_id)}",
            provider=self.name, auth=self._auth(),
        )
        check_echoed_id(self.name, payment_id, data.get("id"))
        status = SUCCEEDED if data.get("status") == "succeeded" else str(data.get("status") or "unknown")
        amount = data.get("amount_received") or data.get("amount")
        return PaymentStatus(
            payment_id=payment_id,
            status=status,
            amount=minor_amount(amount),
            currency=str(data.get("currency") or "").upper(),
        )

    def parse_webhook(self, body: bytes, headers):
        if self.webhook_secret:
            if not verify_stripe_signature(body, headers.get("Stripe-Signature", ""), self.webhook_secret):
                return None
        else:
            logger.warning("STRIPE_WEBHOOK_SECRET not set; accepting unverified webhook")
        event = load_event(body)
        etype = str(event.get("type") or "")
        obj = nested_object(nested_object(event, "data"), "object")
        if etype == "checkout.session.completed":
            payment_id = obj.get("payment_intent") or obj.get("id") or ""
        else:
            payment_id = obj.get("id") or ""
        return WebhookEvent(type=etype, payment_id=str(payment_id), succeeded=etype in SUCCESS_EVENTS, payload=event)
