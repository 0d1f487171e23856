import json
import logging

from django.conf import settings

from .base import (
    PaymentGateway, Charge, PaymentStatus, WebhookEvent, GatewayError, SUCCEEDED,
    check_echoed_id, load_event, minor_amount, nested_object, path_segment, request_json,
)
from ..signatures import verify_hmac

logger = logging.getLogger(__name__)


class PaystackGateway(PaymentGateway):
    """Paystack transactions; amounts in kobo, always charged in NGN."""

    name = "paystack"
    charge_currency = "NGN"

    def __init__(self, secret_key=None, base_url=None, callback_url=None):
        self.secret_key = settings.PAYSTACK_SECRET_KEY if secret_key is None else secret_key
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.callback_url = callback_url or settings.PAYSTACK_CALLBACK_URL

    def _headers(self) -> dict:
        if not self.secret_key:
            raise GatewayError("Paystack is not configured")
        return {"Authorization": f"Bearer {self.secret_key}", "Content-Type": "application/json"}

    def create_charge(self, amount, currency, customer, reference=None, metadata=None) -> Charge:
        payload = {
            "email": (customer.email if customer is not None else "") or "guest@example.com",
            "amount": int(amount),
            "currency": currency,
            "callback_url": self.callback_url,
            "metadata": metadata or {},
        }
        if reference:
            payload["reference"] = reference
        data = request_json(
            "POST", f"{self.base_url}/transaction/initialize",
            provider=self.name, headers=self._headers(), json=payload,
        )
        inner = data.get("data") or {}
        if not data.get("status") or not inner.get("reference"):
            logger.error("Paystack initialize rejected: %s", json.dumps(data)[:800])
            raise GatewayError("Paystack did not return a reference")
        return Charge(id=inner["reference"], client_auth=inner.get("authorization_url", ""), raw=data)

    def retrieve_status(self, payment_id: str) -> PaymentStatus:
        data = request_json(
            "GET", f"{self.base_url}/transaction/verify/{path_segment(payment_id)}",
            provider=self.name, headers=self._headers(),
        )
        inner = data.get("data")
        if not isinstance(inner, dict):
            logger.error("Paystack verify for %s without data: %s", payment_id, json.dumps(data)[:800])
            raise GatewayError("Paystack could not verify the payment")
        check_echoed_id(self.name, payment_id, inner.get("reference"))
        status = str(inner.get("status") or "")
        return PaymentStatus(
            payment_id=payment_id,
            status=SUCCEEDED if status == "success" else (status or "unknown"),
            amount=minor_amount(inner.get("amount")),
            currency=str(inner.get("currency") or "").upper(),
        )

    def parse_webhook(self, body: bytes, headers):
        if self.secret_key:
            if not verify_hmac(self.secret_key, body, headers.get("X-Paystack-Signature", "")):
                return None
        else:
            logger.warning("PAYSTACK_SECRET_KEY not set; accepting unverified webhook")
        event = load_event(body)
        etype = str(event.get("event") or "")
        reference = str(nested_object(event, "data").get("reference") or "")
        return WebhookEvent(type=etype, payment_id=reference, succeeded=etype == "charge.success", payload=event)
