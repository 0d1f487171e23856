import hashlib
import json
import logging

from django.conf import settings

from .base import (
    PaymentGateway, Charge, PaymentStatus, WebhookEvent, GatewayError, SUCCEEDED,
    check_echoed_id, load_event, minor_amount, nested_object, request_json,
)
from ..signatures import opay_callback_message, opay_request_signature, verify_hmac

logger = logging.getLogger(__name__)


class OpayGateway(PaymentGateway):
    """OPay web checkout. References are generated locally, amounts in kobo."""

    name = "opay"
    charge_currency = "NGN"

    def __init__(self, base_url=None, public_key=None, secret_key=None, merchant_id=None,
                 callback_url=None, return_url=None):
        self.base_url = (base_url or settings.OPAY_BASE_URL).rstrip("/")
        self.public_key = settings.OPAY_PUBLIC_KEY if public_key is None else public_key
        self.secret_key = settings.OPAY_SECRET_KEY if secret_key is None else secret_key
        self.merchant_id = settings.OPAY_MERCHANT_ID if merchant_id is None else merchant_id
        self.callback_url = callback_url or settings.OPAY_CALLBACK_URL
        self.return_url = return_url or settings.OPAY_RETURN_URL

    def _check(self):
        if not (self.public_key and self.secret_key):
            raise GatewayError("OPay is not configured")

    def _signed_post(self, path: str, body: dict, bearer: str) -> dict:
        raw = json.dumps(body, separators=(",", ":"))
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {bearer}",
            "MerchantId": self.merchant_id,
            "SIGNATURE": opay_request_signature(self.secret_key, body),
        }
        return request_json("POST", f"{self.base_url}{path}", provider=self.name, headers=headers, data=raw)

    def create_charge(self, amount, currency, customer, reference=None, metadata=None) -> Charge:
        self._check()
        if not reference:
            raise GatewayError("OPay charges need a merchant reference")
        body = {
            "reference": reference,
            "amount": int(amount),
            "currency": currency,
            "country": "NG",
            "payType": "WEB",
            "userInfo": {
                "userId": (customer.email if customer is not None else "") or "guest",
                "name": (customer.name if customer is not None else "") or "Anonymous",
            },
            "callbackUrl": self.callback_url,
            "returnUrl": self.return_url,
        }
        data = self._signed_post("/invoices/create", body, self.public_key)
        if str(data.get("code", "00000")) != "00000":
            logger.error("OPay create rejected %s: %s", reference, json.dumps(data)[:800])
            raise GatewayError("OPay rejected the payment request")
        cashier = (data.get("data") or {}).get("cashierUrl", "")
        return Charge(id=reference, client_auth=cashier, raw=data)

    def retrieve_status(self, payment_id: str) -> PaymentStatus:
        self._check()
        body = {"reference": payment_id, "country": "NG"}
        data = self._signed_post("/cashier/status", body, opay_request_signature(self.secret_key, body))
        inner = data.get("data")
        if str(data.get("code", "00000")) != "00000" or not isinstance(inner, dict):
            logger.error("OPay status for %s rejected: %s", payment_id, json.dumps(data)[:800])
            raise GatewayError("OPay could not report the payment status")
        check_echoed_id(self.name, payment_id, inner.get("reference"))
        status = str(inner.get("status") or "")
        # amount is either {"total": .., "currency": ..} or a bare figure
        amount = inner.get("amount")
        currency = inner.get("currency") or ""
        if isinstance(amount, dict):
            currency = amount.get("currency") or currency
            amount = amount.get("total")
        return PaymentStatus(
            payment_id=payment_id,
            status=SUCCEEDED if status.upper() == "SUCCESS" else (status or "unknown"),
            amount=minor_amount(amount),
            currency=str(currency).upper(),
        )

    def parse_webhook(self, body: bytes, headers):
        event = load_event(body)
        payload = nested_object(event, "payload")
        if self.secret_key:
            message = opay_callback_message(payload)
            if not verify_hmac(self.secret_key, message, event.get("sha512", ""), hashlib.sha3_512):
                return None
        else:
            logger.warning("OPAY_SECRET_KEY not set; accepting unverified callback")
        etype = str(event.get("type") or "")
        status = str(payload.get("status") or "").upper()
        return WebhookEvent(
            type=etype,
            payment_id=str(payload.get("reference") or ""),
            succeeded=etype == "transaction-status" and status == "SUCCESS",
            payload=event,
        )
