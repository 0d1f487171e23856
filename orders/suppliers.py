"""Forwarding paid orders to the fulfillment supplier.

Two strategies exist: a JSON API (when ``SUPPLIER_API_KEY`` is configured)
and a plain order email to ``SUPPLIER_EMAIL``. The choice is made once by
``build_dispatcher()`` at startup.
"""

import logging
from dataclasses import dataclass, field

import requests
from requests import RequestException
from django.conf import settings

from .emails import order_lines, send_multipart
from .exceptions import SupplierDispatchFailed
from .money import to_major_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupplierResult:
    success: bool
    method: str
    data: dict = field(default_factory=dict)
    error: str = ""

    def as_dict(self) -> dict:
        out = {"success": self.success, "method": self.method}
        if self.success:
            out["data"] = self.data
        else:
            out["error"] = self.error
        return out


class SupplierDispatcher:
    method = ""

    def submit(self, items, customer, payment_id) -> SupplierResult:
        try:
            data = self._submit(items, customer, payment_id)
        except SupplierDispatchFailed as e:
            logger.error("Supplier dispatch (%s) failed for %s: %s", self.method, payment_id, e.message)
            return SupplierResult(success=False, method=self.method, error=e.message)
        logger.info("Order %s submitted to supplier via %s", payment_id, self.method)
        return SupplierResult(success=True, method=self.method, data=data)

    def _submit(self, items, customer, payment_id) -> dict:
        raise NotImplementedError


class ApiSupplierDispatcher(SupplierDispatcher):
    method = "api"

    def __init__(self, url, api_key, timeout=None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout or settings.DROPSHIP_HTTP_TIMEOUT

    def _submit(self, items, customer, payment_id) -> dict:
        if not self.url:
            raise SupplierDispatchFailed("SUPPLIER_API_URL is not configured")
        payload = {
            "external_order_id": payment_id,
            "shipping": {
                "name": customer.name,
                "email": customer.email,
                "address": customer.shipping_address,
            },
            "items": [
                {"sku": it.sku or it.product_id, "quantity": it.quantity, "title": it.title}
                for it in items
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            resp = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except RequestException as e:
            raise SupplierDispatchFailed(f"Supplier API unreachable: {e.__class__.__name__}")
        if not 200 <= resp.status_code < 300:
            logger.error("Supplier API HTTP %s: %s", resp.status_code, resp.text[:800])
            raise SupplierDispatchFailed(f"Supplier API returned HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError:
            return {"raw": resp.text[:2000]}


class EmailSupplierDispatcher(SupplierDispatcher):
    method = "email"

    def __init__(self, to):
        self.to = to

    def _submit(self, items, customer, payment_id) -> dict:
        if not self.to:
            raise SupplierDispatchFailed("SUPPLIER_EMAIL is not configured")
        context = {
            "payment_id": payment_id,
            "customer": customer,
            "address": customer.shipping_address or {},
            "lines": order_lines(items),
            "supplier_total": to_major_units(sum(it.supplier_total for it in items)),
        }
        try:
            send_multipart(f"New order {payment_id}", "emails/supplier_order", context, [self.to])
        except Exception as e:
            logger.exception("Supplier order email failed for %s", payment_id)
            raise SupplierDispatchFailed("Supplier email could not be sent") from e
        return {"to": self.to}


def build_dispatcher() -> SupplierDispatcher:
    if getattr(settings, "SUPPLIER_API_KEY", ""):
        return ApiSupplierDispatcher(settings.SUPPLIER_API_URL, settings.SUPPLIER_API_KEY)
    return EmailSupplierDispatcher(getattr(settings, "SUPPLIER_EMAIL", ""))
