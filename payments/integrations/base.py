import json
import logging
from dataclasses import dataclass, field

import requests
from requests import RequestException
from django.conf import settings

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


class GatewayError(Exception):
    status_code = 502

    def __init__(self, message: str = "Payment gateway request failed"):
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class Charge:
    id: str
    client_auth: str  # client secret, authorization URL or cashier URL
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentStatus:
    """What the gateway reports for one payment; amount in minor units."""

    payment_id: str
    status: str
    amount: int | None = None
    currency: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    payment_id: str
    succeeded: bool
    payload: dict = field(default_factory=dict)


class PaymentGateway:
    """One payment provider. Subclasses talk to the provider's REST API."""

    name = ""
    charge_currency = None  # None: charge in the requested currency

    def create_charge(self, amount: int, currency: str, customer, reference=None, metadata=None) -> Charge:
        raise NotImplementedError

    def retrieve_status(self, payment_id: str) -> PaymentStatus:
        raise NotImplementedError

    def parse_webhook(self, body: bytes, headers) -> "WebhookEvent | None":
        raise NotImplementedError


def timeout() -> float:
    return getattr(settings, "DROPSHIP_HTTP_TIMEOUT", 20)


def path_segment(value) -> str:
    """Escape a caller-supplied id for use as a single URL path segment."""
    return requests.utils.quote(str(value), safe="")


def check_echoed_id(provider: str, requested: str, returned) -> None:
    # the gateway must answer about the payment we asked for
    if str(returned or "") != requested:
        logger.error("%s status for %r came back for %r", provider, requested, returned)
        raise GatewayError(f"{provider} returned a different payment")


def minor_amount(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value))
    except ValueError:
        return None


def json_object(value, what="body") -> dict:
    """Require a decoded JSON value to be an object; ValueError otherwise."""
    if not isinstance(value, dict):
        raise ValueError(f"webhook {what} is not a JSON object")
    return value


def nested_object(parent: dict, key: str) -> dict:
    value = parent.get(key)
    return {} if value is None else json_object(value, key)


def load_event(body: bytes) -> dict:
    return json_object(json.loads(body.decode("utf-8")))


def request_json(method: str, url: str, *, provider: str, **kwargs) -> dict:
    """Perform an HTTP call and return the decoded JSON body.

    Network failures, timeouts and non-2xx answers all become GatewayError;
    the response body goes to the log only.
    """
    kwargs.setdefault("timeout", timeout())
    try:
        resp = requests.request(method, url, **kwargs)
    except RequestException as e:
        logger.warning("%s request to %s failed: %s", provider, url, e)
        raise GatewayError(f"{provider} request failed")
    try:
        data = resp.json()
    except ValueError:
        data = {"raw": resp.text}
    if not 200 <= resp.status_code < 300:
        logger.error("%s HTTP %s from %s: %s", provider, resp.status_code, url, json.dumps(data)[:800])
        raise GatewayError(f"{provider} returned HTTP {resp.status_code}")
    return data
