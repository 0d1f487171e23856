import logging

import requests
from requests import RequestException
from django.conf import settings

from orders.exceptions import RateUnavailable

logger = logging.getLogger(__name__)


class ExchangeRateClient:
    """Spot rates from exchangerate-api.com (``/v6/<key>/latest/<base>``)."""

    def __init__(self, api_key=None, base_url=None, timeout=None):
        self.api_key = settings.EXCHANGE_RATE_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.EXCHANGE_RATE_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.DROPSHIP_HTTP_TIMEOUT

    def get_rate(self, base: str, target: str) -> float:
        if not self.api_key:
            raise RateUnavailable("Missing EXCHANGE_RATE_API_KEY")
        url = f"{self.base_url}/{self.api_key}/latest/{base}"
        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (RequestException, ValueError) as e:
            logger.warning("Exchange rate lookup %s->%s failed: %s", base, target, e)
            raise RateUnavailable(f"Could not get {target} rate")
        rate = (data.get("conversion_rates") or {}).get(target)
        try:
            rate = float(rate)
        except (TypeError, ValueError):
            rate = 0.0
        if not rate > 0:
            logger.error("Exchange rate response had no usable %s figure", target)
            raise RateUnavailable(f"Could not get {target} rate")
        return rate
