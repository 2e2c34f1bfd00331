from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import requests
from django.conf import settings

from core.exceptions import GatewayError, PaymentConfigurationError

logger = logging.getLogger(__name__)


class RazorpayClient:
    """
    Thin wrapper over the Razorpay Orders API.

    One instance holds one authenticated ``requests.Session`` and is reused
    across requests; every call is bounded by ``timeout`` seconds.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not key_id or not key_secret:
            raise PaymentConfigurationError("Razorpay keys are not configured.")
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (key_id, key_secret)
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.exception("Razorpay %s %s failed", method, path)
            raise GatewayError("Could not reach the payment gateway.") from exc

        if resp.status_code not in (200, 201):
            description = None
            try:
                description = (resp.json().get("error") or {}).get("description")
            except ValueError:
                pass
            logger.error("Razorpay %s %s returned %s: %s", method, path, resp.status_code, resp.text[:500])
            raise GatewayError(description or "The payment gateway rejected the request.")

        return resp.json() or {}

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict[str, str]) -> dict:
        return self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            },
        )

    def fetch_order(self, order_id: str) -> dict:
        return self._request("GET", f"/orders/{order_id}")


@lru_cache(maxsize=1)
def get_razorpay_client() -> RazorpayClient:
    return RazorpayClient(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_BASE_URL,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
    )
