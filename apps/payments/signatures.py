"""
Payment authenticity checks, one strategy per gateway.

* Razorpay returns ``order_id``, ``payment_id`` and an HMAC-SHA256 signature
  to the browser; the server recomputes the HMAC and then re-reads the order
  to compare its notes with what the caller claims.
* PayU posts the transaction back to the server with a SHA-512 "reverse hash"
  over a fixed field order.

Neither strategy says which field failed; callers get a single verdict.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from apps.subscriptions.intents import TEACHER_PLATFORM_PLAN, PlanOrder, build_intent, intent_from_notes, same_order

from .razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    intent: Optional[PlanOrder] = None
    amount: Optional[Decimal] = None


FAILED = VerificationResult(verified=False)


def razorpay_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_razorpay_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    expected = razorpay_signature(order_id, payment_id, secret)
    received = (signature or "").strip()
    return hmac.compare_digest(expected.encode(), received.encode())


class RazorpayVerifier:
    def __init__(self, client: RazorpayClient, secret: str) -> None:
        self.client = client
        self.secret = secret

    def verify(self, order_id: str, payment_id: str, signature: str, claimed: PlanOrder) -> VerificationResult:
        if not verify_razorpay_signature(order_id, payment_id, signature, self.secret):
            logger.warning("Razorpay signature mismatch for order %s", order_id)
            return FAILED

        # GatewayError propagates: an unreachable gateway is not a forgery.
        order = self.client.fetch_order(order_id)
        if order.get("status") != "paid":
            logger.warning("Razorpay order %s is %s, not paid", order_id, order.get("status"))
            return FAILED

        try:
            stored = intent_from_notes(order.get("notes"))
        except ValueError:
            logger.warning("Razorpay order %s carries unusable notes", order_id)
            return FAILED
        if not same_order(claimed, stored):
            logger.warning("Razorpay order %s notes do not match the claimed order", order_id)
            return FAILED

        paid_minor = order.get("amount_paid") or order.get("amount") or 0
        try:
            amount = Decimal(int(paid_minor)) / Decimal("100")
        except (TypeError, ValueError):
            return FAILED
        return VerificationResult(verified=True, intent=stored, amount=amount)


def _field(fields: Mapping[str, object], name: str) -> str:
    value = fields.get(name)
    return "" if value is None else str(value)


def payu_request_hash(fields: Mapping[str, object], key: str, salt: str) -> str:
    """
    ``sha512(key|txnid|amount|productinfo|firstname|email|udf1..udf5|||||salt)``
    """
    parts = [
        key,
        _field(fields, "txnid"),
        _field(fields, "amount"),
        _field(fields, "productinfo"),
        _field(fields, "firstname"),
        _field(fields, "email"),
        _field(fields, "udf1"),
        _field(fields, "udf2"),
        _field(fields, "udf3"),
        _field(fields, "udf4"),
        _field(fields, "udf5"),
        "",  # udf6
        "",  # udf7
        "",  # udf8
        "",  # udf9
        "",  # udf10
        salt,
    ]
    return hashlib.sha512("|".join(parts).encode()).hexdigest()


def payu_reverse_hash(fields: Mapping[str, object], key: str, salt: str) -> str:
    """
    ``sha512(salt|status|||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key)``

    The five empty slots are udf10 down to udf6.
    """
    parts = [
        salt,
        _field(fields, "status"),
        "",  # udf10
        "",  # udf9
        "",  # udf8
        "",  # udf7
        "",  # udf6
        _field(fields, "udf5"),
        _field(fields, "udf4"),
        _field(fields, "udf3"),
        _field(fields, "udf2"),
        _field(fields, "udf1"),
        _field(fields, "email"),
        _field(fields, "firstname"),
        _field(fields, "productinfo"),
        _field(fields, "amount"),
        _field(fields, "txnid"),
        key,
    ]
    return hashlib.sha512("|".join(parts).encode()).hexdigest()


def verify_payu_response(fields: Mapping[str, object], key: str, salt: str) -> VerificationResult:
    expected = payu_reverse_hash(fields, key, salt)
    received = _field(fields, "hash").strip()
    if not hmac.compare_digest(expected.encode(), received.encode()):
        logger.warning("PayU reverse hash mismatch for txnid %s", _field(fields, "txnid"))
        return FAILED

    try:
        intent = build_intent(
            # Older checkouts only ever sold teacher platform plans and left udf3 empty.
            _field(fields, "udf3") or TEACHER_PLATFORM_PLAN,
            _field(fields, "udf1"),
            _field(fields, "udf2"),
            _field(fields, "udf4"),
            _field(fields, "udf5"),
        )
        amount = Decimal(_field(fields, "amount"))
    except (ValueError, InvalidOperation):
        logger.warning("PayU response for txnid %s carries unusable order fields", _field(fields, "txnid"))
        return FAILED
    if not amount.is_finite() or amount <= 0:
        return FAILED
    return VerificationResult(verified=True, intent=intent, amount=amount)
