from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from django.conf import settings
from django.utils.text import slugify

from apps.subscriptions.intents import STUDENT_TEACHER_PLAN, TEACHER_PLATFORM_PLAN
from core.exceptions import PaymentConfigurationError

from .orders import Checkout, build_receipt
from .signatures import payu_request_hash

logger = logging.getLogger(__name__)

PRODUCT_LABELS = {
    TEACHER_PLATFORM_PLAN: "EduNexus Teacher Plan",
    STUDENT_TEACHER_PLAN: "EduNexus Teacher Content Plan",
}


@dataclass(frozen=True)
class PayUCredentials:
    key: str
    salt: str
    payment_url: str


def get_payu_credentials() -> PayUCredentials:
    key = settings.PAYU_MERCHANT_KEY
    salt = settings.PAYU_MERCHANT_SALT
    if not key or not salt:
        logger.error("PayU merchant key or salt is not configured")
        raise PaymentConfigurationError("Payment gateway server configuration error.")
    return PayUCredentials(key=key, salt=salt, payment_url=settings.PAYU_PAYMENT_URL)


def callback_url() -> str:
    return f"{settings.API_BASE_URL.rstrip('/')}/api/payments/payu/callback/"


def build_payment_form(
    credentials: PayUCredentials,
    checkout: Checkout,
    firstname: str,
    email: str,
    phone: str,
    product_description: Optional[str] = None,
) -> dict:
    """
    Fields the browser posts to PayU's hosted checkout. ``udf1``..``udf5``
    carry the order intent and come back untouched in the callback.
    """
    intent = checkout.intent
    fields = {
        "key": credentials.key,
        "txnid": build_receipt(intent),
        "amount": f"{checkout.amount:.2f}",
        "productinfo": product_description or f"{PRODUCT_LABELS.get(intent.user_type, 'EduNexus Plan')} - {intent.plan_id}",
        "firstname": (firstname or "").split(" ")[0] or "User",
        "email": email,
        "phone": re.sub(r"\D", "", phone or ""),
        "surl": callback_url(),
        "furl": callback_url(),
        "udf1": intent.plan_id,
        "udf2": intent.user_id,
        "udf3": intent.user_type,
        "udf4": intent.teacher_id_for_plan,
        "udf5": intent.referral_code_used,
    }
    fields["hash"] = payu_request_hash(fields, credentials.key, credentials.salt)
    logger.info("Prepared PayU payment %s for %s (%s)", fields["txnid"], intent.user_type, fields["amount"])
    return {"action": credentials.payment_url, "fields": fields}


def status_page_url(status: str, message: str, **params: str) -> str:
    query = {"status": status, "message": message}
    query.update({k: v for k, v in params.items() if v})
    return f"{settings.APP_BASE_URL.rstrip('/')}{settings.PAYMENT_STATUS_PATH}?{urlencode(query)}"


def activation_page_url(token: str, plan_slug: str) -> str:
    slug = slugify(plan_slug) or "plan"
    return f"{settings.APP_BASE_URL.rstrip('/')}{settings.ACTIVATE_PLAN_PATH}/{token}/{slug}"
