"""
Error taxonomy for the payment pipeline and the DRF exception handler that
renders it.

Services raise these; views either let them propagate to the handler or
translate them into the endpoint-specific body (``verified`` / ``success``).
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def payment_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    if response.status_code >= 500:
        view = context.get("view")
        logger.error(
            "Request failed in %s: %s",
            view.__class__.__name__ if view is not None else "unknown view",
            exc,
        )

    if isinstance(exc, APIException) and isinstance(response.data, dict) and "detail" in response.data:
        response.data.setdefault("code", exc.default_code)
    return response


class PaymentConfigurationError(APIException):
    """Gateway keys or other required settings are missing."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Payment gateway is not configured."
    default_code = "configuration_error"


class PaymentValidationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid payment request."
    default_code = "invalid_payment_request"


class VerificationFailed(APIException):
    """
    Signature or metadata mismatch. The message is deliberately the same for
    every cause.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Payment verification failed."
    default_code = "verification_failed"


class GatewayError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The payment gateway could not process the request."
    default_code = "gateway_error"


class ActivationContextError(APIException):
    """Activation was asked to run without the context it needs."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Missing or invalid activation context."
    default_code = "activation_context"


class ActivationFailed(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Plan activation failed."
    default_code = "activation_failed"


class TokenError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Activation link is not valid."
    default_code = "token_invalid"


class TokenNotFound(TokenError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Activation link invalid or expired."
    default_code = "token_not_found"


class TokenAlreadyUsed(TokenError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This activation link has already been used."
    default_code = "token_used"


class TokenExpired(TokenError):
    status_code = status.HTTP_410_GONE
    default_detail = "This activation link has expired."
    default_code = "token_expired"
