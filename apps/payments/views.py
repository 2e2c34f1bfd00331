import logging

from django.conf import settings
from django.shortcuts import redirect
from rest_framework import permissions, status, views
from rest_framework.response import Response

from apps.subscriptions.activation import ActivationRequest, activate_plan, load_context
from apps.subscriptions.intents import build_intent
from apps.subscriptions.tokens import issue_token, redeem_token
from core.exceptions import (
    ActivationContextError,
    ActivationFailed,
    GatewayError,
    PaymentConfigurationError,
    PaymentValidationError,
    TokenError,
    VerificationFailed,
)

from .models import PaymentLog
from .orders import create_razorpay_order, prepare_checkout
from .payu import activation_page_url, build_payment_form, get_payu_credentials, status_page_url
from .razorpay_client import get_razorpay_client
from .serializers import CreateOrderSerializer, PayUInitiateSerializer, RedeemTokenSerializer, VerifyPaymentSerializer
from .signatures import RazorpayVerifier, verify_payu_response

logger = logging.getLogger(__name__)


def _first_error(errors) -> str:
    if isinstance(errors, dict):
        for value in errors.values():
            return _first_error(value)
    if isinstance(errors, list) and errors:
        return _first_error(errors[0])
    return str(errors)


def _log_payload(provider: str, event: str, reference: str, payload) -> None:
    if hasattr(payload, "dict"):
        payload = payload.dict()
    PaymentLog.objects.create(provider=provider, event=event, reference=reference or "", raw_payload=dict(payload))


class RazorpayCreateOrderView(views.APIView):
    """
    Create a Razorpay order for a plan purchase. The browser opens Razorpay
    checkout with the returned handle.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = CreateOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            client = get_razorpay_client()
            checkout = prepare_checkout(
                amount=data["amount"],
                plan_id=data["planId"],
                user_id=data["userId"],
                user_type=data["userType"],
                teacher_id_for_plan=data.get("teacherIdForPlan"),
                referral_code_used=data.get("referralCodeUsed"),
                currency=data.get("currency"),
            )
            handle = create_razorpay_order(client, checkout, data.get("productDescription"))
        except (PaymentConfigurationError, PaymentValidationError, GatewayError) as exc:
            return Response({"error": str(exc.detail)}, status=exc.status_code)

        return Response(handle, status=status.HTTP_200_OK)


class RazorpayVerifyPaymentView(views.APIView):
    """
    Verify a Razorpay checkout result and activate the plan it paid for.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = VerifyPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"verified": False, "message": _first_error(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        data = serializer.validated_data
        _log_payload("razorpay", "verify", data["order_id"], request.data)

        try:
            claimed = build_intent(
                data["userType"],
                data["planId"],
                data["userId"],
                data.get("teacherIdForPlan"),
                data.get("referralCodeUsed"),
            )
        except ValueError as exc:
            return Response({"verified": False, "message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            client = get_razorpay_client()
            verifier = RazorpayVerifier(client, settings.RAZORPAY_KEY_SECRET)
            result = verifier.verify(data["order_id"], data["payment_id"], data["signature"], claimed)
        except PaymentConfigurationError:
            logger.error("Razorpay verification requested but the gateway is not configured")
            return Response(
                {"verified": False, "message": "Payment verification gateway not configured."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except GatewayError as exc:
            return Response({"verified": False, "message": str(exc.detail)}, status=exc.status_code)

        if not result.verified:
            return Response(
                {"verified": False, "message": VerificationFailed.default_detail},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            outcome = activate_plan(
                ActivationRequest(
                    intent=result.intent,
                    gross_amount=result.amount,
                    gateway="razorpay",
                    gateway_payment_id=data["payment_id"],
                    gateway_order_id=data["order_id"],
                )
            )
        except (ActivationContextError, ActivationFailed) as exc:
            return Response(
                {"verified": True, "activated": False, "message": str(exc.detail)},
                status=exc.status_code,
            )

        return Response(
            {"verified": True, "activated": True, "message": f"Payment verified successfully. {outcome.message}"},
            status=status.HTTP_200_OK,
        )


class PayUInitiateView(views.APIView):
    """
    Build the signed form the browser posts to PayU's hosted checkout.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = PayUInitiateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            credentials = get_payu_credentials()
            checkout = prepare_checkout(
                amount=data["amount"],
                plan_id=data["planId"],
                user_id=data["userId"],
                user_type=data["userType"],
                teacher_id_for_plan=data.get("teacherIdForPlan"),
                referral_code_used=data.get("referralCodeUsed"),
            )
        except (PaymentConfigurationError, PaymentValidationError) as exc:
            return Response({"error": str(exc.detail)}, status=exc.status_code)

        form = build_payment_form(
            credentials,
            checkout,
            firstname=data["firstname"],
            email=data["email"],
            phone=data["phone"],
            product_description=data.get("productDescription"),
        )
        if checkout.discount.applied:
            form["discount"] = checkout.discount.description
        return Response(form, status=status.HTTP_200_OK)


class PayUCallbackView(views.APIView):
    """
    PayU posts the transaction result here (surl and furl). A verified
    success becomes an activation token and the browser is sent to the
    activation page; anything else goes to the status page.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        fields = request.data.dict() if hasattr(request.data, "dict") else dict(request.data)
        txnid = fields.get("txnid") or ""
        _log_payload("payu", "callback", txnid, fields)

        try:
            credentials = get_payu_credentials()
        except PaymentConfigurationError as exc:
            return redirect(status_page_url("error", str(exc.detail)))

        result = verify_payu_response(fields, credentials.key, credentials.salt)
        if not result.verified:
            return redirect(
                status_page_url(
                    "failure",
                    "Payment verification failed (security check error).",
                    txnid=txnid or "unknown_txnid",
                )
            )

        payu_status = fields.get("status")
        if payu_status != "success":
            payu_error = fields.get("error_Message") or fields.get("Error") or fields.get("error")
            logger.warning("PayU payment %s for txnid %s: %s", payu_status, txnid, payu_error or "no error message")
            return redirect(status_page_url("failure", payu_error or f"Payment {payu_status}.", txnid=txnid))

        intent = result.intent
        try:
            context = load_context(intent)
        except ActivationContextError as exc:
            logger.error("Verified PayU payment %s cannot be activated: %s", txnid, exc.detail)
            return redirect(
                status_page_url(
                    "error",
                    f"Payment received but the plan could not be activated: {exc.detail} "
                    f"Contact support with Transaction ID: {txnid}.",
                    txnid=txnid,
                )
            )

        token = issue_token(
            intent,
            context,
            original_amount=result.amount,
            gateway="payu",
            gateway_order_id=txnid,
            gateway_payment_id=fields.get("mihpayid") or "",
        )
        plan_slug = context.content_plan.name if context.content_plan is not None else intent.plan_id
        return redirect(activation_page_url(token.token, plan_slug))

    def get(self, request, *args, **kwargs):
        # Cancellations can arrive as a GET without a hash; never treat them as paid.
        params = request.query_params
        logger.warning("PayU callback received via GET: %s", params.urlencode())
        payu_status = params.get("status") or "info"
        if params.get("mihpayid"):
            message = f"Payment process with PayU ID {params.get('mihpayid')} was not completed."
        else:
            message = (
                params.get("error_Message")
                or params.get("Error")
                or params.get("message")
                or "Payment process was interrupted."
            )
        return redirect(
            status_page_url(
                "failure" if payu_status == "success" else payu_status,
                message,
                txnid=params.get("txnid") or "N/A",
            )
        )


class ActivatePlanFromTokenView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = RedeemTokenSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"success": False, "message": "Activation token is missing or invalid."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            outcome = redeem_token(serializer.validated_data["token"])
        except (TokenError, ActivationContextError, ActivationFailed) as exc:
            return Response({"success": False, "message": str(exc.detail)}, status=exc.status_code)

        return Response({"success": True, "message": outcome.message}, status=status.HTTP_200_OK)
