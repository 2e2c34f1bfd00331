from django.urls import path

from .views import (
    ActivatePlanFromTokenView,
    PayUCallbackView,
    PayUInitiateView,
    RazorpayCreateOrderView,
    RazorpayVerifyPaymentView,
)

urlpatterns = [
    path("razorpay/create-order/", RazorpayCreateOrderView.as_view(), name="razorpay-create-order"),
    path("razorpay/verify-payment/", RazorpayVerifyPaymentView.as_view(), name="razorpay-verify-payment"),
    path("payu/initiate/", PayUInitiateView.as_view(), name="payu-initiate"),
    path("payu/callback/", PayUCallbackView.as_view(), name="payu-callback"),
    path("activate-plan-from-token/", ActivatePlanFromTokenView.as_view(), name="activate-plan-from-token"),
]
