from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import WalletBalanceView, WalletLedgerEntryViewSet

router = DefaultRouter()
router.register("entries", WalletLedgerEntryViewSet, basename="wallet-entry")

urlpatterns = [
    path("balance/", WalletBalanceView.as_view(), name="wallet-balance"),
] + router.urls
