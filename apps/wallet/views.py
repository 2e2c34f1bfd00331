from rest_framework import permissions, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authentication.permissions import IsAdminOrTeacher

from .models import WalletLedgerEntry
from .serializers import WalletLedgerEntrySerializer
from .services import ledger_balance


class WalletLedgerEntryViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = WalletLedgerEntrySerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrTeacher]
    filterset_fields = ["teacher"]
    ordering_fields = ["created_at", "amount"]

    def get_queryset(self):
        user = self.request.user
        qs = WalletLedgerEntry.objects.select_related("teacher", "subscription__student", "subscription__plan")
        if user.role == "admin":
            return qs
        return qs.filter(teacher=user)


class WalletBalanceView(APIView):
    """
    The teacher's cached balance next to the balance derived from the ledger.
    The two only differ if a reconciliation is pending.
    """

    permission_classes = [permissions.IsAuthenticated, IsAdminOrTeacher]

    def get(self, request, *args, **kwargs):
        user = request.user
        user.refresh_from_db(fields=["wallet_balance"])
        derived = ledger_balance(user)
        return Response(
            {
                "balance": str(user.wallet_balance),
                "ledger_balance": str(derived),
                "in_sync": user.wallet_balance == derived,
            }
        )
