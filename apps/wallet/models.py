import uuid

from django.db import models


class WalletLedgerEntry(models.Model):
    """
    Append-only credit to a teacher's wallet. One entry per paid student
    subscription at most; ``User.wallet_balance`` caches the running sum.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    teacher = models.ForeignKey(
        "authentication.User",
        on_delete=models.PROTECT,
        related_name="wallet_entries",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    subscription = models.OneToOneField(
        "subscriptions.SubscriptionRecord",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="wallet_entry",
    )
    description = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Wallet ledger entries"

    def __str__(self) -> str:
        return f"{self.teacher.email} +{self.amount}"
