import logging
from decimal import Decimal

from celery import shared_task
from django.db import transaction
from django.db.models import DecimalField, OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from apps.authentication.models import User

from .models import WalletLedgerEntry

logger = logging.getLogger(__name__)


@shared_task
def reconcile_wallet_balances() -> int:
    """
    Rewrite any teacher's cached ``wallet_balance`` that has drifted from the
    sum of their ledger entries. Returns the number of teachers repaired.
    """
    ledger_totals = (
        WalletLedgerEntry.objects.filter(teacher=OuterRef("pk"))
        .values("teacher")
        .annotate(total=Sum("amount"))
        .values("total")
    )
    teachers = User.objects.filter(role="teacher").annotate(
        ledger_total=Coalesce(
            Subquery(ledger_totals, output_field=DecimalField(max_digits=12, decimal_places=2)),
            Value(Decimal("0")),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        )
    )

    repaired = 0
    for teacher in teachers.iterator():
        if teacher.wallet_balance == teacher.ledger_total:
            continue
        logger.error(
            "Wallet drift for teacher %s: cached %s, ledger %s",
            teacher.pk,
            teacher.wallet_balance,
            teacher.ledger_total,
        )
        with transaction.atomic():
            locked = User.objects.select_for_update().get(pk=teacher.pk)
            total = WalletLedgerEntry.objects.filter(teacher=locked).aggregate(total=Sum("amount"))["total"]
            locked.wallet_balance = total or Decimal("0")
            locked.save(update_fields=["wallet_balance"])
        repaired += 1
    return repaired
