from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import F, Sum

from apps.authentication.models import User

from .models import WalletLedgerEntry

logger = logging.getLogger(__name__)


def credit_wallet(
    teacher: User,
    amount: Decimal,
    source=None,
    description: str = "",
    gross_amount: Optional[Decimal] = None,
    commission_rate: Optional[Decimal] = None,
) -> tuple[WalletLedgerEntry, bool]:
    """
    Append a ledger entry and bump the cached balance by the same amount in
    one transaction.

    ``source`` is the SubscriptionRecord being paid out. A source that already
    has an entry is not credited again; the existing entry is returned with
    ``created=False``.
    """
    amount = Decimal(amount)
    if amount < 0:
        raise ValueError("Wallet credit cannot be negative")

    defaults = {
        "teacher": teacher,
        "amount": amount,
        "gross_amount": gross_amount,
        "commission_rate": commission_rate,
        "description": description,
    }

    with transaction.atomic():
        if source is not None:
            entry, created = WalletLedgerEntry.objects.get_or_create(subscription=source, defaults=defaults)
        else:
            entry, created = WalletLedgerEntry.objects.create(**defaults), True

        if created:
            User.objects.filter(pk=teacher.pk).update(wallet_balance=F("wallet_balance") + amount)
            logger.info("Credited %s to wallet of teacher %s (entry %s)", amount, teacher.pk, entry.pk)
        else:
            logger.info("Wallet entry %s already exists for source %s; not crediting again", entry.pk, source.pk)

    return entry, created


def ledger_balance(teacher: User) -> Decimal:
    total = WalletLedgerEntry.objects.filter(teacher=teacher).aggregate(total=Sum("amount"))["total"]
    return total or Decimal("0.00")
