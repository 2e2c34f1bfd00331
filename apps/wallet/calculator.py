from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def net_teacher_share(gross: Decimal, commission_rate: Decimal) -> Decimal:
    """
    Amount credited to a teacher after the platform keeps ``commission_rate``
    percent of ``gross``.
    """
    gross = Decimal(gross)
    commission_rate = Decimal(commission_rate)
    if gross < 0:
        raise ValueError("Gross amount cannot be negative")
    if commission_rate < 0 or commission_rate > 100:
        raise ValueError("Commission rate must be between 0 and 100")

    commission = (gross * commission_rate) / Decimal("100")
    return (gross - commission).quantize(CENTS, rounding=ROUND_HALF_UP)
