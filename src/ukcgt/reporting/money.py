from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MoneyLike = str | Decimal

_MONEY_Q = Decimal("0.01")
ZERO = Decimal("0")
ZERO_MONEY = Decimal("0.00")


def quantize_money(value: Decimal, places: MoneyLike = _MONEY_Q) -> Decimal:
    """Round half-up to pence (or ``places``), the statutory reporting granularity."""
    quant = Decimal(places)
    return value.quantize(quant, rounding=ROUND_HALF_UP)


def per_share(amount: Decimal, quantity: Decimal) -> Decimal:
    """Money per unit rounded to pence; zero quantity yields zero."""
    if quantity == 0:
        return ZERO_MONEY
    return quantize_money(amount / quantity)


def abs_decimal(value: Decimal) -> Decimal:
    """Return the absolute value using Decimal.copy_abs for stability."""
    return value.copy_abs()


def decimal_str(value: Decimal | None) -> str | None:
    """Render a Decimal for JSON output without exponent notation."""
    if value is None:
        return None
    return format(value, "f")
