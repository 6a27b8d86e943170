"""Whole-rupee rounding for invoice totals."""
from decimal import ROUND_HALF_EVEN, Decimal

from billing.money import round_money, to_decimal


def round_to_rupee(amount) -> tuple[Decimal, Decimal]:
    """
    Round to the nearest rupee with banker's rounding.

    Returns (rounded, round_off) where round_off = rounded - amount;
    positive means the total was rounded up. 2.50 -> 2, 3.50 -> 4.
    """
    value = to_decimal(amount, "amount", required=True)
    rounded = value.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
    return round_money(rounded), round_money(rounded - value)
