"""
Decimal helpers shared by pricing, payments and statements.

Amounts are carried as Decimal end to end and rounded to paise only at
the point of output, half away from zero.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing.exceptions import ArithmeticInputError

logger = logging.getLogger(__name__)

MONEY_Q = Decimal("0.01")
ZERO = Decimal("0.00")


def round_money(value) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str = "amount", required: bool = False) -> Decimal:
    """
    Parse arithmetic input into a finite Decimal.

    Absent optional values (None or "") are zero. Absent required values,
    booleans, unparsable strings, NaN and infinities raise
    ArithmeticInputError.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        if required:
            raise ArithmeticInputError(f"{field} is required.", field=field)
        return Decimal("0")

    if isinstance(value, bool):
        logger.info("Rejected boolean arithmetic input", extra={"field": field})
        raise ArithmeticInputError(f"{field} must be a number.", field=field, value=value)

    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            logger.info(
                "Rejected non-numeric arithmetic input",
                extra={"field": field, "value": str(value)},
            )
            raise ArithmeticInputError(
                f"{field} must be a number.", field=field, value=value
            ) from None

    if not parsed.is_finite():
        logger.info(
            "Rejected non-finite arithmetic input",
            extra={"field": field, "value": str(value)},
        )
        raise ArithmeticInputError(f"{field} must be a finite number.", field=field, value=value)

    return parsed
