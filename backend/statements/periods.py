# statements/periods.py
"""
Statement period resolution.

resolve_period() turns query parameters into an inclusive date range.
Checked in this order:

1. mode=as_on_date          -> party creation date .. today
2. start_date + end_date    -> used verbatim (inclusive)
3. month + year             -> that calendar month (never a fiscal month)
4. financial_year           -> April 1 .. March 31 of that India FY
5. otherwise                -> same as as_on_date

Unparsable or inverted input does not fail the request; it is logged
and the as-on-date range is used instead, flagged with fallback=True.
"""

import calendar
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Mapping, Optional

from django.conf import settings
from django.utils import timezone

from billing.exceptions import InvalidRangeError
from billing.fiscal import financial_year_range

logger = logging.getLogger(__name__)

AS_ON_DATE = "as_on_date"
CUSTOM = "custom"
MONTH = "month"
FINANCIAL_YEAR = "financial_year"


@dataclass(frozen=True)
class ResolvedPeriod:
    start_date: date
    end_date: date
    mode: str = AS_ON_DATE
    fallback: bool = False

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


def epoch_floor() -> date:
    return datetime.strptime(settings.STATEMENT_EPOCH_FLOOR, "%Y-%m-%d").date()


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def parse_date(value, field: str) -> date:
    """Strict YYYY-MM-DD parsing."""
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRangeError(
            f"{field} must be a date in YYYY-MM-DD format.",
            details={"field": field, "value": str(value)},
        ) from None


def _parse_int(value, field: str, low: int, high: int) -> int:
    try:
        number = int(str(value).strip())
    except ValueError:
        raise InvalidRangeError(
            f"{field} must be an integer.",
            details={"field": field, "value": str(value)},
        ) from None
    if not low <= number <= high:
        raise InvalidRangeError(
            f"{field} must be between {low} and {high}.",
            details={"field": field, "value": number},
        )
    return number


def month_range(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def as_on_date_period(entity_created_at=None, today: Optional[date] = None) -> ResolvedPeriod:
    today = today or timezone.localdate()
    start = _as_date(entity_created_at) or epoch_floor()
    return ResolvedPeriod(start_date=start, end_date=today, mode=AS_ON_DATE)


def _explicit_period(query: Mapping) -> Optional[ResolvedPeriod]:
    if query.get("start_date") and query.get("end_date"):
        start = parse_date(query["start_date"], "start_date")
        end = parse_date(query["end_date"], "end_date")
        if start > end:
            raise InvalidRangeError(
                "start_date is after end_date.",
                details={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )
        return ResolvedPeriod(start_date=start, end_date=end, mode=CUSTOM)

    if query.get("month") and query.get("year"):
        month = _parse_int(query["month"], "month", 1, 12)
        year = _parse_int(query["year"], "year", 1, 9999)
        start, end = month_range(year, month)
        return ResolvedPeriod(start_date=start, end_date=end, mode=MONTH)

    if query.get("financial_year"):
        start_year = _parse_int(query["financial_year"], "financial_year", 1, 9998)
        start, end = financial_year_range(start_year)
        return ResolvedPeriod(start_date=start, end_date=end, mode=FINANCIAL_YEAR)

    return None


def resolve_period(
    query: Optional[Mapping] = None,
    entity_created_at=None,
    today: Optional[date] = None,
) -> ResolvedPeriod:
    """
    Resolve statement query parameters to an inclusive date range.

    `entity_created_at` is the party's creation timestamp (or date); when
    absent the configured epoch floor is used.
    """
    query = query or {}
    default = as_on_date_period(entity_created_at, today)

    if query.get("mode") == AS_ON_DATE:
        return default

    try:
        period = _explicit_period(query)
    except InvalidRangeError as exc:
        logger.warning(
            "Invalid statement range, using as-on-date range: %s",
            exc,
            extra={"details": exc.details},
        )
        return replace(default, fallback=True)

    return period or default
