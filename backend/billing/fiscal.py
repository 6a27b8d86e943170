"""
India financial-year helpers (April 1 - March 31).

Used for document-number labels and financial-year statement ranges.
Calendar month resolution does not go through here.
"""
from datetime import date

FY_START_MONTH = 4


def _fiscal_year_for_date(target_date: date, start_month: int = FY_START_MONTH) -> int:
    return target_date.year - 1 if target_date.month < start_month else target_date.year


def financial_year_start(target_date: date) -> date:
    return date(_fiscal_year_for_date(target_date), FY_START_MONTH, 1)


def financial_year_end(target_date: date) -> date:
    return date(_fiscal_year_for_date(target_date) + 1, FY_START_MONTH - 1, 31)


def financial_year_range(start_year: int) -> tuple[date, date]:
    """2024 -> (2024-04-01, 2025-03-31)."""
    return date(start_year, FY_START_MONTH, 1), date(start_year + 1, FY_START_MONTH - 1, 31)


def financial_year_label(target_date: date, fmt: str = "YY-YY") -> str:
    """
    Label the financial year containing target_date.

    YY-YY   -> "24-25"
    YYYY-YY -> "2024-25"
    YYYY    -> "2024"
    """
    start = _fiscal_year_for_date(target_date)
    end = start + 1
    if fmt == "YYYY-YY":
        return f"{start}-{end % 100:02d}"
    if fmt == "YYYY":
        return str(start)
    return f"{start % 100:02d}-{end % 100:02d}"
