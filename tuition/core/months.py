"""Billing month helpers. A billing month is a ``YYYY-MM`` string."""

import re
from datetime import date
from typing import List, Tuple

from fastapi import status

from tuition.core.exceptions import ServiceError

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
_MONTH_RE = re.compile(MONTH_PATTERN)


def parse_month(month: str) -> Tuple[int, int]:
    """Return (year, month) for a ``YYYY-MM`` string. Raises ServiceError (400) on bad input."""
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise ServiceError("month must be in YYYY-MM format", status.HTTP_400_BAD_REQUEST)
    year, m = month.split("-")
    return int(year), int(m)


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def previous_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 1:
        return format_month(year - 1, 12)
    return format_month(year, m - 1)


def next_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 12:
        return format_month(year + 1, 1)
    return format_month(year, m + 1)


def month_bounds(month: str) -> Tuple[date, date]:
    """Half-open date range [first day of month, first day of next month)."""
    year, m = parse_month(month)
    ny, nm = parse_month(next_month(month))
    return date(year, m, 1), date(ny, nm, 1)


def month_of(day: date) -> str:
    return format_month(day.year, day.month)


def current_month() -> str:
    return month_of(date.today())


def month_range(start: str, end: str) -> List[str]:
    """Inclusive list of months from start to end; empty when end < start."""
    parse_month(end)
    months: List[str] = []
    cursor = start
    while cursor <= end:
        months.append(cursor)
        cursor = next_month(cursor)
    return months
