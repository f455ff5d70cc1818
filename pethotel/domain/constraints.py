"""Calendar-date rules for half-open stay ranges."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from pethotel.domain.errors import InvalidDateError, InvalidRangeError


DateLike = Union[str, date]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_MONTH = re.compile(r"^\d{4}-\d{2}$")


def parse_date(value: DateLike, field_name: str = "date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` string into a calendar date.

    ``datetime`` values are rejected: stays are counted in nights, never in
    time-of-day.
    """
    if isinstance(value, datetime):
        raise InvalidDateError(f"{field_name} must be a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or _ISO_DATE.fullmatch(value.strip()) is None:
        raise InvalidDateError(f"{field_name} must follow YYYY-MM-DD format")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDateError(f"{field_name} is not a valid calendar date: {value}") from exc


def parse_stay(check_in: DateLike, check_out: DateLike) -> tuple[date, date]:
    """Parse both ends and require ``check_in < check_out``."""
    start = parse_date(check_in, "check_in")
    end = parse_date(check_out, "check_out")
    if start >= end:
        raise InvalidRangeError(
            f"check_in ({start.isoformat()}) must be before check_out ({end.isoformat()})"
        )
    return start, end


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap: a stay ending on X never clashes with one starting on X."""
    return start_a < end_b and start_b < end_a


def covers(start: date, end: date, day: date) -> bool:
    return start <= day < end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each day of ``[start, end)``."""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def parse_month(value: str) -> tuple[date, date]:
    """Return the half-open day range of a ``YYYY-MM`` month."""
    if not isinstance(value, str) or _ISO_MONTH.fullmatch(value.strip()) is None:
        raise InvalidDateError("month must follow YYYY-MM format")
    year, month = (int(part) for part in value.strip().split("-"))
    if not 1 <= month <= 12:
        raise InvalidDateError(f"month is out of range: {value}")
    days_in_month = calendar.monthrange(year, month)[1]
    start = date(year, month, 1)
    return start, start + timedelta(days=days_in_month)


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def previous_month_key(day: date) -> str:
    first = day.replace(day=1)
    return month_key(first - timedelta(days=1))
