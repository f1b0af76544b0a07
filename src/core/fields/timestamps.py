"""
Invoice timestamp resolution.

The extract carries invoice dates in four encodings depending on how it was
produced: resolved date-times, date-only values, spreadsheet day-count
serials, and month/day/year hour:minute text.
"""

import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

# Day zero of the spreadsheet serial date system
SPREADSHEET_EPOCH = date(1899, 12, 30)

TEXT_FORMATS = (
    "%m/%d/%Y %H:%M",
    "%m/%d/%y %H:%M",
    "%m-%d-%Y %H:%M",
)


def from_serial(serial: float) -> datetime | None:
    """
    Convert a spreadsheet day-count serial to midnight of that calendar day.

    The fractional part is discarded.
    """
    if not math.isfinite(serial):
        return None
    try:
        day = SPREADSHEET_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None
    return datetime.combine(day, time.min)


def from_text(text: str) -> datetime | None:
    """Parse month/day/year hour:minute text, e.g. "12/1/2010 8:26"."""
    text = text.strip()
    if not text:
        return None
    for fmt in TEXT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def resolve_timestamp(value: Any) -> datetime | None:
    """
    Resolve any supported encoding to a datetime.

    Args:
        value: Raw invoice date cell

    Returns:
        The resolved datetime, or None when no encoding matches
    """
    if value is None or isinstance(value, bool):
        return None

    # datetime is a subclass of date, so it must be checked first
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, int | float | Decimal):
        return from_serial(float(value))
    if isinstance(value, str):
        return from_text(value)

    return None
