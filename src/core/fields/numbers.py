"""
Numeric coercion for quantities, prices and customer ids.
"""

import math
from decimal import Decimal
from typing import Any


def to_number(value: Any) -> float | None:
    """
    Coerce a cell to a finite float.

    Returns:
        The number, or None when the cell is missing, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int | float | Decimal):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def to_int(value: Any) -> int | None:
    """Coerce a cell to an int; non-integral numbers are rejected."""
    number = to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)
