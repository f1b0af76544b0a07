"""
Text normalization for identifiers, descriptions and country names.
"""

import re
from typing import Any

# A run of letters, optionally followed by an apostrophe suffix ("People's")
_WORD = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?")


def clean_text(value: Any) -> str | None:
    """
    Trim a cell to text; None for missing or blank cells.

    Integral floats ("536365.0" from numeric-inferred columns) lose their
    trailing ".0".
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def title_case(text: str) -> str:
    """Capitalize the first letter of every word and lower-case the rest."""
    return _WORD.sub(lambda match: match.group(0).capitalize(), text)


def normalize_country(value: Any, aliases: dict[str, str]) -> str | None:
    """
    Trim, title-case and map a country name through the alias table.

    Example:
        >>> normalize_country("  EIRE ", {"Eire": "Ireland"})
        'Ireland'
    """
    text = clean_text(value)
    if text is None:
        return None
    titled = title_case(text)
    return aliases.get(titled, titled)


def normalize_description(value: Any, sentinel: str) -> str:
    """Trimmed description, or the sentinel when empty or missing."""
    return clean_text(value) or sentinel
