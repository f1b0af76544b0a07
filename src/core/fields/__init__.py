"""
Field-level normalization of raw extract values.
"""

from .field_normalizer import FieldNormalizer
from .numbers import to_int, to_number
from .text import clean_text, normalize_country, normalize_description, title_case
from .timestamps import SPREADSHEET_EPOCH, resolve_timestamp

__all__ = [
    "FieldNormalizer",
    "resolve_timestamp",
    "SPREADSHEET_EPOCH",
    "clean_text",
    "title_case",
    "normalize_country",
    "normalize_description",
    "to_number",
    "to_int",
]
