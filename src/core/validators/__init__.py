"""
Validation rule implementations.

Provides validators for required fields, numeric ranges, text lengths and regex patterns
used by the record filter stages.
"""

from .base_validator import BaseValidator, ValidationError
from .length_validator import LengthValidator
from .range_validator import RangeValidator
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "RequiredFieldValidator",
    "RangeValidator",
    "LengthValidator",
    "RegexValidator",
]
