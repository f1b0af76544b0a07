"""
RequiredFieldValidator - ensures a raw field is present and not blank.
"""

import math
from typing import Any

from .base_validator import BaseValidator


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field carries a value.

    Fails if:
    - Field is missing from the payload
    - Field value is None or a float NaN (empty numeric cell)
    - Field value is a blank string
    """

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if self.field_name not in record:
            raise self.fail("Field is missing from record")

        if value is None:
            raise self.fail("Field value is null")

        if isinstance(value, float) and math.isnan(value):
            raise self.fail("Field value is NaN")

        if isinstance(value, str) and value.strip() == "":
            raise self.fail("Field value is empty string")

    @property
    def rule_type(self) -> str:
        return "required_field"
