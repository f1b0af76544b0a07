"""
LengthValidator - validates text values fit their storage column.
"""

from typing import Any

from .base_validator import BaseValidator


class LengthValidator(BaseValidator):
    """
    Validates that a text field is no longer than a maximum length.

    Parameters:
    - max_length: Largest accepted number of characters (inclusive)
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None
    ):
        super().__init__(field_name, parameters, rule_name)

        self.max_length = self.parameters.get("max_length")
        if self.max_length is None or self.max_length < 1:
            raise ValueError("LengthValidator requires a positive 'max_length' parameter")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            raise self.fail("Value is null")

        value_str = value if isinstance(value, str) else str(value)

        if len(value_str) > self.max_length:
            raise self.fail(f"Length {len(value_str)} exceeds maximum {self.max_length}")

    @property
    def rule_type(self) -> str:
        return "length"
