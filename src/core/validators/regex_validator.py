"""
RegexValidator - validates field values against a regular expression pattern.
"""

import re
from re import Pattern
from typing import Any

from .base_validator import BaseValidator


class RegexValidator(BaseValidator):
    """
    Validates that a field value matches a regular expression pattern.

    Parameters:
    - pattern: Regular expression pattern (string or compiled Pattern)
    - ignore_case: Match case-insensitively (default False)

    Example:
        Reject cancellations (ids starting with "C" or "c"):
        RegexValidator("transaction_id", {"pattern": "^(?!C)", "ignore_case": True})
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None
    ):
        super().__init__(field_name, parameters, rule_name)

        pattern = self.parameters.get("pattern")
        if not pattern:
            raise ValueError("RegexValidator requires 'pattern' parameter")

        flags = re.IGNORECASE if self.parameters.get("ignore_case", False) else 0

        try:
            if isinstance(pattern, str):
                self.pattern: Pattern = re.compile(pattern, flags)
            elif isinstance(pattern, Pattern):
                self.pattern = pattern
            else:
                raise ValueError(f"Pattern must be string or compiled Pattern, got {type(pattern)}")
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if value is None:
            raise self.fail("Value is null")

        value_str = value if isinstance(value, str) else str(value)

        if not self.pattern.match(value_str):
            raise self.fail(f"Value '{value_str}' does not match pattern '{self.pattern.pattern}'")

    @property
    def rule_type(self) -> str:
        return "regex"
