"""
Base validator interface for record filter rules.

All validators must inherit from BaseValidator and implement the validate() method.
"""

from abc import ABC, abstractmethod
from typing import Any


class ValidationError(Exception):
    """Raised when a filter rule rejects a record."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator checks one field of a record payload against one rule
    (required_field, range, regex).
    """

    def __init__(
        self,
        field_name: str,
        parameters: dict[str, Any] | None = None,
        rule_name: str | None = None
    ):
        """
        Initialize validator.

        Args:
            field_name: Name of the payload field to check
            parameters: Rule-specific parameters (e.g., min/max for range)
            rule_name: Name reported on failure (defaults to "<field>_<type>")
        """
        self.field_name = field_name
        self.parameters = parameters or {}
        self.rule_name = rule_name or f"{field_name}_{self.rule_type}"

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Validate a value against this rule.

        Args:
            value: The field value to validate
            record: The entire payload (for context-dependent validation)

        Raises:
            ValidationError: If validation fails
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def fail(self, message: str) -> ValidationError:
        return ValidationError(self.rule_name, self.field_name, message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rule={self.rule_name}, field={self.field_name}, params={self.parameters})"
