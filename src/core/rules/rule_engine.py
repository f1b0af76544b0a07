"""
Rule engine for orchestrating filter rules on record payloads.

The rule engine loads rule configurations, groups them by filter stage,
applies them to payloads, and produces validation results.
"""

from typing import Any

from src.core.models import ValidationResult
from src.core.validators import (
    BaseValidator,
    LengthValidator,
    RangeValidator,
    RegexValidator,
    RequiredFieldValidator,
    ValidationError,
)


class RuleEngine:
    """
    Orchestrates filter rules on record payloads.

    Rules are applied per stage in configuration order. Every rule of the
    stage runs, so a result lists all failures rather than the first one.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "range": RangeValidator,
        "length": LengthValidator,
        "regex": RegexValidator,
    }

    def __init__(self, rules: list[dict[str, Any]]):
        """
        Initialize the rule engine with filter rules.

        Args:
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (required_field, range, regex, length)
                   - field_name: str
                   - stage: str
                   - parameters: Dict[str, Any] (optional)
                   - enabled: bool (default True)
        """
        self.rules = rules
        self.validators: dict[str, list[BaseValidator]] = {}
        self._build_validators()

    def _build_validators(self) -> None:
        """Build validator instances from rule configurations."""
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule["field_name"], rule.get("parameters", {}), rule_name)
            except ValueError as e:
                raise ValueError(f"Failed to create validator for rule '{rule_name}': {e}") from e

            self.validators.setdefault(rule["stage"], []).append(validator)

    def validate_stage(
        self,
        stage: str,
        payload: dict[str, Any],
        row_number: int | None = None
    ) -> ValidationResult:
        """
        Validate a payload against the rules of one stage.

        Args:
            stage: Filter stage whose rules apply
            payload: Field values keyed by canonical name
            row_number: Position of the record in the extract

        Returns:
            ValidationResult containing pass/fail status and failed rule names
        """
        passed_rules = []
        failed_rules = []
        error_messages = []

        for validator in self.validators.get(stage, []):
            value = payload.get(validator.field_name)
            try:
                validator.validate(value, payload)
                passed_rules.append(validator.rule_name)
            except ValidationError as e:
                failed_rules.append(validator.rule_name)
                error_messages.append(e.message)

        return ValidationResult(
            row_number=row_number,
            stage=stage,
            passed=len(failed_rules) == 0,
            passed_rules=passed_rules,
            failed_rules=failed_rules,
            error_messages=error_messages,
        )

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts per stage and type
        """
        return {
            "total_rules": sum(len(v) for v in self.validators.values()),
            "rules_by_stage": {stage: len(v) for stage, v in self.validators.items()},
            "rules_by_type": self._count_by_type(),
        }

    def _count_by_type(self) -> dict[str, int]:
        """Count validators by rule type."""
        counts: dict[str, int] = {}
        for validators in self.validators.values():
            for validator in validators:
                counts[validator.rule_type] = counts.get(validator.rule_type, 0) + 1
        return counts
