"""
Pipeline and filter rule configuration.

Loads run settings from YAML files and turns the business rules into the
ordered rule list executed by the record filter.
"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as SettingsValidationError

from src.core.models import BusinessRules, PipelineSettings

# Filter stages, in execution order
STAGE_REQUIRED = "required_fields"
STAGE_COERCION = "type_coercion"
STAGE_BUSINESS = "business_rules"
STAGE_OUTLIER = "outlier_bounds"

FILTER_STAGES = (STAGE_REQUIRED, STAGE_COERCION, STAGE_BUSINESS, STAGE_OUTLIER)

REQUIRED_FIELDS = (
    "transaction_id",
    "customer_id",
    "product_code",
    "timestamp",
    "country",
    "quantity",
    "unit_price",
)


class PipelineConfigLoader:
    """
    Loads pipeline settings from YAML configuration files.

    Expected YAML format (every section optional):
    ```yaml
    business_rules:
      cancellation_prefix: "C"
      max_quantity: 10000
      max_unit_price: 1000.0
      max_line_revenue: 50000.0
      max_code_length: 20
      max_country_length: 100
      country_aliases:
        Eire: Ireland
        Usa: United States

    chunk_sizes:
      customers: 2000
      products: 1000
      orders: 3000
      order_lines: 5000

    segments:
      top_tier: 5000
      second_tier: 1000
      third_tier: 500

    truncate_before_load: true
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    def load(self) -> PipelineSettings:
        """
        Load and validate pipeline settings.

        Returns:
            PipelineSettings with file values over defaults

        Raises:
            ValueError: If the YAML is not a mapping or a value is invalid
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if config is None:
            return PipelineSettings()

        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping of settings")

        try:
            return PipelineSettings.model_validate(config)
        except SettingsValidationError as e:
            raise ValueError(f"Invalid pipeline configuration in {self.config_path}: {e}") from e


class RuleConfigBuilder:
    """
    Programmatically build filter rule configurations.
    """

    def __init__(self):
        """Initialize empty rule configuration."""
        self.rules: list[dict[str, Any]] = []

    def _add(
        self,
        rule_name: str,
        rule_type: str,
        field_name: str,
        parameters: dict[str, Any],
        stage: str
    ) -> "RuleConfigBuilder":
        if stage not in FILTER_STAGES:
            raise ValueError(f"Unknown filter stage: {stage}")
        self.rules.append({
            "rule_name": rule_name,
            "rule_type": rule_type,
            "field_name": field_name,
            "parameters": parameters,
            "stage": stage,
            "enabled": True,
        })
        return self

    def add_required_field(self, field_name: str, stage: str = STAGE_REQUIRED) -> "RuleConfigBuilder":
        """Add a required field rule."""
        return self._add(f"{field_name}_required", "required_field", field_name, {}, stage)

    def add_range(
        self,
        field_name: str,
        stage: str,
        rule_name: str | None = None,
        min_value: float | None = None,
        max_value: float | None = None,
        min_exclusive: float | None = None
    ) -> "RuleConfigBuilder":
        """Add a range validation rule."""
        params = {}
        if min_value is not None:
            params["min"] = min_value
        if max_value is not None:
            params["max"] = max_value
        if min_exclusive is not None:
            params["min_exclusive"] = min_exclusive

        return self._add(rule_name or f"{field_name}_range", "range", field_name, params, stage)

    def add_max_length(
        self,
        field_name: str,
        max_length: int,
        stage: str = STAGE_COERCION,
        rule_name: str | None = None
    ) -> "RuleConfigBuilder":
        """Add a maximum text length rule."""
        return self._add(
            rule_name or f"{field_name}_max_length",
            "length",
            field_name,
            {"max_length": max_length},
            stage,
        )

    def add_regex(
        self,
        field_name: str,
        pattern: str,
        stage: str,
        rule_name: str | None = None,
        ignore_case: bool = False
    ) -> "RuleConfigBuilder":
        """Add a regex validation rule."""
        return self._add(
            rule_name or f"{field_name}_regex",
            "regex",
            field_name,
            {"pattern": pattern, "ignore_case": ignore_case},
            stage,
        )

    def build(self) -> list[dict[str, Any]]:
        """Build and return the rule configuration."""
        return self.rules


def build_filter_rules(rules: BusinessRules) -> list[dict[str, Any]]:
    """
    Translate business rules into the record filter's rule list.

    Args:
        rules: Thresholds and the cancellation marker

    Returns:
        Rule dictionaries for the four filter stages
    """
    builder = RuleConfigBuilder()

    for field_name in REQUIRED_FIELDS:
        builder.add_required_field(field_name)

    for field_name in ("transaction_id", "product_code"):
        builder.add_max_length(field_name, rules.max_code_length)
    builder.add_max_length("country", rules.max_country_length)

    builder.add_regex(
        "transaction_id",
        f"^(?!{re.escape(rules.cancellation_prefix)})",
        stage=STAGE_BUSINESS,
        rule_name="transaction_not_cancelled",
        ignore_case=True,
    )
    builder.add_range("quantity", STAGE_BUSINESS, "quantity_positive", min_exclusive=0)
    builder.add_range("unit_price", STAGE_BUSINESS, "unit_price_positive", min_exclusive=0)
    builder.add_range("customer_id", STAGE_BUSINESS, "customer_id_positive", min_exclusive=0)

    builder.add_range("quantity", STAGE_OUTLIER, "quantity_within_bound", max_value=rules.max_quantity)
    builder.add_range("unit_price", STAGE_OUTLIER, "unit_price_within_bound", max_value=rules.max_unit_price)
    builder.add_range("revenue", STAGE_OUTLIER, "revenue_within_bound", max_value=rules.max_line_revenue)

    return builder.build()
