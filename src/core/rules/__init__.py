"""
Filter rule engine, record filter and configuration management.
"""

from .record_filter import RecordFilter, StageOutcome
from .rule_config import (
    FILTER_STAGES,
    REQUIRED_FIELDS,
    STAGE_BUSINESS,
    STAGE_COERCION,
    STAGE_OUTLIER,
    STAGE_REQUIRED,
    PipelineConfigLoader,
    RuleConfigBuilder,
    build_filter_rules,
)
from .rule_engine import RuleEngine

__all__ = [
    "RuleEngine",
    "RecordFilter",
    "StageOutcome",
    "PipelineConfigLoader",
    "RuleConfigBuilder",
    "build_filter_rules",
    "FILTER_STAGES",
    "REQUIRED_FIELDS",
    "STAGE_REQUIRED",
    "STAGE_COERCION",
    "STAGE_BUSINESS",
    "STAGE_OUTLIER",
]
