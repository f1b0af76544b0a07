"""
Core data models for the retail customer analytics pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .clean_line_record import CleanLineRecord, line_revenue
from .customer import Customer
from .entity_sets import LOAD_ORDER, EntitySets
from .order import Order
from .order_line import OrderLine
from .pipeline_settings import (
    BusinessRules,
    ChunkSizes,
    PipelineSettings,
    ReportingSettings,
    SegmentThresholds,
)
from .product import Product
from .raw_record import RAW_FIELDS, SOURCE_COLUMNS, RawRecord
from .run_summary import FilterReport, RunSummary
from .validation_report import CheckResult, ValidationReport
from .validation_result import ValidationResult

__all__ = [
    "RawRecord",
    "RAW_FIELDS",
    "SOURCE_COLUMNS",
    "CleanLineRecord",
    "line_revenue",
    "Customer",
    "Product",
    "Order",
    "OrderLine",
    "EntitySets",
    "LOAD_ORDER",
    "ValidationResult",
    "CheckResult",
    "ValidationReport",
    "FilterReport",
    "RunSummary",
    "PipelineSettings",
    "BusinessRules",
    "ChunkSizes",
    "SegmentThresholds",
    "ReportingSettings",
]
