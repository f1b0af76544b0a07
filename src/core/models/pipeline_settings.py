"""
PipelineSettings model holding the tunable business thresholds of a run.

Defaults reproduce the thresholds of the customer analytics pipeline; any of
them can be overridden from config/pipeline.yaml.
"""

from pydantic import BaseModel, Field, model_validator


class BusinessRules(BaseModel):
    """
    Record-level cleaning rules.

    Attributes:
        cancellation_prefix: Transaction id prefix marking a reversal (case-insensitive)
        max_quantity: Largest accepted line quantity (inclusive)
        max_unit_price: Largest accepted unit price (inclusive)
        max_line_revenue: Largest accepted line revenue (inclusive)
        country_aliases: Title-cased country name -> canonical name
        unknown_description: Sentinel used for empty product descriptions
        max_code_length: Widest accepted transaction id or product code
        max_country_length: Widest accepted country name
    """

    cancellation_prefix: str = Field("C", min_length=1)
    max_quantity: int = Field(10_000, gt=0)
    max_unit_price: float = Field(1_000.0, gt=0)
    max_line_revenue: float = Field(50_000.0, gt=0)
    country_aliases: dict[str, str] = Field(default_factory=lambda: {
        "Eire": "Ireland",
        "Usa": "United States",
        "European Community": "Europe",
    })
    unknown_description: str = "Unknown Product"
    max_code_length: int = Field(20, gt=0)
    max_country_length: int = Field(100, gt=0)


class ChunkSizes(BaseModel):
    """Rows per write transaction for each entity set."""

    customers: int = Field(2000, gt=0)
    products: int = Field(1000, gt=0)
    orders: int = Field(3000, gt=0)
    order_lines: int = Field(5000, gt=0)

    def for_entity(self, entity: str) -> int:
        return getattr(self, entity)


class SegmentThresholds(BaseModel):
    """Cumulative customer revenue cutoffs for the value segment label."""

    top_tier: float = 5000.0
    second_tier: float = 1000.0
    third_tier: float = 500.0
    top_label: str = "VIP Customer"
    second_label: str = "High Value"
    third_label: str = "Medium Value"
    bottom_label: str = "Low Value"

    @model_validator(mode="after")
    def check_descending(self) -> "SegmentThresholds":
        if not self.top_tier >= self.second_tier >= self.third_tier:
            raise ValueError("segment thresholds must be descending: top >= second >= third")
        return self

    def label_for(self, total_revenue: float) -> str:
        """Return the segment label for a customer's cumulative revenue."""
        if total_revenue >= self.top_tier:
            return self.top_label
        if total_revenue >= self.second_tier:
            return self.second_label
        if total_revenue >= self.third_tier:
            return self.third_label
        return self.bottom_label


class ReportingSettings(BaseModel):
    """Thresholds used by the dashboard view and reporting datasets."""

    premium_line_revenue: float = 100.0
    high_line_revenue: float = 50.0
    medium_line_revenue: float = 20.0
    bulk_quantity: int = 20
    large_quantity: int = 10
    medium_quantity: int = 5
    major_market_revenue: float = 1_000_000.0
    significant_market_revenue: float = 100_000.0
    emerging_market_revenue: float = 10_000.0
    min_country_customers: int = Field(5, ge=1)
    top_customers_limit: int = Field(50, ge=1)


class PipelineSettings(BaseModel):
    """
    Complete configuration of a pipeline run.

    Attributes:
        business_rules: Cleaning thresholds and text normalization tables
        chunk_sizes: Batch sizes per entity set
        segments: Customer value segment cutoffs
        reporting: Dashboard and reporting thresholds
        truncate_before_load: Empty target tables before loading
    """

    business_rules: BusinessRules = Field(default_factory=BusinessRules)
    chunk_sizes: ChunkSizes = Field(default_factory=ChunkSizes)
    segments: SegmentThresholds = Field(default_factory=SegmentThresholds)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    truncate_before_load: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "business_rules": {
                    "cancellation_prefix": "C",
                    "max_quantity": 10000,
                    "max_unit_price": 1000.0,
                    "max_line_revenue": 50000.0
                },
                "chunk_sizes": {
                    "customers": 2000,
                    "products": 1000,
                    "orders": 3000,
                    "order_lines": 5000
                },
                "truncate_before_load": True
            }
        }
