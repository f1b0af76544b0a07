"""
Summary models reported at the end of a pipeline run.
"""

from pydantic import BaseModel, Field

from .validation_report import ValidationReport


class FilterReport(BaseModel):
    """
    Record counts of the cleaning filter.

    Attributes:
        records_in: Raw records offered to the filter
        records_kept: Records that survived every stage
        dropped_by_stage: Stage name -> records dropped at that stage
        dropped_by_rule: Rule name -> records whose drop that rule caused
    """

    records_in: int = Field(0, ge=0)
    records_kept: int = Field(0, ge=0)
    dropped_by_stage: dict[str, int] = Field(default_factory=dict)
    dropped_by_rule: dict[str, int] = Field(default_factory=dict)

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped_by_stage.values())


class RunSummary(BaseModel):
    """
    Everything an operator needs to judge a run.

    Attributes:
        records_read: Rows read from the extract
        filter_report: Drop counts per stage and rule
        entity_counts: Rows per normalized entity set
        customer_conflicts: Customer ids seen with conflicting countries
        order_conflicts: Transaction ids seen with conflicting headers
        rows_loaded: Rows written per entity set
        validation: Post-load checks (None on dry runs)
        dry_run: Whether loading was skipped
        duration_seconds: Wall-clock time of the run
    """

    records_read: int = 0
    filter_report: FilterReport = Field(default_factory=FilterReport)
    entity_counts: dict[str, int] = Field(default_factory=dict)
    customer_conflicts: int = 0
    order_conflicts: int = 0
    rows_loaded: dict[str, int] = Field(default_factory=dict)
    validation: ValidationReport | None = None
    dry_run: bool = False
    duration_seconds: float = 0.0
