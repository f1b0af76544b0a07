"""
Record filter: the staged cleaning pipeline from raw rows to clean lines.

Each stage takes a sequence and returns the survivors, in input order, plus
its drop counts. Stages never modify their input and never repair a record.
"""

from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, Field

from src.core.errors import UnrecoverableRecordError
from src.core.fields import FieldNormalizer
from src.core.models import BusinessRules, CleanLineRecord, FilterReport, RawRecord

from .rule_config import (
    STAGE_BUSINESS,
    STAGE_COERCION,
    STAGE_OUTLIER,
    STAGE_REQUIRED,
    build_filter_rules,
)
from .rule_engine import RuleEngine


class StageOutcome(BaseModel):
    """Survivors of one filter stage and what it dropped."""

    stage: str
    survivors: tuple[Any, ...]
    dropped: int = Field(..., ge=0)
    dropped_by_rule: dict[str, int] = Field(default_factory=dict)

    class Config:
        frozen = True


class RecordFilter:
    """
    Applies the four cleaning stages in order:

    1. required_fields: transaction id, customer id, product code, timestamp,
       country, quantity and unit price must be present
    2. type_coercion: every field must coerce to its canonical type and
       identifiers and country must fit their column widths
    3. business_rules: no cancellations, positive quantity, price and customer id
    4. outlier_bounds: quantity, unit price and line revenue within bounds
    """

    def __init__(self, rules: BusinessRules | None = None):
        """
        Initialize the filter.

        Args:
            rules: Business rules; defaults apply when omitted
        """
        self.rules = rules or BusinessRules()
        self.normalizer = FieldNormalizer(self.rules)
        self.engine = RuleEngine(build_filter_rules(self.rules))

    def check_required(self, records: Sequence[RawRecord]) -> StageOutcome:
        return self._run_stage(
            STAGE_REQUIRED,
            records,
            lambda raw: self._check(STAGE_REQUIRED, raw.as_payload(), raw.row_number, raw),
        )

    def coerce(self, records: Sequence[RawRecord]) -> StageOutcome:
        """
        Coerce raw records into typed payloads, dropping unrecoverable ones.

        Coerced text must also fit its storage column.
        """

        def normalize(raw: RawRecord) -> tuple[Any, list[str]]:
            try:
                payload = self.normalizer.normalize(raw)
            except UnrecoverableRecordError as e:
                return None, [f"{e.field_name}_coercion"]
            payload["row_number"] = raw.row_number
            return self._check(STAGE_COERCION, payload, raw.row_number, payload)

        return self._run_stage(STAGE_COERCION, records, normalize)

    def check_business_rules(self, payloads: Sequence[dict[str, Any]]) -> StageOutcome:
        return self._run_stage(
            STAGE_BUSINESS,
            payloads,
            lambda p: self._check(STAGE_BUSINESS, p, p.get("row_number"), p),
        )

    def check_outlier_bounds(self, payloads: Sequence[dict[str, Any]]) -> StageOutcome:
        return self._run_stage(
            STAGE_OUTLIER,
            payloads,
            lambda p: self._check(STAGE_OUTLIER, p, p.get("row_number"), p),
        )

    def apply(self, records: Sequence[RawRecord]) -> tuple[list[CleanLineRecord], FilterReport]:
        """
        Run every stage over the extract.

        Args:
            records: Raw records in extract order

        Returns:
            Tuple of (clean lines in extract order, filter report)
        """
        outcomes = []

        outcome = self.check_required(records)
        outcomes.append(outcome)
        outcome = self.coerce(outcome.survivors)
        outcomes.append(outcome)
        outcome = self.check_business_rules(outcome.survivors)
        outcomes.append(outcome)
        outcome = self.check_outlier_bounds(outcome.survivors)
        outcomes.append(outcome)

        clean = [CleanLineRecord(**payload) for payload in outcome.survivors]

        dropped_by_rule: dict[str, int] = {}
        for stage_outcome in outcomes:
            for rule_name, count in stage_outcome.dropped_by_rule.items():
                dropped_by_rule[rule_name] = dropped_by_rule.get(rule_name, 0) + count

        report = FilterReport(
            records_in=len(records),
            records_kept=len(clean),
            dropped_by_stage={o.stage: o.dropped for o in outcomes},
            dropped_by_rule=dropped_by_rule,
        )
        return clean, report

    def _check(
        self,
        stage: str,
        payload: dict[str, Any],
        row_number: int | None,
        item: Any
    ) -> tuple[Any, list[str]]:
        result = self.engine.validate_stage(stage, payload, row_number)
        if result.passed:
            return item, []
        return None, result.failed_rules

    @staticmethod
    def _run_stage(
        stage: str,
        items: Sequence[Any],
        check: Callable[[Any], tuple[Any, list[str]]]
    ) -> StageOutcome:
        survivors = []
        dropped = 0
        dropped_by_rule: dict[str, int] = {}

        for item in items:
            kept, failed_rules = check(item)
            if failed_rules:
                dropped += 1
                for rule_name in failed_rules:
                    dropped_by_rule[rule_name] = dropped_by_rule.get(rule_name, 0) + 1
            else:
                survivors.append(kept)

        return StageOutcome(
            stage=stage,
            survivors=tuple(survivors),
            dropped=dropped,
            dropped_by_rule=dropped_by_rule,
        )

