"""
Unit tests for rule engine, rule configuration and the record filter.
"""

from datetime import datetime
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.core.models import BusinessRules, PipelineSettings, RawRecord
from src.core.rules import (
    FILTER_STAGES,
    STAGE_BUSINESS,
    STAGE_COERCION,
    STAGE_OUTLIER,
    STAGE_REQUIRED,
    PipelineConfigLoader,
    RecordFilter,
    RuleConfigBuilder,
    RuleEngine,
    build_filter_rules,
)

CONFIG_PATH = Path(__file__).parents[2] / "config" / "pipeline.yaml"


class TestRuleEngine:
    """Tests for RuleEngine"""

    def test_validate_stage_all_pass(self):
        rules = RuleConfigBuilder() \
            .add_required_field("transaction_id") \
            .add_range("quantity", STAGE_BUSINESS, min_exclusive=0) \
            .build()

        engine = RuleEngine(rules)
        result = engine.validate_stage(STAGE_BUSINESS, {"transaction_id": "1", "quantity": 3}, row_number=7)

        assert result.passed is True
        assert result.stage == STAGE_BUSINESS
        assert result.row_number == 7
        assert result.passed_rules == ["quantity_range"]

    def test_validate_stage_collects_every_failure(self):
        rules = RuleConfigBuilder() \
            .add_required_field("transaction_id") \
            .add_required_field("customer_id") \
            .build()

        result = RuleEngine(rules).validate_stage(STAGE_REQUIRED, {"transaction_id": None})

        assert result.passed is False
        assert result.failed_rules == ["transaction_id_required", "customer_id_required"]
        assert len(result.error_messages) == 2

    def test_only_rules_of_the_stage_run(self):
        rules = RuleConfigBuilder() \
            .add_range("quantity", STAGE_OUTLIER, max_value=10) \
            .build()

        result = RuleEngine(rules).validate_stage(STAGE_BUSINESS, {"quantity": 500})

        assert result.passed is True
        assert result.passed_rules == []

    def test_disabled_rules_are_skipped(self):
        rules = RuleConfigBuilder().add_required_field("customer_id").build()
        rules[0]["enabled"] = False

        engine = RuleEngine(rules)

        assert engine.get_rule_summary()["total_rules"] == 0

    def test_unknown_rule_type(self):
        rules = [{"rule_name": "x", "rule_type": "custom", "field_name": "f", "stage": STAGE_BUSINESS}]

        with pytest.raises(ValueError, match="Unknown rule type"):
            RuleEngine(rules)

    def test_invalid_parameters_are_reported(self):
        rules = [{"rule_name": "bad_range", "rule_type": "range", "field_name": "q", "stage": STAGE_BUSINESS}]

        with pytest.raises(ValueError, match="bad_range"):
            RuleEngine(rules)

    def test_rule_summary(self):
        engine = RuleEngine(build_filter_rules(BusinessRules()))
        summary = engine.get_rule_summary()

        assert summary["total_rules"] == 17
        assert summary["rules_by_stage"] == {STAGE_REQUIRED: 7, STAGE_COERCION: 3, STAGE_BUSINESS: 4, STAGE_OUTLIER: 3}
        assert summary["rules_by_type"] == {"required_field": 7, "length": 3, "regex": 1, "range": 6}


class TestRuleConfig:
    """Tests for rule building and settings loading"""

    def test_builder_rejects_unknown_stage(self):
        with pytest.raises(ValueError, match="Unknown filter stage"):
            RuleConfigBuilder().add_required_field("customer_id", stage="later")

    def test_filter_rules_use_configured_widths(self):
        rules = build_filter_rules(BusinessRules(max_code_length=12, max_country_length=40))
        widths = {r["rule_name"]: r["parameters"] for r in rules if r["rule_type"] == "length"}

        assert widths == {
            "transaction_id_max_length": {"max_length": 12},
            "product_code_max_length": {"max_length": 12},
            "country_max_length": {"max_length": 40},
        }
        assert {r["stage"] for r in rules if r["rule_type"] == "length"} == {STAGE_COERCION}

    def test_filter_rules_use_configured_bounds(self):
        rules = build_filter_rules(BusinessRules(max_quantity=50, max_unit_price=9.5, max_line_revenue=100.0))
        bounds = {r["rule_name"]: r["parameters"] for r in rules if r["stage"] == STAGE_OUTLIER}

        assert bounds == {
            "quantity_within_bound": {"max": 50},
            "unit_price_within_bound": {"max": 9.5},
            "revenue_within_bound": {"max": 100.0},
        }

    def test_stage_order(self):
        assert FILTER_STAGES == (STAGE_REQUIRED, STAGE_COERCION, STAGE_BUSINESS, STAGE_OUTLIER)

    def test_load_settings_from_yaml(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text(
            "business_rules:\n"
            "  max_quantity: 500\n"
            "chunk_sizes:\n"
            "  order_lines: 250\n"
            "truncate_before_load: false\n"
        )

        loaded = PipelineConfigLoader(config_file).load()

        assert loaded.business_rules.max_quantity == 500
        assert loaded.business_rules.max_unit_price == 1000.0
        assert loaded.chunk_sizes.order_lines == 250
        assert loaded.chunk_sizes.customers == 2000
        assert loaded.truncate_before_load is False

    def test_empty_yaml_gives_defaults(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("")

        assert PipelineConfigLoader(config_file).load() == PipelineSettings()

    def test_invalid_values_rejected(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("chunk_sizes:\n  customers: 0\n")

        with pytest.raises(ValueError, match="Invalid pipeline configuration"):
            PipelineConfigLoader(config_file).load()

    def test_non_mapping_rejected(self, tmp_path):
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            PipelineConfigLoader(config_file).load()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PipelineConfigLoader(tmp_path / "absent.yaml")

    def test_shipped_config_matches_defaults(self):
        loaded = PipelineConfigLoader(CONFIG_PATH).load()
        assert loaded == PipelineSettings()


class TestRecordFilter:
    """Tests for RecordFilter"""

    def test_clean_line_survives(self, make_raw):
        clean, report = RecordFilter().apply([make_raw()])

        assert len(clean) == 1
        record = clean[0]
        assert record.transaction_id == "536365"
        assert record.timestamp == datetime(2010, 12, 1, 8, 26)
        assert record.revenue == 15.30
        assert report.records_in == 1
        assert report.records_kept == 1
        assert report.total_dropped == 0

    @pytest.mark.parametrize("overrides,stage,rule", [
        ({"customer_id": None}, STAGE_REQUIRED, "customer_id_required"),
        ({"country": "  "}, STAGE_REQUIRED, "country_required"),
        ({"timestamp": None}, STAGE_REQUIRED, "timestamp_required"),
        ({"timestamp": "someday"}, STAGE_COERCION, "timestamp_coercion"),
        ({"quantity": "lots"}, STAGE_COERCION, "quantity_coercion"),
        ({"transaction_id": "5" * 21}, STAGE_COERCION, "transaction_id_max_length"),
        ({"product_code": "P" * 21}, STAGE_COERCION, "product_code_max_length"),
        ({"country": "X" * 101}, STAGE_COERCION, "country_max_length"),
        ({"transaction_id": "C536379"}, STAGE_BUSINESS, "transaction_not_cancelled"),
        ({"transaction_id": "c536379"}, STAGE_BUSINESS, "transaction_not_cancelled"),
        ({"quantity": 0}, STAGE_BUSINESS, "quantity_positive"),
        ({"quantity": -3}, STAGE_BUSINESS, "quantity_positive"),
        ({"unit_price": 0.0}, STAGE_BUSINESS, "unit_price_positive"),
        ({"customer_id": -1}, STAGE_BUSINESS, "customer_id_positive"),
        ({"quantity": 15000, "unit_price": 0.5}, STAGE_OUTLIER, "quantity_within_bound"),
        ({"unit_price": 1000.01, "quantity": 1}, STAGE_OUTLIER, "unit_price_within_bound"),
        ({"quantity": 100, "unit_price": 500.01}, STAGE_OUTLIER, "revenue_within_bound"),
    ])
    def test_drop_is_counted_at_its_stage(self, make_raw, overrides, stage, rule):
        clean, report = RecordFilter().apply([make_raw(**overrides)])

        assert clean == []
        assert report.dropped_by_stage[stage] == 1
        assert report.total_dropped == 1
        assert report.dropped_by_rule[rule] == 1

    def test_bounds_are_inclusive(self, make_raw):
        records = [
            make_raw(quantity=10000, unit_price=5.0),
            make_raw(quantity=1, unit_price=1000.0),
            make_raw(quantity=100, unit_price=500.0),
        ]

        clean, report = RecordFilter().apply(records)

        assert len(clean) == 3
        assert report.dropped_by_stage[STAGE_OUTLIER] == 0

    def test_every_stage_reported(self, make_raw):
        _, report = RecordFilter().apply([make_raw()])
        assert list(report.dropped_by_stage) == list(FILTER_STAGES)

    def test_survivors_keep_input_order(self, make_raw):
        records = [
            make_raw(row_number=1, transaction_id="3"),
            make_raw(row_number=2, transaction_id="C2"),
            make_raw(row_number=3, transaction_id="1"),
            make_raw(row_number=4, transaction_id="2"),
        ]

        clean, _ = RecordFilter().apply(records)

        assert [r.transaction_id for r in clean] == ["3", "1", "2"]

    def test_column_widths_are_inclusive(self, make_raw):
        clean, report = RecordFilter().apply([make_raw(transaction_id="5" * 20, product_code="P" * 20)])

        assert len(clean) == 1
        assert report.dropped_by_stage[STAGE_COERCION] == 0

    def test_configured_column_widths(self, make_raw):
        record_filter = RecordFilter(BusinessRules(max_code_length=6))

        clean, report = record_filter.apply([make_raw(transaction_id="536365"), make_raw(transaction_id="5363650")])

        assert [r.transaction_id for r in clean] == ["536365"]
        assert report.dropped_by_rule == {"transaction_id_max_length": 1}

    def test_configured_cancellation_prefix(self, make_raw):
        record_filter = RecordFilter(BusinessRules(cancellation_prefix="X"))

        clean, report = record_filter.apply([make_raw(transaction_id="C1"), make_raw(transaction_id="X1")])

        assert [r.transaction_id for r in clean] == ["C1"]
        assert report.dropped_by_rule == {"transaction_not_cancelled": 1}

    def test_stage_does_not_modify_input(self, make_raw):
        records = (make_raw(quantity=0), make_raw())
        outcome = RecordFilter().check_required(records)

        assert outcome.survivors == records
        assert outcome.dropped == 0

    def test_empty_input(self):
        clean, report = RecordFilter().apply([])

        assert clean == []
        assert report.records_in == 0
        assert report.total_dropped == 0

    @settings(max_examples=50)
    @given(
        quantity=st.integers(min_value=-20000, max_value=20000),
        unit_price=st.floats(min_value=-10, max_value=2000, allow_nan=False),
        cancelled=st.booleans(),
    )
    def test_property_survivors_satisfy_line_invariants(self, quantity, unit_price, cancelled):
        raw = RawRecord(
            row_number=1,
            transaction_id=("C" if cancelled else "") + "536365",
            product_code="85123A",
            description="WHITE HANGING HEART",
            quantity=quantity,
            unit_price=unit_price,
            timestamp="12/1/2010 8:26",
            customer_id=17850,
            country="United Kingdom",
        )

        clean, report = RecordFilter().apply([raw])

        assert report.records_kept + report.total_dropped == 1
        for record in clean:
            assert not record.transaction_id.upper().startswith("C")
            assert 0 < record.quantity <= 10000
            assert 0 < record.unit_price <= 1000
            assert record.revenue <= 50000
