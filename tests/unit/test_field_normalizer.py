"""
Unit tests for field-level normalization: timestamps, text and numbers.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.core.errors import UnrecoverableRecordError
from src.core.fields import (
    SPREADSHEET_EPOCH,
    FieldNormalizer,
    clean_text,
    normalize_country,
    normalize_description,
    resolve_timestamp,
    title_case,
    to_int,
    to_number,
)
from src.core.models import BusinessRules

ALIASES = BusinessRules().country_aliases


class TestResolveTimestamp:
    """Tests for the four accepted timestamp encodings"""

    def test_datetime_passes_through(self):
        value = datetime(2010, 12, 1, 8, 26)
        assert resolve_timestamp(value) == value

    def test_date_becomes_midnight(self):
        assert resolve_timestamp(date(2010, 12, 1)) == datetime(2010, 12, 1)

    def test_text_month_day_year(self):
        assert resolve_timestamp("12/1/2010 8:26") == datetime(2010, 12, 1, 8, 26)

    def test_text_is_trimmed(self):
        assert resolve_timestamp("  12/1/2010 8:26 ") == datetime(2010, 12, 1, 8, 26)

    def test_text_two_digit_year(self):
        assert resolve_timestamp("12/9/11 12:50") == datetime(2011, 12, 9, 12, 50)

    def test_serial_day_count(self):
        # 40513 days after 1899-12-30
        assert resolve_timestamp(40513) == datetime(2010, 12, 1)

    def test_serial_fraction_is_dropped(self):
        assert resolve_timestamp(40513.35) == datetime(2010, 12, 1)

    def test_serial_decimal(self):
        assert resolve_timestamp(Decimal("40513")) == datetime(2010, 12, 1)

    def test_serial_zero_is_epoch(self):
        assert resolve_timestamp(0).date() == SPREADSHEET_EPOCH

    @pytest.mark.parametrize("value", [None, "", "not a date", "2010-13-45 99:99", True, float("nan"), 1e20, [1]])
    def test_unrecognized_encodings(self, value):
        assert resolve_timestamp(value) is None

    @given(st.datetimes(min_value=datetime(1900, 1, 1), max_value=datetime(2100, 1, 1)))
    def test_property_text_round_trip_to_minute(self, moment):
        text = f"{moment.month}/{moment.day}/{moment.year} {moment.hour}:{moment.minute:02d}"
        assert resolve_timestamp(text) == moment.replace(second=0, microsecond=0)


class TestTextNormalization:
    """Tests for identifier, description and country normalization"""

    def test_clean_text_trims(self):
        assert clean_text("  85123A ") == "85123A"

    def test_clean_text_blank_is_none(self):
        assert clean_text("   ") is None
        assert clean_text(None) is None

    def test_clean_text_integral_float(self):
        assert clean_text(536365.0) == "536365"

    def test_title_case(self):
        assert title_case("UNITED KINGDOM") == "United Kingdom"
        assert title_case("channel islands") == "Channel Islands"

    def test_title_case_keeps_apostrophe_words(self):
        assert title_case("PEOPLE'S REPUBLIC") == "People's Republic"

    @pytest.mark.parametrize("raw,expected", [
        ("eire", "Ireland"),
        ("  EIRE ", "Ireland"),
        ("USA", "United States"),
        ("european community", "Europe"),
        ("france", "France"),
        ("United Kingdom", "United Kingdom"),
    ])
    def test_country_aliases(self, raw, expected):
        assert normalize_country(raw, ALIASES) == expected

    def test_country_missing(self):
        assert normalize_country("  ", ALIASES) is None

    def test_description_sentinel(self):
        assert normalize_description(None, "Unknown Product") == "Unknown Product"
        assert normalize_description("   ", "Unknown Product") == "Unknown Product"

    def test_description_trimmed(self):
        assert normalize_description("  WHITE METAL LANTERN ", "Unknown Product") == "WHITE METAL LANTERN"

    @given(st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126)))
    def test_property_country_normalization_is_idempotent(self, raw):
        once = normalize_country(raw, ALIASES)
        if once is not None:
            assert normalize_country(once, ALIASES) == once


class TestNumericCoercion:
    """Tests for numeric coercion"""

    @pytest.mark.parametrize("raw,expected", [
        (6, 6.0),
        ("2.55", 2.55),
        (" 3 ", 3.0),
        (Decimal("4.25"), 4.25),
    ])
    def test_to_number(self, raw, expected):
        assert to_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", True, float("nan"), float("inf"), "inf", []])
    def test_to_number_rejects(self, raw):
        assert to_number(raw) is None

    def test_to_int_accepts_integral_floats(self):
        assert to_int(17850.0) == 17850
        assert to_int("17850") == 17850

    def test_to_int_rejects_fractions(self):
        assert to_int(17850.5) is None
        assert to_int("6.5") is None


class TestFieldNormalizer:
    """Tests for FieldNormalizer"""

    def test_scenario_one_line(self, make_raw):
        payload = FieldNormalizer().normalize(make_raw())

        assert payload["transaction_id"] == "536365"
        assert payload["customer_id"] == 17850
        assert payload["quantity"] == 6
        assert payload["unit_price"] == 2.55
        assert payload["timestamp"] == datetime(2010, 12, 1, 8, 26)
        assert payload["country"] == "United Kingdom"
        assert payload["revenue"] == 15.30

    def test_numeric_strings_coerced(self, make_raw):
        payload = FieldNormalizer().normalize(make_raw(quantity="6", unit_price="2.55", customer_id="17850.0"))

        assert payload["quantity"] == 6
        assert payload["unit_price"] == 2.55
        assert payload["customer_id"] == 17850

    def test_missing_description_uses_sentinel(self, make_raw):
        payload = FieldNormalizer().normalize(make_raw(description=None))
        assert payload["description"] == "Unknown Product"

    def test_configured_sentinel(self, make_raw):
        rules = BusinessRules(unknown_description="N/A")
        payload = FieldNormalizer(rules).normalize(make_raw(description=""))
        assert payload["description"] == "N/A"

    def test_country_alias_applied(self, make_raw):
        payload = FieldNormalizer().normalize(make_raw(country="eire"))
        assert payload["country"] == "Ireland"

    def test_unparseable_timestamp_is_unrecoverable(self, make_raw):
        with pytest.raises(UnrecoverableRecordError) as exc_info:
            FieldNormalizer().normalize(make_raw(timestamp="yesterday"))
        assert exc_info.value.field_name == "timestamp"

    @pytest.mark.parametrize("field_name,value", [
        ("customer_id", "abc"),
        ("customer_id", 17850.5),
        ("quantity", "six"),
        ("quantity", 1.5),
        ("unit_price", "free"),
    ])
    def test_uncoercible_numbers_are_unrecoverable(self, make_raw, field_name, value):
        with pytest.raises(UnrecoverableRecordError) as exc_info:
            FieldNormalizer().normalize(make_raw(**{field_name: value}))
        assert exc_info.value.field_name == field_name

    def test_blank_identifier_is_unrecoverable(self, make_raw):
        with pytest.raises(UnrecoverableRecordError) as exc_info:
            FieldNormalizer().normalize(make_raw(product_code="  "))
        assert exc_info.value.field_name == "product_code"

    def test_input_record_unchanged(self, make_raw):
        raw = make_raw(country="  eire ")
        FieldNormalizer().normalize(raw)
        assert raw.country == "  eire "
