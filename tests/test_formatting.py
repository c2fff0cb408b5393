"""
Tests for currency, date, phone and address formatting helpers.
"""

from datetime import date, datetime
from decimal import Decimal

from credora.utils.formatting import (
    to_cents,
    from_cents,
    format_currency,
    format_price_range,
    format_floor_plan,
    format_date,
    format_phone,
    normalize_state,
)


class TestMoney:
    def test_to_cents_rounds_half_up(self):
        assert to_cents(55) == 5500
        assert to_cents(Decimal("55.00")) == 5500
        assert to_cents("19.995") == 2000
        assert to_cents(0.1) == 10

    def test_from_cents(self):
        assert from_cents(5500) == Decimal("55.00")
        assert from_cents(1) == Decimal("0.01")

    def test_format_currency(self):
        assert format_currency(1250) == "$1,250.00"
        assert format_currency(Decimal("55")) == "$55.00"
        assert format_currency(1250.4, cents=False) == "$1,250"
        assert format_currency(-5) == "-$5.00"

    def test_format_price_range(self):
        assert format_price_range(Decimal("1200.00")) == "$1,200/mo"


class TestFloorPlan:
    def test_studio(self):
        assert format_floor_plan(0, 1) == "Studio"

    def test_whole_and_half_baths(self):
        assert format_floor_plan(2, Decimal("1.0")) == "2BR/1BA"
        assert format_floor_plan(3, Decimal("2.5")) == "3BR/2.5BA"


class TestDates:
    def test_format_date_variants(self):
        assert format_date(date(2025, 1, 5)) == "January 5, 2025"
        assert format_date(datetime(2025, 12, 31, 23, 59)) == "December 31, 2025"
        assert format_date("2025-03-09T10:00:00Z") == "March 9, 2025"

    def test_format_date_missing(self):
        assert format_date(None) == ""
        assert format_date("") == ""


class TestPhone:
    def test_full_number(self):
        assert format_phone("2055551234") == "(205) 555-1234"

    def test_country_code_dropped(self):
        assert format_phone("+1 205 555 1234") == "(205) 555-1234"

    def test_partial_input(self):
        assert format_phone("205") == "205"
        assert format_phone("20555") == "(205) 55"
        assert format_phone("") == ""


class TestStates:
    def test_names_and_abbreviations(self):
        assert normalize_state("Alabama") == "AL"
        assert normalize_state("new york") == "NY"
        assert normalize_state(" tx ") == "TX"

    def test_unknown_values_pass_through(self):
        assert normalize_state("Atlantis") == "Atlantis"
        assert normalize_state(None) is None
