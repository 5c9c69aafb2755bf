"""Unit tests for camp_seed.normalize."""

import pytest
from decimal import Decimal
from datetime import date, datetime

from camp_seed.normalize import (
    apply_rules,
    cell_at,
    cell_text,
    collapsed_name_key,
    contains,
    first_name_key,
    format_minor_units,
    normalize_email,
    normalize_name,
    normalize_space,
    parse_date,
    parse_enrollment_status,
    parse_gender,
    parse_grid_power,
    parse_housing_type,
    parse_int,
    parse_numeric,
    parse_payment_method,
    parse_payment_type,
    parse_pre_approval,
    parse_yes_no,
    text_at,
    to_minor_units,
    trim,
)


# ---------------------------------------------------------------------------
# trim
# ---------------------------------------------------------------------------

class TestTrim:
    def test_strips_whitespace(self):
        assert trim("  hello  ") == "hello"

    def test_empty_string_returns_none(self):
        assert trim("") is None

    def test_whitespace_only_returns_none(self):
        assert trim("   ") is None

    def test_none_returns_none(self):
        assert trim(None) is None


# ---------------------------------------------------------------------------
# normalize_space
# ---------------------------------------------------------------------------

class TestNormalizeSpace:
    def test_collapses_internal_spaces(self):
        assert normalize_space("hello   world") == "hello world"

    def test_collapses_tabs(self):
        assert normalize_space("hello\t\tworld") == "hello world"

    def test_none(self):
        assert normalize_space(None) is None


# ---------------------------------------------------------------------------
# cell_text / cell_at / text_at
# ---------------------------------------------------------------------------

class TestCellText:
    def test_integral_float_loses_fraction(self):
        assert cell_text(1234.0) == "1234"

    def test_fractional_float_kept(self):
        assert cell_text(12.5) == "12.5"

    def test_datetime_renders_date(self):
        assert cell_text(datetime(2025, 8, 24, 12, 0)) == "2025-08-24"

    def test_blank_string(self):
        assert cell_text("   ") is None

    def test_none(self):
        assert cell_text(None) is None


class TestCellAt:
    def test_short_row(self):
        assert cell_at(["a"], 3) is None

    def test_none_row(self):
        assert cell_at(None, 0) is None

    def test_text_at_trims(self):
        assert text_at(["x", "  Jane  "], 1) == "Jane"


# ---------------------------------------------------------------------------
# normalize_email
# ---------------------------------------------------------------------------

class TestNormalizeEmail:
    def test_lowercases(self):
        assert normalize_email("User@Example.COM") == "user@example.com"

    def test_removes_inner_whitespace(self):
        assert normalize_email(" jane @ example.com ") == "jane@example.com"

    def test_none(self):
        assert normalize_email(None) is None

    def test_empty(self):
        assert normalize_email("") is None


# ---------------------------------------------------------------------------
# name keys
# ---------------------------------------------------------------------------

class TestNameKeys:
    def test_normalize_name(self):
        assert normalize_name("  Jane   DOE ") == "jane doe"

    def test_normalize_name_blank(self):
        assert normalize_name(None) == ""
        assert normalize_name("   ") == ""

    def test_first_name_key(self):
        assert first_name_key("Kris Brons") == "kris"

    def test_collapsed_name_key(self):
        assert collapsed_name_key("Simon  Avedissian") == "simonavedissian"


# ---------------------------------------------------------------------------
# parse_numeric / to_minor_units
# ---------------------------------------------------------------------------

class TestParseNumeric:
    def test_plain_number(self):
        assert parse_numeric("42.5") == Decimal("42.5")

    def test_currency_and_commas(self):
        assert parse_numeric("$1,234.56") == Decimal("1234.56")

    def test_int_cell(self):
        assert parse_numeric(500) == Decimal("500")

    def test_non_numeric(self):
        assert parse_numeric("NA") is None

    def test_none(self):
        assert parse_numeric(None) is None


class TestToMinorUnits:
    def test_currency_string(self):
        assert to_minor_units("$1,200.00") == 120000

    def test_float_cell(self):
        assert to_minor_units(120.5) == 12050

    def test_rounds_half_up(self):
        assert to_minor_units("0.005") == 1

    def test_negative(self):
        assert to_minor_units("-25") == -2500

    @pytest.mark.parametrize("raw", ["", "NA", None, "abc"])
    def test_bad_input_is_zero(self, raw):
        assert to_minor_units(raw) == 0

    @pytest.mark.parametrize("raw", ["1e30", 1e30, "12345678901234567890123456789"])
    def test_out_of_range_is_zero(self, raw):
        assert to_minor_units(raw) == 0

    def test_beyond_integer_column_is_zero(self):
        assert to_minor_units("$30,000,000") == 0
        assert to_minor_units("$21,000,000") == 2100000000

    def test_format_minor_units(self):
        assert format_minor_units(120050) == "$1,200.50"


class TestParseInt:
    def test_float_cell(self):
        assert parse_int(3.0) == 3

    def test_default(self):
        assert parse_int("lots", default=-1) == -1

    def test_beyond_integer_column_is_default(self):
        assert parse_int("99999999999", default=1) == 1


# ---------------------------------------------------------------------------
# parse_date
# ---------------------------------------------------------------------------

class TestParseDate:
    def test_date_passthrough(self):
        assert parse_date(date(2025, 8, 24)) == date(2025, 8, 24)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2025, 8, 24, 18, 30)) == date(2025, 8, 24)

    def test_serial_number(self):
        assert parse_date(45893) == date(2025, 8, 24)

    def test_serial_float(self):
        assert parse_date(45893.75) == date(2025, 8, 24)

    def test_small_number_is_not_a_date(self):
        assert parse_date(12) is None

    def test_iso_string(self):
        assert parse_date("2025-08-19") == date(2025, 8, 19)

    def test_us_string(self):
        assert parse_date("8/24/2025") == date(2025, 8, 24)

    def test_serial_iso_and_us_agree(self):
        assert parse_date(45893) == parse_date("2025-08-24") == parse_date("08/24/2025")

    def test_spelled_out(self):
        assert parse_date("Aug 24, 2025") == date(2025, 8, 24)

    @pytest.mark.parametrize("raw", ["NA", "n/a", "", "   ", "soon", None])
    def test_unparseable(self, raw):
        assert parse_date(raw) is None

    def test_invalid_calendar_date(self):
        assert parse_date("2025-02-30") is None


# ---------------------------------------------------------------------------
# vocabularies
# ---------------------------------------------------------------------------

class TestApplyRules:
    RULES = [(contains("water"), "WATER"), (contains("grey"), "GREY_WATER")]

    def test_exact_wins(self):
        assert apply_rules("Grey Water", {"grey water": "GREY_WATER"}, self.RULES, None) == "GREY_WATER"

    def test_first_rule_wins(self):
        assert apply_rules("grey water tank", {}, self.RULES, None) == "WATER"

    def test_default(self):
        assert apply_rules("snacks", {}, self.RULES, "MISC") == "MISC"

    def test_blank_is_default(self):
        assert apply_rules(None, {}, self.RULES, "MISC") == "MISC"


class TestHousingType:
    def test_exact(self):
        assert parse_housing_type("Tent") == "TENT"

    def test_fuzzy(self):
        assert parse_housing_type("Shiftpod 2") == "SHIFTPOD"

    def test_unknown_is_other(self):
        assert parse_housing_type("Castle") == "OTHER"

    def test_blank_is_none(self):
        assert parse_housing_type("") is None


class TestGridPower:
    def test_fifty(self):
        assert parse_grid_power("50 amp") == "AMP_50"

    def test_paid_is_thirty(self):
        assert parse_grid_power("Paid") == "AMP_30"

    def test_blank_is_none_value(self):
        assert parse_grid_power(None) == "NONE"


class TestGender:
    def test_short_codes(self):
        assert parse_gender("F") == "FEMALE"
        assert parse_gender("m") == "MALE"

    def test_unknown_is_other(self):
        assert parse_gender("prefer not to say") == "OTHER"

    def test_blank(self):
        assert parse_gender(" ") is None


class TestYesNo:
    @pytest.mark.parametrize("raw", ["Y", "yes", "TRUE", "1"])
    def test_truthy(self, raw):
        assert parse_yes_no(raw) is True

    @pytest.mark.parametrize("raw", ["N", "no", "", None, "maybe"])
    def test_falsy(self, raw):
        assert parse_yes_no(raw) is False


class TestPaymentVocab:
    def test_type_exact(self):
        assert parse_payment_type("Dues") == "DUES"

    def test_strike_donation_not_donation(self):
        assert parse_payment_type("Strike donation") == "STRIKE_DONATION"

    def test_donation(self):
        assert parse_payment_type("Donation") == "DONATION"

    def test_type_unknown(self):
        assert parse_payment_type("snacks") == "OTHER"

    def test_method_fuzzy(self):
        assert parse_payment_method("Venmo @jane") == "VENMO"

    def test_method_card(self):
        assert parse_payment_method("CC") == "CARD"

    def test_method_unknown(self):
        assert parse_payment_method("barter") == "OTHER"


class TestEnrollmentVocab:
    def test_pre_approval(self):
        assert parse_pre_approval("Maybe") == "MAYBE"

    def test_pre_approval_unknown_is_none(self):
        assert parse_pre_approval("later") is None

    def test_status_blank_is_confirmed(self):
        assert parse_enrollment_status(None) == "CONFIRMED"

    def test_status_cancelled(self):
        assert parse_enrollment_status("N") == "CANCELLED"
