"""Unit tests for budget parsing in camp_seed.import_budget."""

from __future__ import annotations

import pytest

from camp_seed.import_budget import (
    aggregate_budget,
    find_header,
    find_year_column,
    is_budget_line,
    map_budget_category,
)
from camp_seed.report import ImportReport

ROWS = [
    ["Inflow", None, None, None, None, None, None, None, None],
    ["Dues", 100, None, 100, None, 100, None, 120, None],
    ["Budget Estimates:", 2022, None, 2023, None, 2024, None, 2025, None],
    ["Food", 400, None, 450, None, 480, None, 500, "groceries"],
    ["Chef payments", None, None, None, None, None, None, "120.50", "two chefs"],
    ["Generator fuel estimate", None, None, None, None, None, None, 300, None],
    ["Mystery line", None, None, None, None, None, None, 10, None],
    ["Showers", None, None, None, None, None, None, "NA", None],
    ["Total", None, None, None, None, None, None, 9999, None],
    ["Budget notes", None, None, None, None, None, None, 5, None],
]


class TestMapBudgetCategory:
    @pytest.mark.parametrize("description, category", [
        ("Food", "FOOD"),
        ("Bathrooms + Water", "BATHROOMS"),
        ("Generator fuel estimate", "FUEL"),
        ("Generator rental", "GENERATOR"),
        ("Grey water pickup", "GREY_WATER"),
        ("Fresh water delivery", "WATER"),
        ("Walker Lake dump", "TRASH"),
        ("Reefer truck", "TRUCKS"),
        ("Art car Damavand", "ART"),
        ("Comped tickets", "MISC"),
    ])
    def test_known(self, description, category):
        assert map_budget_category(description) == category

    def test_generator_fuel_precedes_generator(self):
        assert map_budget_category("Fuel for generator") == "FUEL"

    def test_unknown(self):
        assert map_budget_category("Mystery line") is None


class TestHeaderAndColumn:
    def test_find_header(self):
        assert find_header(ROWS) == 2

    def test_find_header_absent(self):
        assert find_header(ROWS[:2]) is None

    def test_year_column_from_header(self):
        assert find_year_column(ROWS[2], 2024, default=7) == 5

    def test_year_column_fallback(self):
        assert find_year_column(ROWS[2], 2030, default=7) == 7

    def test_is_budget_line(self):
        assert is_budget_line("Food")
        assert not is_budget_line("Total")
        assert not is_budget_line("Budget notes")
        assert not is_budget_line(None)


class TestAggregateBudget:
    def test_sums_per_category(self):
        report = ImportReport(step="Budget")
        totals = aggregate_budget(ROWS, 3, 7, report)

        assert list(totals) == ["FOOD", "FUEL"]
        food = totals["FOOD"]
        assert food.amount == 62050
        assert food.descriptions == ["Food", "Chef payments"]
        assert food.notes == ["groceries", "two chefs"]
        assert totals["FUEL"].amount == 30000

    def test_unknown_warned_and_zero_skipped(self):
        report = ImportReport(step="Budget")
        aggregate_budget(ROWS, 3, 7, report)
        assert report.warnings == ['Unknown budget category: "Mystery line"']
        # Mystery line + Showers (NA)
        assert report.skipped == 2

    def test_other_year(self):
        report = ImportReport(step="Budget")
        totals = aggregate_budget(ROWS, 3, 5, report)
        assert totals["FOOD"].amount == 48000
