"""Unit tests for camp_seed.import_inventory."""

from __future__ import annotations

import pytest

from camp_seed.import_inventory import (
    InventoryEntry,
    map_header_category,
    parse_inventory,
    parse_quantity,
    refine_category,
)


class TestHeaderCategory:
    @pytest.mark.parametrize("header, category", [
        ("Shade", "SHADE"),
        (" Kitchen ", "KITCHEN"),
        ("Bedding", "MATTRESS"),
        ("Bikes", "BIKE"),
        ("Tools", "OTHER"),
    ])
    def test_mapping(self, header, category):
        assert map_header_category(header) == category


class TestParseQuantity:
    def test_leading_count(self):
        assert parse_quantity("11 XL Twin mattresses with base") == ("XL Twin mattresses with base", 11)

    def test_no_count(self):
        assert parse_quantity("Coffee grinder") == ("Coffee grinder", 1)

    def test_number_inside_name(self):
        assert parse_quantity("Generator 5000W") == ("Generator 5000W", 1)

    def test_oversized_count_falls_back_to_one(self):
        assert parse_quantity("99999999999 Zip ties") == ("Zip ties", 1)


class TestRefineCategory:
    def test_cot_before_mattress(self):
        assert refine_category("Cot with mattress", "MATTRESS") == "COT"

    def test_ac_unit(self):
        assert refine_category("Portable AC", "OTHER") == "AC_UNIT"
        assert refine_category("A/C duct", "OTHER") == "AC_UNIT"

    def test_ac_needs_word_boundary(self):
        assert refine_category("Backpack", "OTHER") == "OTHER"

    def test_tent_is_shade(self):
        assert refine_category("Aluminet 20x40", "OTHER") == "SHADE"

    def test_keeps_column_category(self):
        assert refine_category("Coolers", "KITCHEN") == "KITCHEN"


class TestParseInventory:
    def test_reads_columns_vertically(self):
        rows = [
            ["Shade", None, "Kitchen", None, "Bedding"],
            ["2 Aluminet", None, "6 Coolers", None, "11 XL Twin mattresses"],
            ["https://example.com/receipt", None, "Stove", None, "4 Cots"],
            [None, None, "x", None, None],
        ]
        assert parse_inventory(rows) == [
            InventoryEntry("SHADE", "Aluminet", 2),
            InventoryEntry("KITCHEN", "Coolers", 6),
            InventoryEntry("KITCHEN", "Stove", 1),
            InventoryEntry("MATTRESS", "XL Twin mattresses", 11),
            InventoryEntry("COT", "Cots", 4),
        ]

    def test_empty(self):
        assert parse_inventory([]) == []
