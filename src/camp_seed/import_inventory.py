"""camp_seed.import_inventory

Inventory sheet ingestion.  Each non-empty header cell names a category
column ("Shade", "Tools", "Kitchen", "Bedding", "Bikes"); the items below
it are read vertically.  Items are camp-owned, not per season, and are
deduplicated on (name, category).
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.normalize import Rule, apply_rules, cell_text, contains, parse_int
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.workbook import Table

HEADER_CATEGORY = {
    "shade": "SHADE",
    "kitchen": "KITCHEN",
    "bedding": "MATTRESS",
    "bikes": "BIKE",
}

_QUANTITY_RE = re.compile(r"^(\d+)\s+(.+)$")
_AC_RE = re.compile(r"\bac\b")

# Ordered; first match wins over the column's category.
ITEM_CATEGORY_RULES: list[Rule] = [
    (contains("cot"), "COT"),
    (contains("mattress"), "MATTRESS"),
    (lambda s: bool(_AC_RE.search(s)) or "a/c" in s or "air condition" in s, "AC_UNIT"),
    (contains("rug", "carpet"), "RUG"),
    (contains("generator"), "GENERATOR"),
    (contains("container"), "CONTAINER"),
    (contains("tent", "shade", "aluminet"), "SHADE"),
]


class InventoryEntry(NamedTuple):
    category: str
    name: str
    quantity: int


def map_header_category(header: str) -> str:
    return HEADER_CATEGORY.get(header.strip().lower(), "OTHER")


def parse_quantity(text: str) -> tuple[str, int]:
    """Split a leading count: "6 Coolers" → ("Coolers", 6)."""
    m = _QUANTITY_RE.match(text)
    if m:
        return m.group(2).strip(), parse_int(m.group(1), default=1)
    return text, 1


def refine_category(name: str, base_category: str) -> str:
    return apply_rules(name, {}, ITEM_CATEGORY_RULES, base_category)


def parse_inventory(rows: Sequence[Sequence[Any] | None]) -> list[InventoryEntry]:
    """Walk each category column top to bottom and collect entries."""
    if not rows:
        return []
    header = rows[0] or []
    columns = [
        (col, map_header_category(h))
        for col, h in enumerate(header)
        if isinstance(h, str) and h.strip()
    ]

    entries = []
    for col, category in columns:
        for row in rows[1:]:
            if not row or col >= len(row):
                continue
            text = cell_text(row[col])
            if not text or text.startswith("http"):
                continue
            name, quantity = parse_quantity(text)
            if len(name) < 2:
                continue
            entries.append(InventoryEntry(refine_category(name, category), name, quantity))
    return entries


def import_inventory(
    conn: psycopg.Connection,
    table: Table,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Inventory")
    if len(table) == 0:
        report.warnings.append("Empty sheet")
        aggregator.add_report(report)
        return report

    for entry in parse_inventory(table.rows):
        row = conn.execute(
            """
            INSERT INTO inventory_item (category, name, quantity)
            VALUES (%s, %s, %s)
            ON CONFLICT (name, category) DO NOTHING
            RETURNING id
            """,
            (entry.category, entry.name, entry.quantity),
        ).fetchone()
        if row:
            report.created += 1
        else:
            report.skipped += 1

    aggregator.add_report(report)
    return report
