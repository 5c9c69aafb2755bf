"""camp_seed.import_budget

Budget sheet ingestion.

The sheet opens with inflow estimates, then a "Budget Estimates:" row
whose cells carry the years (2022, 2023, ...).  Below it each line is
[description, year value, notes, year value, notes, ...].  Only the
season year's column is read; lines are mapped to a budget category and
summed, one budget_line per (season, category).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.normalize import (
    Rule,
    apply_rules,
    cell_at,
    cell_text,
    contains,
    contains_all,
    format_minor_units,
    parse_int,
    text_at,
    to_minor_units,
)
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id
from camp_seed.workbook import Table

HEADER_MARKER = "Budget Estimates"

BUDGET_EXACT = {
    "generator": "GENERATOR",
    "generator fuel estimate": "FUEL",
    "storage": "STORAGE",
    "truck rentals": "TRUCKS",
    "sound equipment": "SOUND",
    "food": "FOOD",
    "containers delivery and storage": "CONTAINERS",
    "bathrooms": "BATHROOMS",
    "bathrooms + water": "BATHROOMS",
    "fresh water": "WATER",
    "grey water": "GREY_WATER",
    "showers": "SHOWERS",
    "decoration": "DECORATION",
    "trash bin": "TRASH",
    "beer fund": "MISC",
    "reno pre burn cleanup": "INFRASTRUCTURE",
    "chef payments": "FOOD",
    "michael k meals": "FOOD",
    "bonanza food delivery": "FOOD",
}

BUDGET_RULES: list[Rule] = [
    (contains_all("generator", "fuel"), "FUEL"),
    (contains("generator"), "GENERATOR"),
    (contains("food", "meals", "chef"), "FOOD"),
    (contains_all("water", "grey"), "GREY_WATER"),
    (contains("water"), "WATER"),
    (contains("bathroom", "ecozoic"), "BATHROOMS"),
    (contains("shower"), "SHOWERS"),
    (contains("container"), "CONTAINERS"),
    (contains("trash", "walker lake"), "TRASH"),
    (contains("truck", "reefer"), "TRUCKS"),
    (contains("sound", "speaker", "stage"), "SOUND"),
    (contains("storage", "fernley"), "STORAGE"),
    (contains("decor", "rug", "aluminet", "necklace"), "DECORATION"),
    (contains("art car", "damavand", "homa"), "ART"),
    (contains("shade", "infrastructure", "ac unit", "demolition", "build", "cleanup"),
     "INFRASTRUCTURE"),
    (contains("ticket", "comped"), "MISC"),
]


@dataclass
class CategoryTotal:
    amount: int = 0
    descriptions: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def map_budget_category(description: str | None) -> str | None:
    """Budget category for a line description, or None when unrecognised."""
    return apply_rules(description, BUDGET_EXACT, BUDGET_RULES, None)


def find_header(rows: Sequence[Sequence[Any] | None]) -> int | None:
    """Index of the "Budget Estimates" row, or None."""
    for i, row in enumerate(rows):
        first = cell_text(cell_at(row, 0))
        if first and HEADER_MARKER in first:
            return i
    return None


def find_year_column(header: Sequence[Any], year: int, default: int) -> int:
    for col, value in enumerate(header):
        if col == 0:
            continue
        if parse_int(value, default=-1) == year:
            return col
    return default


def is_budget_line(description: str | None) -> bool:
    if not description:
        return False
    return "Total" not in description and not description.startswith("Budget ")


def aggregate_budget(
    rows: Sequence[Sequence[Any] | None],
    start: int,
    year_col: int,
    report: ImportReport,
) -> dict[str, CategoryTotal]:
    """Sum the year column per category, in first-seen order."""
    totals: dict[str, CategoryTotal] = {}
    for row in rows[start:]:
        description = text_at(row, 0)
        if not is_budget_line(description):
            continue

        category = map_budget_category(description)
        if category is None:
            report.warnings.append(f'Unknown budget category: "{description}"')
            report.skipped += 1
            continue

        amount = to_minor_units(cell_at(row, year_col))
        if amount == 0:
            report.skipped += 1
            continue

        total = totals.setdefault(category, CategoryTotal())
        total.amount += amount
        total.descriptions.append(description)
        note = text_at(row, year_col + 1)
        if note:
            total.notes.append(note)
    return totals


def import_budget(
    conn: psycopg.Connection,
    table: Table,
    season_id: str,
    season: SeasonConfig,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Budget")

    header_idx = find_header(table.rows)
    if header_idx is None:
        report.warnings.append("Could not find Budget Estimates header")
        aggregator.add_report(report)
        return report

    year_col = find_year_column(
        table.rows[header_idx], season.year, season.budget_default_year_column,
    )
    totals = aggregate_budget(table.rows, header_idx + 1, year_col, report)

    grand_total = 0
    for category, total in totals.items():
        existing = fetch_id(
            conn,
            "SELECT id FROM budget_line WHERE season_id = %s AND category = %s",
            (season_id, category),
        )
        conn.execute(
            """
            INSERT INTO budget_line (season_id, category, estimated_amount, description, notes)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (season_id, category) DO UPDATE SET
              estimated_amount = EXCLUDED.estimated_amount,
              description = EXCLUDED.description,
              notes = EXCLUDED.notes,
              updated_at = now()
            """,
            (
                season_id, category, total.amount,
                ", ".join(total.descriptions),
                "; ".join(total.notes) or None,
            ),
        )
        grand_total += total.amount
        if existing:
            report.updated += 1
        else:
            report.created += 1

    report.details = {
        "Year column": year_col,
        "Estimated total": format_minor_units(grand_total),
    }
    aggregator.add_report(report)
    return report
