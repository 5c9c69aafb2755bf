"""camp_seed.import_expenses

Expenses sheet plus the optional "HUBS Shared Costs" sheet.

Expenses (row 0 is the year banner, row 1 the header):
  [paid by, date, charge, amount, notes, comment]

Shared costs (row 0 is the header):
  [resource, vendor, cost, notes, cost share]

Shared costs carry no date; they are dated at the season start.
"""

from __future__ import annotations

from datetime import date
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.normalize import cell_at, parse_date, text_at, to_minor_units
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id
from camp_seed.workbook import Table

EXPENSE_FIRST_ROW = 2
COL_PAID_BY = 0
COL_DATE = 1
COL_CHARGE = 2
COL_AMOUNT = 3
COL_NOTES = 4
COL_COMMENT = 5

SHARED_COL_RESOURCE = 0
SHARED_COL_VENDOR = 1
SHARED_COL_COST = 2
SHARED_COL_NOTES = 3

SHARED_CATEGORY = "SHARED"


class ExpenseRow(NamedTuple):
    paid_by: str
    description: str
    amount: int
    date: date | None
    notes: str | None


class SharedCostRow(NamedTuple):
    description: str
    amount: int
    notes: str | None


def parse_expense_row(row: Sequence[Any] | None) -> ExpenseRow | None:
    """None unless the row has a payer, a description and a non-zero amount."""
    if not row or len(row) < 4:
        return None
    paid_by = text_at(row, COL_PAID_BY)
    description = text_at(row, COL_CHARGE)
    if not paid_by or not description or len(description) < 2:
        return None
    amount = to_minor_units(cell_at(row, COL_AMOUNT))
    if amount == 0:
        return None
    notes = [n for n in (text_at(row, COL_NOTES), text_at(row, COL_COMMENT)) if n]
    return ExpenseRow(
        paid_by=paid_by,
        description=description,
        amount=amount,
        date=parse_date(cell_at(row, COL_DATE)),
        notes="; ".join(notes) or None,
    )


def parse_shared_cost_row(row: Sequence[Any] | None) -> SharedCostRow | None:
    if not row or len(row) < 3:
        return None
    resource = text_at(row, SHARED_COL_RESOURCE)
    if not resource:
        return None
    amount = to_minor_units(cell_at(row, SHARED_COL_COST))
    if amount == 0:
        return None
    vendor = text_at(row, SHARED_COL_VENDOR)
    description = f"HUBS Shared: {resource}" + (f" ({vendor})" if vendor else "")
    return SharedCostRow(description, amount, text_at(row, SHARED_COL_NOTES))


def _insert_expense(conn, season_id, description, amount, paid_by, on, category,
                    notes, needs_reimbursement) -> None:
    conn.execute(
        """
        INSERT INTO expense
          (season_id, description, amount, paid_by, date, category, notes,
           needs_reimbursement)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """,
        (season_id, description, amount, paid_by, on, category, notes, needs_reimbursement),
    )


def import_expenses(
    conn: psycopg.Connection,
    table: Table,
    shared_table: Table | None,
    season_id: str,
    season: SeasonConfig,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Expenses")
    camp_payer = season.camp_payer_name.upper()

    for idx, row in table.data_rows(start=EXPENSE_FIRST_ROW):
        expense = parse_expense_row(row)
        if expense is None:
            continue

        if expense.date is None:
            report.warnings.append(
                f'No date for expense: "{expense.description}" (row {idx + 1}) - skipping'
            )
            report.skipped += 1
            continue

        existing = fetch_id(
            conn,
            """
            SELECT id FROM expense
            WHERE season_id = %s AND description = %s AND amount = %s AND date = %s
            LIMIT 1
            """,
            (season_id, expense.description, expense.amount, expense.date),
        )
        if existing:
            report.skipped += 1
            continue

        _insert_expense(
            conn, season_id, expense.description, expense.amount, expense.paid_by,
            expense.date, None, expense.notes,
            expense.paid_by.upper() != camp_payer,
        )
        report.created += 1

    shared_created = 0
    if shared_table is not None:
        for _, row in shared_table.data_rows():
            cost = parse_shared_cost_row(row)
            if cost is None:
                continue

            existing = fetch_id(
                conn,
                """
                SELECT id FROM expense
                WHERE season_id = %s AND description = %s AND amount = %s
                LIMIT 1
                """,
                (season_id, cost.description, cost.amount),
            )
            if existing:
                report.skipped += 1
                continue

            _insert_expense(
                conn, season_id, cost.description, cost.amount,
                season.shared_payer_name, season.start_date, SHARED_CATEGORY,
                cost.notes, False,
            )
            shared_created += 1
        report.created += shared_created
        report.details = {"Shared costs": shared_created}

    aggregator.add_report(report)
    return report
