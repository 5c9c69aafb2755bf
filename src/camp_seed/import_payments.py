"""camp_seed.import_payments

"Dues + Fees Paid" ingestion.

Layout (row 0 is the header):
  [_, Type, Member, DATE, Amount, Method, Notes, Paid to]

A payment is deduplicated on (season_member, type, amount, paid_at).
"""

from __future__ import annotations

from datetime import date
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.name_matcher import NameMatcher
from camp_seed.normalize import (
    cell_at,
    format_minor_units,
    parse_date,
    parse_payment_method,
    parse_payment_type,
    text_at,
    to_minor_units,
)
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id, resolve_member
from camp_seed.workbook import Table

COL_TYPE = 1
COL_MEMBER = 2
COL_DATE = 3
COL_AMOUNT = 4
COL_METHOD = 5
COL_NOTES = 6
COL_PAID_TO = 7


class PaymentRow(NamedTuple):
    type: str
    member: str
    paid_at: date | None
    amount: int
    method: str
    notes: str | None
    paid_to: str | None


def parse_payment_row(row: Sequence[Any] | None) -> PaymentRow | None:
    """Return a PaymentRow, or None unless the row has a type, a member
    name of at least two characters and a non-zero amount."""
    if not row or len(row) <= COL_AMOUNT:
        return None
    type_text = text_at(row, COL_TYPE)
    member = cell_at(row, COL_MEMBER)
    if not type_text or not isinstance(member, str) or len(member.strip()) < 2:
        return None
    amount = to_minor_units(cell_at(row, COL_AMOUNT))
    if amount == 0:
        return None
    return PaymentRow(
        type=parse_payment_type(type_text),
        member=member.strip(),
        paid_at=parse_date(cell_at(row, COL_DATE)),
        amount=amount,
        method=parse_payment_method(text_at(row, COL_METHOD)),
        notes=text_at(row, COL_NOTES),
        paid_to=text_at(row, COL_PAID_TO),
    )


def import_payments(
    conn: psycopg.Connection,
    table: Table,
    season: SeasonConfig,
    matcher: NameMatcher,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Payments")
    total_collected = 0

    for idx, row in table.data_rows():
        payment = parse_payment_row(row)
        if payment is None:
            continue

        row_no = idx + 1
        ref = resolve_member(matcher, payment.member, f"payment row {row_no}", report)
        if ref is None:
            continue

        paid_at = payment.paid_at
        if paid_at is None:
            paid_at = season.payment_fallback_date
            report.warnings.append(
                f'No date for payment by "{payment.member}" (payment row {row_no}) '
                f"- using {paid_at.isoformat()}"
            )

        existing = fetch_id(
            conn,
            """
            SELECT id FROM payment
            WHERE season_member_id = %s AND type = %s AND amount = %s AND paid_at = %s
            LIMIT 1
            """,
            (ref.season_member_id, payment.type, payment.amount, paid_at),
        )
        if existing:
            report.skipped += 1
            continue

        conn.execute(
            """
            INSERT INTO payment
              (season_member_id, type, amount, method, paid_at, paid_to, notes, recorded_by)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                ref.season_member_id, payment.type, payment.amount, payment.method,
                paid_at, payment.paid_to, payment.notes, season.recorded_by,
            ),
        )
        total_collected += payment.amount
        report.created += 1

    report.details = {"Total collected": format_minor_units(total_collected)}
    aggregator.add_report(report)
    return report
