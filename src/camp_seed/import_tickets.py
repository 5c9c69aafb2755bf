"""camp_seed.import_tickets

Directed-group-sale ("DGS") ticket allocations.

Columns: number, name, email, # of tix, added, purchase confirmed,
vehicle pass, notes.  One ticket row per (season, member, type).
"""

from __future__ import annotations

from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.name_matcher import NameMatcher
from camp_seed.normalize import cell_at, parse_int, parse_yes_no, text_at
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id, resolve_member
from camp_seed.workbook import Table

TICKET_TYPE = "DGS"

COL_NUMBER = 0
COL_NAME = 1
COL_EMAIL = 2
COL_TIX = 3
COL_ADDED = 4
COL_CONFIRMED = 5
COL_VEHICLE_PASS = 6
COL_NOTES = 7


class TicketRow(NamedTuple):
    name: str
    email: str | None
    quantity: int
    purchase_confirmed: bool
    vehicle_pass: bool
    notes: str | None


def parse_ticket_row(row: Sequence[Any] | None) -> TicketRow | None:
    if not row or len(row) < 4:
        return None
    name = text_at(row, COL_NAME)
    if not name or len(name) < 2:
        return None
    return TicketRow(
        name=name,
        email=text_at(row, COL_EMAIL),
        quantity=parse_int(cell_at(row, COL_TIX)) or 1,
        purchase_confirmed=parse_yes_no(text_at(row, COL_CONFIRMED)),
        vehicle_pass=parse_yes_no(text_at(row, COL_VEHICLE_PASS)),
        notes=text_at(row, COL_NOTES),
    )


def import_tickets(
    conn: psycopg.Connection,
    table: Table,
    season_id: str,
    matcher: NameMatcher,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Tickets (DGS)")

    for idx, row in table.data_rows():
        ticket = parse_ticket_row(row)
        if ticket is None:
            continue

        ref = resolve_member(
            matcher, ticket.name, f"DGS row {idx + 1}", report, email=ticket.email,
        )
        if ref is None:
            continue

        existing = fetch_id(
            conn,
            "SELECT id FROM ticket WHERE season_id = %s AND member_id = %s AND type = %s",
            (season_id, ref.member_id, TICKET_TYPE),
        )
        if existing:
            report.skipped += 1
            continue

        conn.execute(
            """
            INSERT INTO ticket
              (season_id, member_id, type, quantity, vehicle_pass, purchase_confirmed, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                season_id, ref.member_id, TICKET_TYPE, ticket.quantity,
                ticket.vehicle_pass, ticket.purchase_confirmed, ticket.notes,
            ),
        )
        report.created += 1

    aggregator.add_report(report)
    return report
