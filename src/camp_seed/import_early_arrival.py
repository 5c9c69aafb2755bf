"""camp_seed.import_early_arrival

"Early Arrival Passes" ingestion.  Rows 0-2 are banner and header rows;
data rows are [_, name, date, ticket id].  One pass per enrollment.
"""

from __future__ import annotations

from datetime import date
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.name_matcher import NameMatcher
from camp_seed.normalize import cell_at, parse_date, text_at
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id, resolve_member
from camp_seed.workbook import Table

FIRST_DATA_ROW = 3
COL_NAME = 1
COL_DATE = 2
COL_TICKET = 3


class ArrivalRow(NamedTuple):
    name: str
    arrival_date: date | None
    pass_id: str | None


def parse_arrival_row(row: Sequence[Any] | None) -> ArrivalRow | None:
    if not row or len(row) < 3:
        return None
    name = text_at(row, COL_NAME)
    if not name or len(name) < 2:
        return None
    ticket = text_at(row, COL_TICKET)
    return ArrivalRow(
        name=name,
        arrival_date=parse_date(cell_at(row, COL_DATE)),
        pass_id=None if ticket is None or ticket.upper() == "NA" else ticket,
    )


def import_early_arrival(
    conn: psycopg.Connection,
    table: Table,
    season_id: str,
    matcher: NameMatcher,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Early Arrival")

    for idx, row in table.data_rows(start=FIRST_DATA_ROW):
        arrival = parse_arrival_row(row)
        if arrival is None:
            continue

        row_no = idx + 1
        ref = resolve_member(matcher, arrival.name, f"early arrival row {row_no}", report)
        if ref is None:
            continue

        if arrival.arrival_date is None:
            report.warnings.append(
                f'No date for early arrival: "{arrival.name}" (row {row_no})'
            )
            report.skipped += 1
            continue

        existing = fetch_id(
            conn,
            "SELECT id FROM early_arrival_pass WHERE season_member_id = %s",
            (ref.season_member_id,),
        )
        conn.execute(
            """
            INSERT INTO early_arrival_pass (season_id, season_member_id, arrival_date, pass_id)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (season_member_id) DO UPDATE SET
              arrival_date = EXCLUDED.arrival_date,
              pass_id = EXCLUDED.pass_id,
              updated_at = now()
            """,
            (season_id, ref.season_member_id, arrival.arrival_date, arrival.pass_id),
        )
        if existing:
            report.updated += 1
        else:
            report.created += 1

    aggregator.add_report(report)
    return report
