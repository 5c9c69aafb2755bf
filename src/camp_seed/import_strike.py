"""camp_seed.import_strike

Strike assignments come from the roster's strike-crew flag, already
stored on season_member by the Members step.  No sheet is read.
"""

from __future__ import annotations

import psycopg

from camp_seed.report import ImportReport, ReportAggregator


def import_strike(
    conn: psycopg.Connection,
    season_id: str,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Strike")

    rows = conn.execute(
        """
        SELECT sm.id, sm.departure_date
        FROM season_member sm
        WHERE sm.season_id = %s AND sm.strike_crew = true
        ORDER BY sm.created_at, sm.id
        """,
        (season_id,),
    ).fetchall()

    for season_member_id, departure_date in rows:
        inserted = conn.execute(
            """
            INSERT INTO strike_assignment (season_id, season_member_id, departure_date)
            VALUES (%s, %s, %s)
            ON CONFLICT (season_member_id) DO NOTHING
            RETURNING id
            """,
            (season_id, season_member_id, departure_date),
        ).fetchone()
        if inserted:
            report.created += 1
        else:
            report.skipped += 1

    aggregator.add_report(report)
    return report
