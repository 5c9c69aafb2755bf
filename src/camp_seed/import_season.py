"""camp_seed.import_season

Upsert the season row keyed by year.  Every later step scopes its
records to the id returned here.
"""

from __future__ import annotations

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id


def import_season(
    conn: psycopg.Connection,
    season: SeasonConfig,
    aggregator: ReportAggregator,
) -> str:
    """Create or refresh the season; returns season.id."""
    report = ImportReport(step="Season")
    existing = fetch_id(conn, "SELECT id FROM season WHERE year = %s", (season.year,))

    row = conn.execute(
        """
        INSERT INTO season
          (year, name, is_active, dues_amount, grid_fee_30amp, grid_fee_50amp,
           start_date, end_date, build_start_date, strike_end_date)
        VALUES (%s, %s, false, %s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (year) DO UPDATE SET
          name = EXCLUDED.name,
          dues_amount = EXCLUDED.dues_amount,
          grid_fee_30amp = EXCLUDED.grid_fee_30amp,
          grid_fee_50amp = EXCLUDED.grid_fee_50amp,
          start_date = EXCLUDED.start_date,
          end_date = EXCLUDED.end_date,
          build_start_date = EXCLUDED.build_start_date,
          strike_end_date = EXCLUDED.strike_end_date,
          updated_at = now()
        RETURNING id
        """,
        (
            season.year, season.name, season.dues_amount,
            season.grid_fee_30amp, season.grid_fee_50amp,
            season.start_date, season.end_date,
            season.build_start_date, season.strike_end_date,
        ),
    ).fetchone()
    season_id = str(row[0])

    if existing:
        report.updated = 1
    else:
        report.created = 1
    report.details = {"id": season_id, "year": season.year}
    aggregator.add_report(report)
    return season_id
