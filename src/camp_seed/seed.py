"""camp_seed.seed

CLI entrypoint: seed one season from the master workbook.

Steps run in a fixed order, each committed as it returns:
  Season → Members → Payments → Build Crew → Early Arrival → Strike
  → Tickets → Inventory → Budget → Expenses

Members must precede every step that references a person; it builds the
NameMatcher the later steps resolve against.  A missing roster sheet is
fatal; any other missing sheet only skips its step with a warning.

Usage:
    DATABASE_URL="$DB_DSN" SEED_WORKBOOK_PATH="Alborz Master Document 2025.xlsx" \\
        python -m camp_seed.seed
"""

from __future__ import annotations

import logging
import sys
import uuid

import click
import psycopg

from camp_seed.config import (
    ConfigValidationError,
    SeasonConfig,
    SeedSettings,
    load_season_config,
)
from camp_seed.import_budget import import_budget
from camp_seed.import_build_crew import import_build_crew
from camp_seed.import_early_arrival import import_early_arrival
from camp_seed.import_expenses import import_expenses
from camp_seed.import_inventory import import_inventory
from camp_seed.import_members import import_members
from camp_seed.import_payments import import_payments
from camp_seed.import_season import import_season
from camp_seed.import_strike import import_strike
from camp_seed.import_tickets import import_tickets
from camp_seed.name_matcher import AliasTableValidationError, load_alias_table
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import VERIFIED_TABLES, MissingTableError, count_rows
from camp_seed.workbook import Table, WorkbookReadError, get_table, read_workbook

log = logging.getLogger(__name__)

TOTAL_STEPS = 10


def _missing_sheet(step: str, sheet_name: str, aggregator: ReportAggregator) -> ImportReport:
    report = ImportReport(step=step)
    report.warnings.append(f'Sheet "{sheet_name}" not found - step skipped')
    return aggregator.add_report(report)


def run_seed(
    conn: psycopg.Connection,
    tables: list[Table],
    season: SeasonConfig,
    aliases: dict[str, str],
    aggregator: ReportAggregator,
    echo=click.echo,
) -> str:
    """Run every import step against ``conn`` and return the season id.

    Commits after each step.  Raises MissingTableError when the roster
    sheet is absent; store errors propagate to the caller.
    """

    def step(n: int, label: str) -> None:
        echo(f"[{n}/{TOTAL_STEPS}] Importing {label}...")

    def sheet(key: str) -> tuple[str, Table | None]:
        name = season.sheet(key)
        return name, get_table(tables, name)

    members_name, members_table = sheet("members")
    if members_table is None:
        raise MissingTableError(f'Required sheet "{members_name}" not found in workbook')

    step(1, "season")
    season_id = import_season(conn, season, aggregator)
    conn.commit()

    step(2, "members")
    matcher = import_members(conn, members_table, season_id, season, aggregator, aliases)
    conn.commit()
    log.info("matcher indexed %d identities", len(matcher))

    step(3, "payments")
    name, table = sheet("payments")
    if table is None:
        _missing_sheet("Payments", name, aggregator)
    else:
        import_payments(conn, table, season, matcher, aggregator)
    conn.commit()

    step(4, "build crew")
    name, table = sheet("build_crew")
    if table is None:
        _missing_sheet("Build Crew", name, aggregator)
    else:
        import_build_crew(conn, table, season_id, season, matcher, aggregator)
    conn.commit()

    step(5, "early arrival passes")
    name, table = sheet("early_arrival")
    if table is None:
        _missing_sheet("Early Arrival", name, aggregator)
    else:
        import_early_arrival(conn, table, season_id, matcher, aggregator)
    conn.commit()

    step(6, "strike assignments")
    import_strike(conn, season_id, aggregator)
    conn.commit()

    step(7, "tickets")
    name, table = sheet("tickets")
    if table is None:
        _missing_sheet("Tickets (DGS)", name, aggregator)
    else:
        import_tickets(conn, table, season_id, matcher, aggregator)
    conn.commit()

    step(8, "inventory")
    name, table = sheet("inventory")
    if table is None:
        _missing_sheet("Inventory", name, aggregator)
    else:
        import_inventory(conn, table, aggregator)
    conn.commit()

    step(9, "budget")
    name, table = sheet("budget")
    if table is None:
        _missing_sheet("Budget", name, aggregator)
    else:
        import_budget(conn, table, season_id, season, aggregator)
    conn.commit()

    step(10, "expenses")
    name, table = sheet("expenses")
    _, shared_table = sheet("shared_costs")
    if table is None:
        _missing_sheet("Expenses", name, aggregator)
    else:
        import_expenses(conn, table, shared_table, season_id, season, aggregator)
    conn.commit()

    return season_id


def print_verification(conn: psycopg.Connection, echo=click.echo) -> None:
    echo("Database counts:")
    for table, label in VERIFIED_TABLES.items():
        echo(f"  {label + ':':<17} {count_rows(conn, table)}")
    echo("")


@click.command()
def main() -> None:
    """Seed the season from the master workbook (configured via environment)."""
    run_id = str(uuid.uuid4())

    try:
        settings = SeedSettings.from_env()
    except ConfigValidationError as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    click.echo("========================================")
    click.echo(" Camp season seed")
    click.echo("========================================")
    click.echo(f"[{run_id}] Workbook: {settings.workbook_path}")

    try:
        season = load_season_config(settings.season_config_path)
        aliases = load_alias_table(settings.alias_path)
        tables = read_workbook(settings.workbook_path)
    except (
        ConfigValidationError,
        AliasTableValidationError,
        FileNotFoundError,
        WorkbookReadError,
    ) as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)

    click.echo(f"[{run_id}] Season: {season.name} (config sha256={season.yaml_hash[:12]})")
    click.echo(f"[{run_id}] Sheets: {', '.join(t.name for t in tables)}")
    click.echo("")

    aggregator = ReportAggregator()
    try:
        conn = psycopg.connect(settings.database_url, autocommit=False)
    except psycopg.Error as exc:
        click.echo(f"[{run_id}] FATAL: could not connect to database: {exc}", err=True)
        sys.exit(1)

    try:
        try:
            run_seed(conn, tables, season, aliases, aggregator)
        except Exception as exc:
            conn.rollback()
            click.echo(f"[{run_id}] FATAL: {type(exc).__name__}: {exc}", err=True)
            sys.exit(1)

        aggregator.print_final_report()
        print_verification(conn)
        conn.commit()
    finally:
        conn.close()

    click.echo(f"[{run_id}] Done.")


if __name__ == "__main__":
    main()
