"""camp_seed.import_build_crew

"Build sheet" ingestion.

The sheet holds two side-by-side column groups, each (name, email, ticket
id).  Day names ("Wednesday(20)", "Saturday (23)") appear as in-band rows
in the name column and switch the current day for that group only:

  cols 1-3  left group, starts on Tuesday
  cols 7-9  right group, starts on Friday

Parsing is a small state machine per group: ``transition`` consumes a
day-header cell, ``emit`` turns a data row into a BuildEntry for the
current day.  ``parse_build_sheet`` drives both groups and returns the
per-day roster; the importer then writes build_day and build_assignment
rows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.name_matcher import NameMatcher
from camp_seed.normalize import cell_text, text_at
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import fetch_id, resolve_member
from camp_seed.workbook import Table

DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
_DAY_RE = re.compile(r"\b(" + "|".join(DAY_NAMES) + r")", re.IGNORECASE)
_DIGITS_RE = re.compile(r"^\d+$")

_IGNORED_CELLS = frozenset({"Ticket ID", "EMAIL"})
_IGNORED_FRAGMENTS = ("WAPS", "Total")


class BuildEntry(NamedTuple):
    name: str
    email: str | None
    ticket_id: str | None
    row: int


@dataclass(frozen=True)
class ColumnGroup:
    name_col: int
    email_col: int
    ticket_col: int
    start_day: str


LEFT_GROUP = ColumnGroup(name_col=1, email_col=2, ticket_col=3, start_day="Tuesday")
RIGHT_GROUP = ColumnGroup(name_col=7, email_col=8, ticket_col=9, start_day="Friday")
DEFAULT_GROUPS = (LEFT_GROUP, RIGHT_GROUP)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def detect_day(cell: str) -> str | None:
    """Return the canonical day name a header cell announces, or None."""
    m = _DAY_RE.search(cell)
    return m.group(1).capitalize() if m else None


def is_ignored_cell(cell: str) -> bool:
    """Column labels, counters and summary rows in the name column."""
    if len(cell) < 2 or _DIGITS_RE.match(cell):
        return True
    if cell in _IGNORED_CELLS:
        return True
    return any(frag in cell for frag in _IGNORED_FRAGMENTS)


def transition(current_day: str, cell: str) -> str:
    """Next state for a name cell: the announced day, or unchanged."""
    return detect_day(cell) or current_day


def emit(group: ColumnGroup, row: Sequence[Any], name: str, idx: int) -> BuildEntry:
    email = text_at(row, group.email_col)
    ticket = text_at(row, group.ticket_col)
    return BuildEntry(
        name=name,
        email=email if email and "@" in email else None,
        ticket_id=None if ticket is None or ticket.upper() == "NA" else ticket,
        row=idx,
    )


class GroupScanner:
    """Tracks the current day for one column group while rows are fed in."""

    def __init__(self, group: ColumnGroup) -> None:
        self.group = group
        self.current_day = group.start_day

    def feed(self, idx: int, row: Sequence[Any] | None) -> tuple[str, BuildEntry] | None:
        """Consume sheet row ``idx``.  Returns (day, entry) for a data row, else None."""
        if not row or len(row) <= self.group.name_col:
            return None
        cell = cell_text(row[self.group.name_col])
        if cell is None or is_ignored_cell(cell):
            return None
        if detect_day(cell):
            self.current_day = transition(self.current_day, cell)
            return None
        return self.current_day, emit(self.group, row, cell, idx)


def parse_build_sheet(
    rows: Sequence[Sequence[Any] | None],
    groups: Sequence[ColumnGroup] = DEFAULT_GROUPS,
) -> dict[str, list[BuildEntry]]:
    """Scan every group over the sheet's data rows and return day → entries.

    Row 0 is the header row and is not scanned.
    """
    days: dict[str, list[BuildEntry]] = {}
    for group in groups:
        scanner = GroupScanner(group)
        for idx in range(1, len(rows)):
            emitted = scanner.feed(idx, rows[idx])
            if emitted is None:
                continue
            day, entry = emitted
            days.setdefault(day, []).append(entry)
    return days


# ---------------------------------------------------------------------------
# DB helpers
# ---------------------------------------------------------------------------

def upsert_build_day(
    conn: psycopg.Connection,
    season_id: str,
    day_date: date,
    day_name: str,
) -> tuple[str, bool]:
    """Find or create the build day for (season, date).  Returns (id, created)."""
    row = conn.execute(
        """
        INSERT INTO build_day (season_id, date, name)
        VALUES (%s, %s, %s)
        ON CONFLICT (season_id, date) DO NOTHING
        RETURNING id
        """,
        (season_id, day_date, f"{day_name} Build"),
    ).fetchone()
    if row:
        return str(row[0]), True
    existing = fetch_id(
        conn,
        "SELECT id FROM build_day WHERE season_id = %s AND date = %s",
        (season_id, day_date),
    )
    return existing, False


# ---------------------------------------------------------------------------
# Importer
# ---------------------------------------------------------------------------

def import_build_crew(
    conn: psycopg.Connection,
    table: Table,
    season_id: str,
    season: SeasonConfig,
    matcher: NameMatcher,
    aggregator: ReportAggregator,
) -> ImportReport:
    report = ImportReport(step="Build Crew")
    roster = parse_build_sheet(table.rows)
    days_created = 0
    assignments = 0

    for day_name in roster:
        if day_name not in season.build_days:
            report.warnings.append(f"Unknown build day: {day_name}")

    day_ids: dict[str, str] = {}
    for day_name, day_date in season.build_days.items():
        if not roster.get(day_name):
            continue
        build_day_id, created = upsert_build_day(conn, season_id, day_date, day_name)
        day_ids[day_name] = build_day_id
        if created:
            days_created += 1

    # Sheet row order.
    pending = sorted(
        ((entry, day_name) for day_name, entries in roster.items()
         if day_name in day_ids for entry in entries),
        key=lambda pair: pair[0].row,
    )
    for entry, day_name in pending:
        ref = resolve_member(
            matcher, entry.name, f"build {day_name} row {entry.row + 1}", report,
            email=entry.email,
        )
        if ref is None:
            continue

        row = conn.execute(
            """
            INSERT INTO build_assignment (build_day_id, season_member_id, wap_ticket_id)
            VALUES (%s, %s, %s)
            ON CONFLICT (build_day_id, season_member_id) DO NOTHING
            RETURNING id
            """,
            (day_ids[day_name], ref.season_member_id, entry.ticket_id),
        ).fetchone()
        if row:
            assignments += 1
        else:
            report.skipped += 1

    report.created = assignments
    report.details = {"Build days": days_created, "Assignments": assignments}
    aggregator.add_report(report)
    return report
