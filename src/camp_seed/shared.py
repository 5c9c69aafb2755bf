"""camp_seed.shared

Shared utilities used by every importer: exceptions, identity resolution
with warning capture, and common DB helpers.
"""

from __future__ import annotations

from typing import Any

import psycopg

from camp_seed.name_matcher import MemberRef, NameMatcher
from camp_seed.normalize import normalize_email
from camp_seed.report import ImportReport


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MissingTableError(Exception):
    """Raised when a sheet every later step depends on is absent."""


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------

def resolve_member(
    matcher: NameMatcher,
    name: str | None,
    context: str,
    report: ImportReport,
    email: str | None = None,
) -> MemberRef | None:
    """Resolve a row's person through the matcher.

    A trusted email column is tried strictly first; the name goes through
    the full lookup.  On a miss the matcher's warning for this lookup is
    copied onto the step report and the row is counted as skipped.
    """
    if email and "@" in email:
        ref = matcher.resolve_by_email_only(email)
        if ref is not None:
            return ref

    mark = len(matcher.warnings)
    ref = matcher.resolve(name, context)
    if ref is None:
        new_warnings = matcher.warnings[mark:]
        report.warnings.extend(new_warnings or [f'Unmatched: "{name}" ({context})'])
        report.skipped += 1
    return ref


# ---------------------------------------------------------------------------
# Shared DB helpers
# ---------------------------------------------------------------------------

# table name → label printed in the verification block
VERIFIED_TABLES: dict[str, str] = {
    "member": "Members",
    "season_member": "Season Members",
    "payment": "Payments",
    "build_day": "Build Days",
    "build_assignment": "Build Assigns",
    "early_arrival_pass": "Early Arrival",
    "strike_assignment": "Strike Assigns",
    "ticket": "Tickets",
    "inventory_item": "Inventory Items",
    "budget_line": "Budget Lines",
    "expense": "Expenses",
}


def count_rows(conn: psycopg.Connection, table: str) -> int:
    if table not in VERIFIED_TABLES:
        raise ValueError(f"unknown table: {table!r}")
    row = conn.execute(f"SELECT count(*) FROM {table}").fetchone()
    return int(row[0])


def fetch_id(
    conn: psycopg.Connection,
    sql: str,
    params: tuple[Any, ...],
) -> str | None:
    """Run a single-column lookup and return the first id as str, or None."""
    row = conn.execute(sql, params).fetchone()
    return str(row[0]) if row else None


def find_member_id_by_email(conn: psycopg.Connection, email: str) -> str | None:
    return fetch_id(
        conn,
        "SELECT id FROM member WHERE email = %s",
        (normalize_email(email),),
    )


def find_season_member_id(
    conn: psycopg.Connection,
    season_id: str,
    member_id: str,
) -> str | None:
    return fetch_id(
        conn,
        "SELECT id FROM season_member WHERE season_id = %s AND member_id = %s",
        (season_id, member_id),
    )
