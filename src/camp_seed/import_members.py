"""camp_seed.import_members

Roster ("Alborzians") ingestion.

Creates one member per distinct person (keyed by email) and one
season_member enrollment per (season, member), then returns a NameMatcher
populated with every imported identity.  Must run before any importer
that references a person.

Roster layout (positional, row 0 is the header):
  0 confirmed    1 messaging    2 name         3 email
  4 dues paid    5 grid power   6 housing      7 housing size
  8 (reserved)   9 ride         10 arrival     11 departure
  12 dietary     13 shifts      14 pre-approval 15 gender
  16 ticket      17 build crew  18 strike crew  19 alborz virgin
  20 burn virgin 21 map object
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple, Sequence

import psycopg

from camp_seed.config import SeasonConfig
from camp_seed.name_matcher import MemberRef, NameMatcher
from camp_seed.normalize import (
    cell_at,
    normalize_email,
    normalize_name,
    parse_date,
    parse_enrollment_status,
    parse_gender,
    parse_grid_power,
    parse_housing_type,
    parse_pre_approval,
    parse_yes_no,
    text_at,
    trim,
)
from camp_seed.report import ImportReport, ReportAggregator
from camp_seed.shared import find_member_id_by_email, find_season_member_id
from camp_seed.workbook import Table

# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------

COL_CONFIRMED = 0
COL_MESSAGING = 1
COL_NAME = 2
COL_EMAIL = 3
COL_DUES_PAID = 4
COL_GRID = 5
COL_HOUSING = 6
COL_SIZE = 7
COL_RIDE_DETAILS = 9
COL_ARRIVAL = 10
COL_DEPARTURE = 11
COL_DIETARY = 12
COL_SHIFTS = 13
COL_PRE_APPROVAL = 14
COL_GENDER = 15
COL_TICKET = 16
COL_BUILD = 17
COL_STRIKE = 18
COL_ALBORZ_VIRGIN = 19
COL_BM_VIRGIN = 20
COL_MAP_OBJECT = 21


class RosterRow(NamedTuple):
    confirmed: str | None
    messaging: str | None
    name: str
    email: str | None
    dues_paid: str | None
    grid: str | None
    housing: str | None
    housing_size: str | None
    ride_details: str | None
    arrival: Any
    departure: Any
    dietary: str | None
    shifts: str | None
    pre_approval: str | None
    gender: str | None
    ticket: str | None
    build: str | None
    strike: str | None
    alborz_virgin: str | None
    bm_virgin: str | None
    map_object: str | None


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------

def is_member_name(value: Any) -> bool:
    """False for blank cells and the summary rows mixed into the roster."""
    if not isinstance(value, str):
        return False
    n = value.strip()
    if not n:
        return False
    if ":" in n or "Total" in n or n.isdigit():
        return False
    return True


def parse_roster_row(row: Sequence[Any] | None) -> RosterRow | None:
    """Map a raw roster row onto RosterRow, or None for non-member rows."""
    if not row or len(row) <= COL_NAME:
        return None
    raw_name = cell_at(row, COL_NAME)
    if not is_member_name(raw_name):
        return None
    return RosterRow(
        confirmed=text_at(row, COL_CONFIRMED),
        messaging=text_at(row, COL_MESSAGING),
        name=raw_name.strip(),
        email=text_at(row, COL_EMAIL),
        dues_paid=text_at(row, COL_DUES_PAID),
        grid=text_at(row, COL_GRID),
        housing=text_at(row, COL_HOUSING),
        housing_size=text_at(row, COL_SIZE),
        ride_details=text_at(row, COL_RIDE_DETAILS),
        arrival=cell_at(row, COL_ARRIVAL),
        departure=cell_at(row, COL_DEPARTURE),
        dietary=text_at(row, COL_DIETARY),
        shifts=text_at(row, COL_SHIFTS),
        pre_approval=text_at(row, COL_PRE_APPROVAL),
        gender=text_at(row, COL_GENDER),
        ticket=text_at(row, COL_TICKET),
        build=text_at(row, COL_BUILD),
        strike=text_at(row, COL_STRIKE),
        alborz_virgin=text_at(row, COL_ALBORZ_VIRGIN),
        bm_virgin=text_at(row, COL_BM_VIRGIN),
        map_object=text_at(row, COL_MAP_OBJECT),
    )


def generate_placeholder_email(name: str, domain: str) -> str:
    """Deterministic stand-in address: "Jane  Q. Doe" → jane.q.doe@<domain>."""
    parts = (re.sub(r"[^a-z0-9]", "", p) for p in normalize_name(name).split(" "))
    slug = ".".join(p for p in parts if p) or "member"
    return f"{slug}@{domain}"


def usable_email(value: str | None) -> str | None:
    email = normalize_email(value)
    if not email or "@" not in email:
        return None
    return email


def split_housing(value: str | None) -> tuple[str | None, str | None]:
    """Return (housing text to classify, note to keep).

    "shared with X" and "Dorm or Tent" carry detail the housing type
    cannot express, so the raw text is kept as a note.
    """
    v = trim(value)
    if v is None:
        return None, None
    if v.lower().startswith("shared w"):
        return "Shared", v
    if v == "Dorm or Tent":
        return "Dorm", v
    return v, None


def build_enrollment(roster: RosterRow) -> dict[str, Any]:
    """Typed season_member fields for one roster row."""
    housing_text, housing_note = split_housing(roster.housing)

    special_parts = []
    if roster.dues_paid and roster.dues_paid not in ("Y", "N"):
        special_parts.append(f"Dues: {roster.dues_paid}")
    if housing_note:
        special_parts.append(f"Housing: {housing_note}")

    return {
        "status": parse_enrollment_status(roster.confirmed),
        "housing_type": parse_housing_type(housing_text),
        "housing_size": roster.housing_size,
        "grid_power": parse_grid_power(roster.grid),
        "arrival_date": parse_date(roster.arrival),
        "departure_date": parse_date(roster.departure),
        "pre_approval_form": parse_pre_approval(roster.pre_approval),
        "build_crew": parse_yes_no(roster.build),
        "strike_crew": parse_yes_no(roster.strike),
        "is_alborz_virgin": parse_yes_no(roster.alborz_virgin),
        "is_bm_virgin": parse_yes_no(roster.bm_virgin),
        "added_to_messaging": parse_yes_no(roster.messaging),
        "special_requests": "; ".join(special_parts) if special_parts else None,
        "ride_details": roster.ride_details,
        "shift_notes": roster.shifts,
        "ticket_notes": roster.ticket,
        "map_object": roster.map_object,
    }


# ---------------------------------------------------------------------------
# DB helpers
# ---------------------------------------------------------------------------

def upsert_member(
    conn: psycopg.Connection,
    email: str,
    name: str,
    gender: str | None,
    role: str,
    dietary: str | None,
    is_placeholder: bool,
) -> tuple[str, bool]:
    """Upsert a member by email.  Returns (member_id, created)."""
    existing = find_member_id_by_email(conn, email)
    row = conn.execute(
        """
        INSERT INTO member
          (email, name, normalized_name, gender, role, is_active,
           is_placeholder_email, dietary_restrictions)
        VALUES (%s, %s, %s, %s, %s, true, %s, %s)
        ON CONFLICT (email) DO UPDATE SET
          name = EXCLUDED.name,
          normalized_name = EXCLUDED.normalized_name,
          gender = COALESCE(EXCLUDED.gender, member.gender),
          updated_at = now()
        RETURNING id
        """,
        (email, name, normalize_name(name), gender, role, is_placeholder, dietary),
    ).fetchone()
    return str(row[0]), existing is None


_ENROLLMENT_COLUMNS = (
    "status", "housing_type", "housing_size", "grid_power",
    "arrival_date", "departure_date", "pre_approval_form",
    "build_crew", "strike_crew", "is_alborz_virgin", "is_bm_virgin",
    "added_to_messaging", "special_requests", "ride_details",
    "shift_notes", "ticket_notes", "map_object",
)


def upsert_season_member(
    conn: psycopg.Connection,
    season_id: str,
    member_id: str,
    enrollment: dict[str, Any],
) -> tuple[str, bool]:
    """Upsert the (season, member) enrollment in place.  Returns (id, created)."""
    existing = find_season_member_id(conn, season_id, member_id)
    cols = ", ".join(_ENROLLMENT_COLUMNS)
    placeholders = ", ".join(["%s"] * len(_ENROLLMENT_COLUMNS))
    updates = ",\n          ".join(f"{c} = EXCLUDED.{c}" for c in _ENROLLMENT_COLUMNS)
    row = conn.execute(
        f"""
        INSERT INTO season_member (season_id, member_id, {cols})
        VALUES (%s, %s, {placeholders})
        ON CONFLICT (season_id, member_id) DO UPDATE SET
          {updates},
          updated_at = now()
        RETURNING id
        """,
        (season_id, member_id, *(enrollment[c] for c in _ENROLLMENT_COLUMNS)),
    ).fetchone()
    return str(row[0]), existing is None


# ---------------------------------------------------------------------------
# Importer
# ---------------------------------------------------------------------------

def import_members(
    conn: psycopg.Connection,
    table: Table,
    season_id: str,
    season: SeasonConfig,
    aggregator: ReportAggregator,
    aliases: dict[str, str] | None = None,
) -> NameMatcher:
    """Import the roster and return a matcher over every imported member."""
    matcher = NameMatcher(aliases)
    report = ImportReport(step="Members")
    admin_names = {normalize_name(n) for n in season.admin_names}
    placeholders = 0
    with_email = 0

    for idx, row in table.data_rows():
        roster = parse_roster_row(row)
        if roster is None:
            continue

        email = usable_email(roster.email)
        is_placeholder = email is None
        if not is_placeholder:
            with_email += 1
        else:
            email = generate_placeholder_email(roster.name, season.placeholder_email_domain)
            placeholders += 1
            report.warnings.append(
                f'No email for "{roster.name}" - using placeholder: {email}'
            )

        role = "ADMIN" if normalize_name(roster.name) in admin_names else "MEMBER"
        member_id, member_created = upsert_member(
            conn, email, roster.name, parse_gender(roster.gender),
            role, roster.dietary, is_placeholder,
        )
        season_member_id, _ = upsert_season_member(
            conn, season_id, member_id, build_enrollment(roster),
        )

        if member_created:
            report.created += 1
        else:
            report.updated += 1

        ref = MemberRef(
            member_id=member_id,
            email=email,
            name=roster.name,
            season_member_id=season_member_id,
        )
        if not matcher.register(ref):
            report.warnings.append(
                f'Duplicate roster entry for "{roster.name}" ({email}) at row {idx + 1} '
                "- enrollment updated in place"
            )

    report.details = {
        "With email": with_email,
        "Placeholder email": placeholders,
    }
    aggregator.add_report(report)
    return matcher
