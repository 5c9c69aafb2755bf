"""Integration test fixtures.

Applies migrations 0001–0003 against an ephemeral PostgreSQL database
provided by pytest-postgresql before each integration test runs.
"""

from __future__ import annotations

from pathlib import Path

import openpyxl
import psycopg
import pytest
from pytest_postgresql import factories

from camp_seed.config import load_season_config
from camp_seed.report import ReportAggregator
from camp_seed.workbook import make_table

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent
MIGRATIONS = [
    PROJECT_ROOT / "migrations" / "0001_extensions.sql",
    PROJECT_ROOT / "migrations" / "0002_season_members.sql",
    PROJECT_ROOT / "migrations" / "0003_finance_logistics.sql",
]

# ---------------------------------------------------------------------------
# pytest-postgresql process fixture
# ---------------------------------------------------------------------------

postgresql_proc = factories.postgresql_proc()
postgresql = factories.postgresql("postgresql_proc")


# ---------------------------------------------------------------------------
# Schema fixture: applies all migrations for every test
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def db_conn(postgresql):
    """Return a psycopg connection with schema applied.

    Each test gets a fresh schema via function scope so tests are isolated.
    """
    dsn = (
        f"host={postgresql.info.host} "
        f"port={postgresql.info.port} "
        f"dbname={postgresql.info.dbname} "
        f"user={postgresql.info.user} "
        f"password={postgresql.info.password or ''}"
    )
    conn = psycopg.connect(dsn, autocommit=True)
    try:
        for migration in MIGRATIONS:
            sql = migration.read_text(encoding="utf-8")
            conn.execute(sql)
        conn.autocommit = False
        yield conn, dsn
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def season():
    return load_season_config()


class RecordingAggregator(ReportAggregator):
    """ReportAggregator that keeps every echoed line in ``lines``."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        super().__init__(echo=self.lines.append)


@pytest.fixture
def aggregator():
    return RecordingAggregator()


# ---------------------------------------------------------------------------
# Sample workbook
# ---------------------------------------------------------------------------

def _roster_row(name, email=None, **cols) -> list:
    row = [None] * 22
    row[0] = "Y"
    row[2] = name
    row[3] = email
    for idx, value in cols.items():
        row[int(idx[1:])] = value
    return row


def _build_row(left=None, left_email=None, left_ticket=None,
               right=None, right_email=None, right_ticket=None) -> list:
    return [None, left, left_email, left_ticket, None, None, None, right, right_email, right_ticket]


SAMPLE_SHEETS: dict[str, list[list]] = {
    "Alborzians": [
        ["Confirmed", "WA", "Name", "Email"] + [None] * 18,
        _roster_row("Jane Doe", "jane@example.com", c15="F", c17="Y", c18="Y", c11="9/2/2025"),
        _roster_row("Kris Brons", "kris@example.com", c15="M"),
        _roster_row("Jane Smith", "jsmith@example.com"),
        _roster_row("Stevie Hatz", None, c6="shared with Jane"),
        _roster_row("Amir Jalali", " Amir@Example.com "),
        _roster_row("Total: 5"),
    ],
    "Dues + Fees Paid": [
        [None, "Type", "Member", "DATE", "Amount", "Method", "Notes", "Paid to"],
        [None, "Dues", "Jane Doe", "2025-03-01", 1200, "Venmo", None, "Amir"],
        [None, "Grid", "Steve Hatz", None, 500, "Zelle", None, None],
        [None, "Dues", "Nobody Known", "2025-03-02", 1200, "Cash", None, None],
        [None, "Dues", "Jane", "2025-03-03", 1200, "Cash", None, None],
    ],
    "Build sheet": [
        _build_row("Tuesday (19)", "EMAIL", "Ticket ID", "Friday (22)", "EMAIL", "Ticket ID"),
        _build_row("Jane Doe", "jane@example.com", "W1", "Kris Brons", "kris@example.com", "NA"),
        _build_row("Wednesday(20)"),
        _build_row("Amir Jalali"),
    ],
    "Early Arrival Passes": [
        [None],
        [None],
        [None, "NAME", "DATE", "Ticket ID"],
        [1, "Jane Doe", "8/20/2025", "EA1"],
        [2, "Amir Jalali", None, "NA"],
    ],
    "DGS": [
        ["Number", "Name", "Email", "# of Tix", "Added", "Purchased Confirmed", "Vehicle Pass", "Notes"],
        [1, "Jane Doe", "jane@example.com", 2, "Y", "Y", "N", None],
        [2, "Stevie Hatz", None, None, "Y", "N", "Y", "car"],
    ],
    "Inventory": [
        ["Shade", None, "Kitchen"],
        ["2 Aluminet", None, "6 Coolers"],
    ],
    "Budget": [
        ["Inflow", None, None, None, None, None, None, None, None],
        ["Budget Estimates:", 2022, None, 2023, None, 2024, None, 2025, None],
        ["Food", None, None, None, None, None, None, 500, "groceries"],
        ["Chef payments", None, None, None, None, None, None, 120.5, "two chefs"],
        ["Generator fuel estimate", None, None, None, None, None, None, 300, None],
        ["Total", None, None, None, None, None, None, 920.5, None],
    ],
    "Expenses": [
        [2025],
        ["Paid by", "Date", "Charge", "Amount", "Notes", "Comment"],
        ["Jane", "8/1/2025", "Propane", 82.10, None, None],
        ["ALBORZ", "8/2/2025", "Ice", 40, None, None],
        ["Jane", None, "Tarp", 15, None, None],
    ],
    "HUBS Shared Costs": [
        ["Shared Resources", "Vendor", "Cost", "Notes", "Cost Share"],
        ["Porta potties", "United", 1500, None, None],
    ],
}


def sample_tables(omit: tuple[str, ...] = ()) -> list:
    return [
        make_table(name, [list(r) for r in rows])
        for name, rows in SAMPLE_SHEETS.items()
        if name not in omit
    ]


def write_sample_workbook(path: Path, omit: tuple[str, ...] = ()) -> Path:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in SAMPLE_SHEETS.items():
        if name in omit:
            continue
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


@pytest.fixture
def tables():
    return sample_tables()


@pytest.fixture
def workbook_path(tmp_path):
    return write_sample_workbook(tmp_path / "master.xlsx")


@pytest.fixture
def write_workbook(tmp_path):
    def _write(name: str, omit: tuple[str, ...] = ()) -> Path:
        return write_sample_workbook(tmp_path / name, omit)
    return _write
