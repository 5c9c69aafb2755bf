"""camp_seed.workbook

Read-only access to the master workbook.

Each worksheet becomes a Table holding every row as a list of raw cell
values (str, int, float, datetime or None) in sheet order.  Row 0 is the
header row, so ``rows[i]`` is spreadsheet row ``i + 1``.  Nothing here
interprets a cell; that belongs to the importers.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

log = logging.getLogger(__name__)

Cell = Union[str, int, float, date, datetime, None]


class WorkbookReadError(ValueError):
    """Raised when the workbook file exists but cannot be opened as .xlsx."""


@dataclass
class Table:
    name: str
    header_row: list[str] = field(default_factory=list)
    rows: list[list[Cell]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def data_rows(self, start: int = 1):
        """Yield (index, row) pairs from ``start`` onward, skipping absent rows."""
        for idx in range(start, len(self.rows)):
            row = self.rows[idx]
            if row is None:
                continue
            yield idx, row


def _header_text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def make_table(name: str, rows: list[list[Cell]]) -> Table:
    """Build a Table from raw rows, deriving the header from row 0."""
    header = [_header_text(h) for h in rows[0]] if rows else []
    return Table(name=name, header_row=header, rows=rows)


def read_workbook(path: str | Path) -> list[Table]:
    """Open an .xlsx workbook and return one Table per worksheet, in order.

    Raises FileNotFoundError when the workbook does not exist and
    WorkbookReadError when it is not a readable .xlsx file.
    """
    wb_path = Path(path).expanduser().resolve()
    if not wb_path.is_file():
        raise FileNotFoundError(f"workbook not found: {wb_path}")

    try:
        wb = openpyxl.load_workbook(wb_path, read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise WorkbookReadError(f"cannot read workbook {wb_path}: {exc}") from exc
    try:
        tables: list[Table] = []
        for ws in wb.worksheets:
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
            tables.append(make_table(ws.title, rows))
            log.debug("Loaded sheet %r: %d rows", ws.title, len(rows))
    finally:
        wb.close()
    return tables


def get_table(tables: list[Table], name: str) -> Table | None:
    """Find a table by exact name, then by trimmed case-insensitive name.

    Returns None when absent; the caller decides whether that is fatal.
    """
    for table in tables:
        if table.name == name:
            return table
    wanted = name.strip().lower()
    for table in tables:
        if table.name.strip().lower() == wanted:
            return table
    return None
