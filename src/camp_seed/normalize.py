"""Normalization functions for workbook ingestion.

Every function here is total: malformed input yields None, 0, False or a
designated OTHER/NONE value, never an exception.  Raw cells arrive as
str, int, float, date/datetime or None straight from the workbook.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Sequence, TypeVar

T = TypeVar("T")

# Spreadsheet day zero (includes the 1900 leap-year quirk)
_SERIAL_EPOCH = date(1899, 12, 30)
# Numbers above this are treated as date serials (2009-07-06 onward)
_SERIAL_MIN = 40000

_NULL_TOKENS = frozenset({"na", "n/a"})
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_FALLBACK_DATE_FORMATS = (
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%b-%Y",
    "%a, %b %d, %Y",
)
_CURRENCY_STRIP_RE = re.compile(r"[$€£,\s]")

# Amounts and counts land in integer columns.
MAX_STORED_INT = 2**31 - 1


# ---------------------------------------------------------------------------
# Rule 1: trim / normalize_space
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


def normalize_space(value: str | None) -> str | None:
    """Collapse internal runs of whitespace to single spaces, then trim."""
    v = trim(value)
    if v is None:
        return None
    return re.sub(r"\s+", " ", v)


# ---------------------------------------------------------------------------
# Rule 2: cell_text  (raw cell → trimmed text)
# ---------------------------------------------------------------------------

def cell_text(value: Any) -> str | None:
    """Render a raw cell as trimmed text, or None when blank.

    Integral floats lose their trailing ``.0`` so ticket numbers and the
    like read the way they were typed.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return trim(str(value))


def cell_at(row: Sequence[Any] | None, index: int) -> Any:
    """Return row[index], or None when the row is too short."""
    if row is None or index >= len(row):
        return None
    return row[index]


def text_at(row: Sequence[Any] | None, index: int) -> str | None:
    return cell_text(cell_at(row, index))


# ---------------------------------------------------------------------------
# Rule 3: normalize_email / normalize_name
# ---------------------------------------------------------------------------

def normalize_email(value: str | None) -> str | None:
    """Lowercase an email address and drop every whitespace character."""
    v = trim(value)
    if v is None:
        return None
    v = re.sub(r"\s+", "", v).lower()
    return v if v else None


def normalize_name(value: str | None) -> str:
    """Lowercase, trim and collapse whitespace.

    The basis of every identity-matching key.  Returns "" for blank input
    so callers can use the result directly as a dict key.
    """
    v = normalize_space(value)
    return v.lower() if v else ""


def first_name_key(value: str | None) -> str:
    norm = normalize_name(value)
    return norm.split(" ")[0] if norm else ""


def collapsed_name_key(value: str | None) -> str:
    """Normalized name with every space removed ("Simon Avedissian" → "simonavedissian")."""
    return normalize_name(value).replace(" ", "")


# ---------------------------------------------------------------------------
# Rule 4: currency → minor units
# ---------------------------------------------------------------------------

def parse_numeric(value: Any) -> Decimal | None:
    """Parse a decimal number from a cell, stripping currency symbols and
    thousands separators.  Returns None on failure."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            return None
        return d if d.is_finite() else None
    v = trim(str(value))
    if v is None:
        return None
    v = _CURRENCY_STRIP_RE.sub("", v)
    if not v:
        return None
    try:
        d = Decimal(v)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def to_minor_units(value: Any) -> int:
    """Convert a currency cell to integer cents.  Empty, non-numeric or too
    large for an integer column → 0.

    >>> to_minor_units("$1,200.00")
    120000
    """
    amount = parse_numeric(value)
    if amount is None:
        return 0
    try:
        cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Exceeds the decimal context precision.
        return 0
    return cents if abs(cents) <= MAX_STORED_INT else 0


def format_minor_units(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def parse_int(value: Any, default: int = 0) -> int:
    amount = parse_numeric(value)
    if amount is None:
        return default
    n = int(amount)
    return n if abs(n) <= MAX_STORED_INT else default


# ---------------------------------------------------------------------------
# Rule 5: parse_date
# ---------------------------------------------------------------------------

def parse_date(value: Any) -> date | None:
    """Parse a workbook date cell into a calendar date.

    Accepts date/datetime values, spreadsheet serial numbers, ISO
    ``YYYY-MM-DD`` strings, ``MM/DD/YYYY`` strings and a handful of
    spelled-out formats.  Anything else → None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        if value != value or value <= _SERIAL_MIN:
            return None
        try:
            return _SERIAL_EPOCH + timedelta(days=int(value))
        except OverflowError:
            return None

    v = trim(str(value))
    if v is None or v.lower() in _NULL_TOKENS:
        return None

    m = _ISO_DATE_RE.match(v)
    if m:
        try:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            pass

    m = _US_DATE_RE.match(v)
    if m:
        try:
            return date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
        except ValueError:
            pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(v, fmt).date()
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Rule 6: controlled vocabularies
# ---------------------------------------------------------------------------

Rule = tuple[Callable[[str], bool], T]


def contains(*needles: str) -> Callable[[str], bool]:
    """Predicate: value contains any of the needles."""
    return lambda s: any(n in s for n in needles)


def contains_all(*needles: str) -> Callable[[str], bool]:
    return lambda s: all(n in s for n in needles)


def apply_rules(
    value: str | None,
    exact: dict[str, T],
    rules: Sequence[Rule],
    default: T,
) -> T:
    """Map free text to a vocabulary value.

    The lowercased, trimmed value is looked up in ``exact`` first, then the
    ``(predicate, result)`` rules are tried in order; ``default`` otherwise.
    """
    v = trim(value)
    if v is None:
        return default
    s = v.lower()
    if s in exact:
        return exact[s]
    for predicate, result in rules:
        if predicate(s):
            return result
    return default


HOUSING_EXACT = {
    "tent": "TENT",
    "shiftpod": "SHIFTPOD",
    "rv": "RV",
    "trailer": "TRAILER",
    "dorm": "DORM",
    "shared": "SHARED",
    "hexayurt": "HEXAYURT",
}

HOUSING_RULES: list[Rule] = [
    (contains("tent"), "TENT"),
    (contains("shift"), "SHIFTPOD"),
    (contains("rv", "camper"), "RV"),
    (contains("trail", "airstream"), "TRAILER"),
    (contains("dorm"), "DORM"),
    (contains("share"), "SHARED"),
    (contains("hexa"), "HEXAYURT"),
]


def parse_housing_type(value: str | None) -> str | None:
    """Blank → None; unrecognised text → OTHER."""
    if trim(value) is None:
        return None
    return apply_rules(value, HOUSING_EXACT, HOUSING_RULES, "OTHER")


GRID_POWER_EXACT = {
    "no": "NONE",
    "n": "NONE",
    "none": "NONE",
    "n/a": "NONE",
    "paid": "AMP_30",
    "bal": "AMP_30",
    "yes": "AMP_30",
    "y": "AMP_30",
}

GRID_POWER_RULES: list[Rule] = [
    (contains("50"), "AMP_50"),
    (contains("30"), "AMP_30"),
]


def parse_grid_power(value: str | None) -> str:
    return apply_rules(value, GRID_POWER_EXACT, GRID_POWER_RULES, "NONE")


GENDER_EXACT = {
    "m": "MALE",
    "male": "MALE",
    "f": "FEMALE",
    "female": "FEMALE",
    "nb": "NON_BINARY",
    "non-binary": "NON_BINARY",
    "non_binary": "NON_BINARY",
    "nonbinary": "NON_BINARY",
}


def parse_gender(value: str | None) -> str | None:
    """Blank → None; unrecognised text → OTHER."""
    if trim(value) is None:
        return None
    return apply_rules(value, GENDER_EXACT, [], "OTHER")


_YES_TOKENS = frozenset({"y", "yes", "true", "1"})


def parse_yes_no(value: str | None) -> bool:
    v = trim(value)
    return v is not None and v.lower() in _YES_TOKENS


PAYMENT_TYPE_EXACT = {
    "dues": "DUES",
    "grid": "GRID",
    "food": "FOOD",
    "tent": "TENT",
    "ticket": "TICKET",
    "gs": "FUNDRAISING",
}

PAYMENT_TYPE_RULES: list[Rule] = [
    (lambda s: "donation" in s and "strike" not in s, "DONATION"),
    (contains("strike"), "STRIKE_DONATION"),
    (contains("rv", "voucher"), "RV_VOUCHER"),
    (contains("beer"), "BEER_FUND"),
    (contains("fundrais"), "FUNDRAISING"),
]


def parse_payment_type(value: str | None) -> str:
    return apply_rules(value, PAYMENT_TYPE_EXACT, PAYMENT_TYPE_RULES, "OTHER")


PAYMENT_METHOD_EXACT = {
    "zelle": "ZELLE",
    "cash": "CASH",
    "cc": "CARD",
}

PAYMENT_METHOD_RULES: list[Rule] = [
    (contains("zelle"), "ZELLE"),
    (contains("paypal"), "PAYPAL"),
    (contains("venmo"), "VENMO"),
    (contains("card"), "CARD"),
    (contains("givebutter"), "GIVEBUTTER"),
]


def parse_payment_method(value: str | None) -> str:
    return apply_rules(value, PAYMENT_METHOD_EXACT, PAYMENT_METHOD_RULES, "OTHER")


PRE_APPROVAL_EXACT = {
    "yes": "YES",
    "y": "YES",
    "maybe": "MAYBE",
    "m": "MAYBE",
    "no": "NO",
    "n": "NO",
}


def parse_pre_approval(value: str | None) -> str | None:
    """YES / MAYBE / NO, or None when blank or unrecognised (not answered)."""
    return apply_rules(value, PRE_APPROVAL_EXACT, [], None)


ENROLLMENT_STATUS_EXACT = {
    "y": "CONFIRMED",
    "yes": "CONFIRMED",
    "confirmed": "CONFIRMED",
    "n": "CANCELLED",
    "no": "CANCELLED",
    "cancelled": "CANCELLED",
    "maybe": "MAYBE",
}


def parse_enrollment_status(value: str | None) -> str:
    """Roster confirmation flag → enrollment status; blank counts as confirmed."""
    return apply_rules(value, ENROLLMENT_STATUS_EXACT, [], "CONFIRMED")
