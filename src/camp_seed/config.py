"""camp_seed.config

Run settings (environment) and season configuration (YAML).

Environment:
  SEED_WORKBOOK_PATH  workbook to import (falls back to EXCEL_PATH, then
                      ./Alborz Master Document 2025.xlsx)
  DATABASE_URL        PostgreSQL DSN (required)
  SEED_SEASON_CONFIG  season YAML (default: packaged season_2025.yml)
  SEED_ALIAS_PATH     alias YAML (default: packaged aliases.yml)
  SEED_LOG_LEVEL      diagnostic log level (default WARNING)

Usage:
    from camp_seed.config import SeedSettings, load_season_config

    settings = SeedSettings.from_env()
    season = load_season_config(settings.season_config_path)
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Mapping

import yaml

from camp_seed.name_matcher import DEFAULT_ALIAS_PATH

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_WORKBOOK_PATH = "Alborz Master Document 2025.xlsx"
DEFAULT_SEASON_CONFIG_PATH = Path(__file__).parent / "data" / "season_2025.yml"

REQUIRED_YAML_KEYS = frozenset({"season", "build_days", "sheets"})

REQUIRED_SEASON_KEYS = frozenset({
    "year",
    "name",
    "dues_amount",
    "grid_fee_30amp",
    "grid_fee_50amp",
    "start_date",
    "end_date",
    "build_start_date",
    "strike_end_date",
})

REQUIRED_SHEET_KEYS = frozenset({
    "members",
    "payments",
    "build_crew",
    "early_arrival",
    "tickets",
    "inventory",
    "budget",
    "expenses",
    "shared_costs",
})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigValidationError(ValueError):
    """Raised when the season YAML or the environment is invalid."""


# ---------------------------------------------------------------------------
# Environment settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SeedSettings:
    workbook_path: Path
    database_url: str
    season_config_path: Path = DEFAULT_SEASON_CONFIG_PATH
    alias_path: Path = DEFAULT_ALIAS_PATH
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SeedSettings":
        env = os.environ if environ is None else environ
        database_url = (env.get("DATABASE_URL") or "").strip()
        if not database_url:
            raise ConfigValidationError("DATABASE_URL must be set")
        workbook = (
            env.get("SEED_WORKBOOK_PATH")
            or env.get("EXCEL_PATH")
            or DEFAULT_WORKBOOK_PATH
        )
        return cls(
            workbook_path=Path(workbook),
            database_url=database_url,
            season_config_path=Path(env.get("SEED_SEASON_CONFIG") or DEFAULT_SEASON_CONFIG_PATH),
            alias_path=Path(env.get("SEED_ALIAS_PATH") or DEFAULT_ALIAS_PATH),
            log_level=(env.get("SEED_LOG_LEVEL") or "WARNING").upper(),
        )


# ---------------------------------------------------------------------------
# Season configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SeasonConfig:
    """Parsed, validated season configuration."""

    year: int
    name: str
    dues_amount: int
    grid_fee_30amp: int
    grid_fee_50amp: int
    start_date: date
    end_date: date
    build_start_date: date
    strike_end_date: date
    build_days: dict[str, date]
    sheets: dict[str, str]
    placeholder_email_domain: str = "placeholder.invalid"
    admin_names: list[str] = field(default_factory=list)
    payment_fallback_date: date | None = None
    recorded_by: str = "seed"
    budget_default_year_column: int = 7
    camp_payer_name: str = "CAMP"
    shared_payer_name: str = "Shared"
    yaml_hash: str = ""

    def sheet(self, key: str) -> str:
        return self.sheets[key]


def _as_date(value: Any, key: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigValidationError(f"{key}: expected YYYY-MM-DD, got {value!r}") from exc


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(f"{key}: expected an integer, got {value!r}")
    return value


def validate_season_config(data: Any) -> None:
    """Raise ConfigValidationError if data does not match the required schema."""
    if not isinstance(data, dict):
        raise ConfigValidationError("season config must be a mapping")
    missing = REQUIRED_YAML_KEYS - set(data)
    if missing:
        raise ConfigValidationError(f"missing required keys: {sorted(missing)}")

    season = data["season"]
    if not isinstance(season, dict):
        raise ConfigValidationError("season must be a mapping")
    missing = REQUIRED_SEASON_KEYS - set(season)
    if missing:
        raise ConfigValidationError(f"season missing keys: {sorted(missing)}")
    for key in ("year", "dues_amount", "grid_fee_30amp", "grid_fee_50amp"):
        _as_int(season[key], f"season.{key}")
    for key in ("start_date", "end_date", "build_start_date", "strike_end_date"):
        _as_date(season[key], f"season.{key}")

    build_days = data["build_days"]
    if not isinstance(build_days, dict) or not build_days:
        raise ConfigValidationError("build_days must be a non-empty mapping of day -> date")
    for day, value in build_days.items():
        _as_date(value, f"build_days.{day}")

    sheets = data["sheets"]
    if not isinstance(sheets, dict):
        raise ConfigValidationError("sheets must be a mapping")
    missing = REQUIRED_SHEET_KEYS - set(sheets)
    if missing:
        raise ConfigValidationError(f"sheets missing keys: {sorted(missing)}")


def parse_season_config(data: dict[str, Any], yaml_hash: str = "") -> SeasonConfig:
    validate_season_config(data)
    season = data["season"]
    members = data.get("members") or {}
    payments = data.get("payments") or {}
    budget = data.get("budget") or {}
    expenses = data.get("expenses") or {}

    fallback = payments.get("fallback_date")
    return SeasonConfig(
        year=season["year"],
        name=str(season["name"]),
        dues_amount=season["dues_amount"],
        grid_fee_30amp=season["grid_fee_30amp"],
        grid_fee_50amp=season["grid_fee_50amp"],
        start_date=_as_date(season["start_date"], "season.start_date"),
        end_date=_as_date(season["end_date"], "season.end_date"),
        build_start_date=_as_date(season["build_start_date"], "season.build_start_date"),
        strike_end_date=_as_date(season["strike_end_date"], "season.strike_end_date"),
        build_days={
            str(day): _as_date(value, f"build_days.{day}")
            for day, value in data["build_days"].items()
        },
        sheets={str(k): str(v) for k, v in data["sheets"].items()},
        placeholder_email_domain=str(
            members.get("placeholder_email_domain") or "placeholder.invalid"
        ),
        admin_names=[str(n) for n in (members.get("admin_names") or [])],
        payment_fallback_date=(
            _as_date(fallback, "payments.fallback_date") if fallback is not None
            else date(season["year"], 1, 1)
        ),
        recorded_by=str(payments.get("recorded_by") or f"seed-{season['year']}"),
        budget_default_year_column=_as_int(
            budget.get("default_year_column", 7), "budget.default_year_column"
        ),
        camp_payer_name=str(expenses.get("camp_payer_name") or "CAMP"),
        shared_payer_name=str(expenses.get("shared_payer_name") or "Shared"),
        yaml_hash=yaml_hash,
    )


def load_season_config(yaml_path: Path = DEFAULT_SEASON_CONFIG_PATH) -> SeasonConfig:
    """Load, validate, and return a SeasonConfig from a YAML file.

    Raises:
        ConfigValidationError: If any required field is missing or invalid.
        FileNotFoundError: If the YAML file does not exist.
    """
    raw = Path(yaml_path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    yaml_hash = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    config = parse_season_config(data, yaml_hash)
    log.debug("Loaded season config %s (year %s, sha256 %s)", yaml_path, config.year, yaml_hash[:12])
    return config
