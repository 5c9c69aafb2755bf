"""camp_seed.name_matcher

In-memory identity index over the roster.

Every importer that references a person resolves the raw name or email
through a NameMatcher populated by the Members importer.  Lookup stages,
tried in order until one hits:

  1. exact normalized email (only when the input contains "@")
  2. exact normalized full name
  3. alias table → exact full name of the alias target
  4. full name with all whitespace removed
  5. first name, only when exactly one registered identity has it

A miss appends one warning tagged with the caller's context string.
Ambiguous first-name hits and plain misses are worded differently.

Aliases are static configuration loaded from YAML:

    version: "2025.1"
    aliases:
      steve hatz: stevie hatz
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from camp_seed.normalize import (
    collapsed_name_key,
    first_name_key,
    normalize_email,
    normalize_name,
    trim,
)

log = logging.getLogger(__name__)

DEFAULT_ALIAS_PATH = Path(__file__).parent / "data" / "aliases.yml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class AliasTableValidationError(ValueError):
    """Raised when an alias YAML file fails validation."""


# ---------------------------------------------------------------------------
# MemberRef
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemberRef:
    """A canonical identity as seen by the other importers."""

    member_id: str
    email: str
    name: str
    season_member_id: str


# ---------------------------------------------------------------------------
# Alias table
# ---------------------------------------------------------------------------

def validate_alias_table(data: Any) -> None:
    if not isinstance(data, dict):
        raise AliasTableValidationError("alias file must be a mapping")
    aliases = data.get("aliases")
    if aliases is None:
        raise AliasTableValidationError("missing required key: aliases")
    if not isinstance(aliases, dict):
        raise AliasTableValidationError("aliases must be a mapping of variant -> canonical name")
    for variant, canonical in aliases.items():
        if not isinstance(variant, str) or not isinstance(canonical, str):
            raise AliasTableValidationError(
                f"alias entries must be strings: {variant!r} -> {canonical!r}"
            )
        if not normalize_name(variant) or not normalize_name(canonical):
            raise AliasTableValidationError(
                f"alias entries must not be blank: {variant!r} -> {canonical!r}"
            )


def load_alias_table(yaml_path: Path = DEFAULT_ALIAS_PATH) -> dict[str, str]:
    """Load and validate an alias file; keys and values are name-normalized.

    Raises:
        AliasTableValidationError: If the file content is malformed.
        FileNotFoundError: If the YAML file does not exist.
    """
    raw = Path(yaml_path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    validate_alias_table(data)
    table = {
        normalize_name(variant): normalize_name(canonical)
        for variant, canonical in data["aliases"].items()
    }
    log.debug("Loaded %d aliases from %s (version %s)", len(table), yaml_path, data.get("version"))
    return table


# ---------------------------------------------------------------------------
# NameMatcher
# ---------------------------------------------------------------------------

class NameMatcher:
    """Indexes members by email, full name and first name."""

    def __init__(self, aliases: dict[str, str] | None = None) -> None:
        self._aliases = {
            normalize_name(k): normalize_name(v) for k, v in (aliases or {}).items()
        }
        self._by_email: dict[str, MemberRef] = {}
        self._by_full_name: dict[str, MemberRef] = {}
        self._by_collapsed: dict[str, MemberRef] = {}
        self._by_first_name: dict[str, list[MemberRef]] = {}
        self._member_ids: set[str] = set()
        self.warnings: list[str] = []

    def __len__(self) -> int:
        return len(self._by_email)

    def __contains__(self, member_id: str) -> bool:
        return member_id in self._member_ids

    def register(self, ref: MemberRef) -> bool:
        """Index a member.  Returns False if this member was already indexed."""
        if ref.member_id in self._member_ids:
            return False
        self._member_ids.add(ref.member_id)

        email = normalize_email(ref.email)
        if email:
            self._by_email[email] = ref

        full = normalize_name(ref.name)
        if full:
            if full in self._by_full_name:
                log.info("Full name %r registered twice; latest entry wins", full)
            self._by_full_name[full] = ref
            self._by_collapsed[collapsed_name_key(full)] = ref
            self._by_first_name.setdefault(first_name_key(full), []).append(ref)
        return True

    def resolve(self, value: str | None, context: str | None = None) -> MemberRef | None:
        """Resolve a name or email to a registered member, or None.

        Blank input returns None without a warning.
        """
        raw = trim(value)
        if raw is None:
            return None

        if "@" in raw:
            ref = self._by_email.get(normalize_email(raw) or "")
            if ref:
                return ref

        normalized = normalize_name(raw)
        ref = self._by_full_name.get(normalized)
        if ref:
            return ref

        alias = self._aliases.get(normalized)
        if alias:
            ref = self._by_full_name.get(alias)
            if ref:
                return ref

        ref = self._by_collapsed.get(collapsed_name_key(normalized))
        if ref:
            return ref

        candidates = self._by_first_name.get(first_name_key(normalized), [])
        if len(candidates) == 1:
            return candidates[0]

        ctx = f" ({context})" if context else ""
        if len(candidates) > 1:
            names = ", ".join(c.name for c in candidates)
            self.warnings.append(f'Ambiguous name "{raw}"{ctx} - matches: {names}')
        else:
            self.warnings.append(f'Unmatched: "{raw}"{ctx}')
        return None

    def resolve_by_email_only(self, email: str | None) -> MemberRef | None:
        """Strict email lookup; never warns."""
        norm = normalize_email(email)
        if not norm:
            return None
        return self._by_email.get(norm)
