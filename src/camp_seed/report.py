"""camp_seed.report

Per-step import reports and the run-wide aggregator.

The Orchestrator owns one ReportAggregator and hands it to every
importer.  Output goes to stdout through click.echo; the format is what
operators read after a run, so keep it stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import click

MAX_WARNINGS_INLINE = 10


@dataclass
class ImportReport:
    step: str
    created: int = 0
    updated: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.created + self.updated

    def summary_line(self) -> str:
        parts = []
        if self.created:
            parts.append(f"{self.created} created")
        if self.updated:
            parts.append(f"{self.updated} updated")
        if self.skipped:
            parts.append(f"{self.skipped} skipped")
        return f"  [{self.step}] {', '.join(parts) or '0 records'}"


class ReportAggregator:
    """Accumulates ImportReports for one run and prints them."""

    def __init__(self, echo=click.echo) -> None:
        self.reports: list[ImportReport] = []
        self._echo = echo

    def add_report(self, report: ImportReport) -> ImportReport:
        self.reports.append(report)
        echo = self._echo
        echo(report.summary_line())

        for key, val in report.details.items():
            echo(f"    {key}: {val}")

        if report.warnings:
            echo(f"    ! {len(report.warnings)} warning(s):")
            for w in report.warnings[:MAX_WARNINGS_INLINE]:
                echo(f"      - {w}")
            if len(report.warnings) > MAX_WARNINGS_INLINE:
                echo(f"      ... and {len(report.warnings) - MAX_WARNINGS_INLINE} more")
        return report

    @property
    def total_created(self) -> int:
        return sum(r.created for r in self.reports)

    @property
    def total_updated(self) -> int:
        return sum(r.updated for r in self.reports)

    @property
    def total_skipped(self) -> int:
        return sum(r.skipped for r in self.reports)

    @property
    def total_warnings(self) -> int:
        return sum(len(r.warnings) for r in self.reports)

    def all_warnings(self) -> list[tuple[str, str]]:
        return [(r.step, w) for r in self.reports for w in r.warnings]

    def print_final_report(self, title: str = "SEED COMPLETE") -> None:
        echo = self._echo
        echo("")
        echo("========================================")
        echo(f" {title} - Summary")
        echo("========================================")
        for r in self.reports:
            echo(f"  {r.step:<20} {r.total:>4} records")
        echo("----------------------------------------")
        echo(f"  Total created:  {self.total_created}")
        echo(f"  Total updated:  {self.total_updated}")
        echo(f"  Total skipped:  {self.total_skipped}")
        echo(f"  Warnings:       {self.total_warnings}")
        echo("========================================")
        echo("")

        if self.total_warnings:
            echo("All warnings:")
            for step, w in self.all_warnings():
                echo(f"  [{step}] {w}")
            echo("")
