"""Console presentation of violations, fix results and rule listings."""

from collections import Counter
from typing import TYPE_CHECKING, Optional, Protocol

from rich.console import Console
from rich.table import Table

from structure_warden.domain.entities import FixStatus, Severity

if TYPE_CHECKING:
    from structure_warden.domain.entities import FixResult, RuleDefinition, Violation
    from structure_warden.use_cases.remediate_project import ScanOutcome


class ScanReporter(Protocol):
    """Protocol for reporting scan and fix outcomes."""

    def report_scan(self, outcome: "ScanOutcome") -> None:
        ...

    def report_fixes(self, results: list["FixResult"], dry_run: bool) -> None:
        ...

    def report_rules(self, definitions: list["RuleDefinition"]) -> None:
        ...


_SECTIONS = (
    (Severity.ERROR, "Errors", "bold red"),
    (Severity.WARNING, "Warnings", "yellow"),
    (Severity.INFO, "Info", "blue"),
)

_STATUS_STYLES = {
    FixStatus.FIXED: "green",
    FixStatus.DRY_RUN: "cyan",
    FixStatus.SKIPPED: "dim",
    FixStatus.NOT_FIXABLE: "dim",
    FixStatus.FAILED: "red",
    FixStatus.PARSE_ERROR: "red",
    FixStatus.VALIDATION_FAILED: "red",
}


class TerminalScanReporter(ScanReporter):
    """Rich tables: Errors, then Warnings, then Info, then the summary."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def report_scan(self, outcome: "ScanOutcome") -> None:
        violations = outcome.violations
        if not violations:
            self.console.print(
                f"\n✅ {len(outcome.modules)} module(s) scanned, no structure violations detected.")
        for severity, title, style in _SECTIONS:
            selected = [v for v in violations if v.severity is severity]
            if selected:
                self.console.print(self._violation_table(f"{title} ({len(selected)})", style, selected))
        self.console.print(self._summary_table(outcome))

    def report_fixes(self, results: list["FixResult"], dry_run: bool) -> None:
        if not results:
            self.console.print("\nNothing to fix.")
            return
        table = Table(title="Would Apply" if dry_run else "Fix Results", title_justify="left")
        table.add_column("Status")
        table.add_column("Rule", style="bold")
        table.add_column("Location")
        table.add_column("Detail")
        for result in results:
            style = _STATUS_STYLES.get(result.status, "")
            detail = result.error_message or result.description
            table.add_row(
                f"[{style}]{result.status.value}[/]",
                result.violation.rule_id,
                result.violation.location,
                detail,
            )
        self.console.print(table)
        if dry_run:
            for result in results:
                for diff in result.diffs:
                    self.console.print(diff, markup=False, highlight=False)

        counts = Counter(result.status for result in results)
        summary = ", ".join(
            f"{status.value}: {counts[status]}" for status in FixStatus if counts[status])
        self.console.print(f"\n{summary}")

    def report_rules(self, definitions: list["RuleDefinition"]) -> None:
        table = Table(title="Structure Rules", title_justify="left")
        table.add_column("Id", style="bold cyan")
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Severity")
        table.add_column("Enabled")
        for definition in sorted(definitions, key=lambda d: d.id):
            table.add_row(
                definition.id,
                definition.name,
                definition.category.value,
                definition.severity.value,
                "yes" if definition.enabled else "[dim]no[/]",
            )
        self.console.print(table)

    @staticmethod
    def _violation_table(title: str, style: str, violations: list["Violation"]) -> Table:
        table = Table(title=title, title_style=style, title_justify="left")
        table.add_column("Rule", style="bold")
        table.add_column("Module")
        table.add_column("Message")
        table.add_column("Fix?")
        for violation in violations:
            table.add_row(
                violation.rule_id,
                violation.target,
                violation.message,
                violation.suggested_fix or "",
            )
        return table

    @staticmethod
    def _summary_table(outcome: "ScanOutcome") -> Table:
        table = Table(title="Summary", title_justify="left", show_header=False)
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Modules", str(len(outcome.modules)))
        table.add_row("Rules", str(len(outcome.rules)))
        table.add_row("Errors", str(outcome.count(Severity.ERROR)))
        table.add_row("Warnings", str(outcome.count(Severity.WARNING)))
        table.add_row("Info", str(outcome.count(Severity.INFO)))
        return table
