"""CLI entry points for Structure Warden - Thin Controller using Typer."""

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import typer

from structure_warden.domain.config import ConfigurationLoader
from structure_warden.domain.constants import WARDEN_BANNER
from structure_warden.domain.entities import Category
from structure_warden.domain.errors import ConfigurationError, RollbackError, ScanError
from structure_warden.domain.protocols import BackupManagerProtocol, TelemetryPort
from structure_warden.infrastructure.services.compliance_report import ComplianceReportWriter
from structure_warden.interface.reporters import ScanReporter
from structure_warden.use_cases.remediate_project import RemediationPipeline

EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    pipeline: RemediationPipeline
    reporter: ScanReporter
    compliance_writer: ComplianceReportWriter
    backup_manager_factory: Callable[[str], BackupManagerProtocol]


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def resolve_target_path(path: Optional[Path]) -> str:
        """Explicit path, else the current directory."""
        return str(path) if path else "."

    @staticmethod
    def rule_files(rules: Optional[List[Path]]) -> list[str]:
        return [str(p) for p in rules or []]

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="warden",
            help="Structure Warden: scan multi-module builds for structure violations and fix them.",
            add_completion=False,
        )
        backups_app = typer.Typer(help="Inspect and manage staged backups.")
        app.add_typer(backups_app, name="backups")

        def _session_start() -> None:
            print(WARDEN_BANNER)
            deps.telemetry.handshake()

        @contextmanager
        def _fatal_errors() -> Iterator[None]:
            """Scan, configuration, rollback and report-lock failures end the run with exit code 2."""
            try:
                yield
            except (ScanError, ConfigurationError, RollbackError, TimeoutError) as exc:
                deps.telemetry.error(str(exc))
                sys.exit(EXIT_FATAL)

        @app.command()
        def scan(
            path: Optional[Path] = typer.Argument(None, help="Project root (default: current directory)"),
            rules: Optional[List[Path]] = typer.Option(
                None, "--rules", help="Extra rule file layered over the catalogue (repeatable)"),
            json_out: Optional[Path] = typer.Option(
                None, "--json-out", help="Write the compliance report to this file"),
            consolidate: bool = typer.Option(
                False, "--consolidate", help="Merge into one report shared by several runs"),
        ) -> None:
            """Scan modules and report structure violations."""
            _session_start()
            with _fatal_errors():
                outcome = deps.pipeline.scan_and_evaluate(
                    CLIAppFactory.resolve_target_path(path), CLIAppFactory.rule_files(rules))
            deps.reporter.report_scan(outcome)

            if json_out is not None:
                written = str(json_out)
                with _fatal_errors():
                    if consolidate:
                        for evaluation in outcome.evaluations:
                            written = deps.compliance_writer.save_report(
                                evaluation, str(json_out), consolidate=True)
                    else:
                        written = deps.compliance_writer.save_snapshot(
                            outcome.evaluations, str(json_out))
                deps.telemetry.step(f"💾 Compliance report written to: {written}")

            sys.exit(EXIT_VIOLATIONS if outcome.has_errors else 0)

        @app.command()
        def fix(
            path: Optional[Path] = typer.Argument(None, help="Project root (default: current directory)"),
            dry_run: bool = typer.Option(
                False, "--dry-run", help="Show the changes without writing any file"),
            no_backup: bool = typer.Option(
                False, "--no-backup", help="Do not stage backups (no rollback possible)"),
            rules: Optional[List[Path]] = typer.Option(
                None, "--rules", help="Extra rule file layered over the catalogue (repeatable)"),
        ) -> None:
            """Scan, fix what can be fixed, and write a remediation report."""
            _session_start()
            with _fatal_errors():
                outcome = deps.pipeline.run(
                    CLIAppFactory.resolve_target_path(path),
                    dry_run=True if dry_run else None,
                    backup=False if no_backup else None,
                    extra_sources=CLIAppFactory.rule_files(rules),
                )
            deps.reporter.report_fixes(outcome.results, outcome.summary.dry_run > 0 or dry_run)
            if outcome.report_path:
                deps.telemetry.step(f"Report: {outcome.report_path}")
            sys.exit(EXIT_VIOLATIONS if outcome.summary.failed else 0)

        @app.command("rules")
        def list_rules(
            category: Optional[str] = typer.Option(None, "--category", help="Only rules of this category"),
            rules: Optional[List[Path]] = typer.Option(
                None, "--rules", help="Extra rule file layered over the catalogue (repeatable)"),
        ) -> None:
            """List the loaded rule catalogue."""
            with _fatal_errors():
                definitions = deps.pipeline.load_definitions(CLIAppFactory.rule_files(rules))
            if category:
                wanted = Category.parse(category)
                definitions = [d for d in definitions if d.category is wanted]
            deps.reporter.report_rules(definitions)

        @backups_app.command("list")
        def list_backups(
            path: Optional[Path] = typer.Argument(None, help="Project root (default: current directory)"),
        ) -> None:
            """List files that have a staged backup."""
            manager = deps.backup_manager_factory(CLIAppFactory.resolve_target_path(path))
            files = manager.list_backed_up_files()
            if not files:
                print("No staged backups.")
                return
            for original in files:
                print(original)

        @backups_app.command("restore")
        def restore_backups(
            path: Optional[Path] = typer.Argument(None, help="Project root (default: current directory)"),
            file: Optional[Path] = typer.Option(None, "--file", help="Restore only this file"),
        ) -> None:
            """Copy staged backups back over their originals."""
            manager = deps.backup_manager_factory(CLIAppFactory.resolve_target_path(path))
            records = [manager.restore(str(file))] if file else manager.restore_all()
            failed = [r for r in records if not r.success]
            for record in records:
                if record.success:
                    deps.telemetry.step(f"Restored {record.target}")
                else:
                    deps.telemetry.error(f"Could not restore {record.target}: {record.message}")
            sys.exit(EXIT_VIOLATIONS if failed else 0)

        @backups_app.command("cleanup")
        def cleanup_backups(
            path: Optional[Path] = typer.Argument(None, help="Project root (default: current directory)"),
        ) -> None:
            """Delete every staged backup."""
            manager = deps.backup_manager_factory(CLIAppFactory.resolve_target_path(path))
            removed = manager.cleanup()
            deps.telemetry.step(f"🧹 Removed {removed} staged backup(s)")

        return app
