"""Unit tests for Typer-based CLI interface."""

import json
from pathlib import Path
from unittest.mock import Mock

from typer.testing import CliRunner

from structure_warden.domain.config import ConfigurationLoader
from structure_warden.domain.entities import (
    Category,
    FixResult,
    FixSummary,
    ModuleDescriptor,
    ModuleEvaluation,
    ModuleKind,
    RestoreRecord,
    RuleDefinition,
    Severity,
)
from structure_warden.domain.errors import ConfigurationError, ScanError
from structure_warden.infrastructure.di.container import WardenContainer
from structure_warden.infrastructure.services.compliance_report import ComplianceReportWriter
from structure_warden.interface.cli import (
    EXIT_FATAL,
    EXIT_VIOLATIONS,
    CLIAppFactory,
    CLIDependencies,
)
from structure_warden.interface.reporters import TerminalScanReporter
from structure_warden.use_cases.remediate_project import RemediationOutcome, ScanOutcome
from tests.warden_test_utils import make_violation

runner = CliRunner()


def _make_mock_deps(**overrides) -> CLIDependencies:
    """Create CLIDependencies with mock adapters/services for testing."""
    defaults: dict = {
        "config_loader": ConfigurationLoader({}, {}),
        "telemetry": Mock(),
        "pipeline": Mock(),
        "reporter": Mock(),
        "compliance_writer": Mock(),
        "backup_manager_factory": Mock(),
    }
    defaults.update(overrides)
    return CLIDependencies(**defaults)


def _outcome(*severities: Severity) -> ScanOutcome:
    module = ModuleDescriptor(
        artifact_id="platform", group_id="com.example", kind=ModuleKind.PARENT,
        base_path="/work/platform", module_name="platform",
    )
    violations = tuple(make_violation(f"MS-0{i}0", severity=s) for i, s in enumerate(severities, 1))
    evaluation = ModuleEvaluation(module=module, violations=violations, rules_evaluated=("MS-010",))
    return ScanOutcome(project_root="/work/platform", modules=[module], evaluations=[evaluation])


class TestResolveTargetPath:
    """Test path resolution logic."""

    def test_resolve_with_explicit_path(self) -> None:
        """Test that explicit path is returned as-is."""
        assert CLIAppFactory.resolve_target_path(Path("custom/path")) == "custom/path"

    def test_resolve_defaults_to_current_directory(self) -> None:
        assert CLIAppFactory.resolve_target_path(None) == "."

    def test_rule_files(self) -> None:
        assert CLIAppFactory.rule_files(None) == []
        assert CLIAppFactory.rule_files([Path("a.yaml"), Path("b.properties")]) == ["a.yaml", "b.properties"]


class TestScanCommand:
    """Test the scan command exit codes and report wiring."""

    def test_errors_exit_with_violation_code(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.scan_and_evaluate.return_value = _outcome(Severity.ERROR)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["scan", "some/root"])

        assert result.exit_code == EXIT_VIOLATIONS
        deps.pipeline.scan_and_evaluate.assert_called_once_with("some/root", [])
        deps.reporter.report_scan.assert_called_once()
        deps.telemetry.handshake.assert_called_once()

    def test_warnings_only_exit_zero(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.scan_and_evaluate.return_value = _outcome(Severity.WARNING, Severity.INFO)
        result = runner.invoke(CLIAppFactory.create_app(deps), ["scan"])
        assert result.exit_code == 0

    def test_extra_rule_files_are_passed(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.scan_and_evaluate.return_value = _outcome()
        runner.invoke(CLIAppFactory.create_app(deps), ["scan", ".", "--rules", "a.yaml", "--rules", "b.yaml"])
        deps.pipeline.scan_and_evaluate.assert_called_once_with(".", ["a.yaml", "b.yaml"])

    def test_scan_error_is_fatal(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.scan_and_evaluate.side_effect = ScanError("Project root does not exist: nope")

        result = runner.invoke(CLIAppFactory.create_app(deps), ["scan", "nope"])

        assert result.exit_code == EXIT_FATAL
        deps.telemetry.error.assert_called_once_with("Project root does not exist: nope")
        deps.reporter.report_scan.assert_not_called()

    def test_json_out_writes_snapshot(self, tmp_path: Path) -> None:
        deps = _make_mock_deps(compliance_writer=ComplianceReportWriter())
        deps.pipeline.scan_and_evaluate.return_value = _outcome(Severity.WARNING)
        output = tmp_path / "report.json"

        result = runner.invoke(CLIAppFactory.create_app(deps), ["scan", "--json-out", str(output)])

        assert result.exit_code == 0
        written = list(tmp_path.glob("report_*.json"))
        assert len(written) == 1
        data = json.loads(written[0].read_text(encoding="utf-8"))
        assert data["summary"]["totalWarnings"] == 1

    def test_consolidate_merges_each_module(self, tmp_path: Path) -> None:
        deps = _make_mock_deps(compliance_writer=ComplianceReportWriter())
        deps.pipeline.scan_and_evaluate.return_value = _outcome()
        output = tmp_path / "report.json"

        runner.invoke(CLIAppFactory.create_app(deps), ["scan", "--json-out", str(output), "--consolidate"])

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["consolidatedReport"] is True
        assert [m["moduleName"] for m in data["modules"]] == ["platform"]

    def test_report_lock_timeout_is_reported(self, tmp_path: Path) -> None:
        deps = _make_mock_deps()
        deps.pipeline.scan_and_evaluate.return_value = _outcome()
        deps.compliance_writer.save_report.side_effect = TimeoutError("Timed out waiting for lock file r.json.lock")

        result = runner.invoke(
            CLIAppFactory.create_app(deps), ["scan", "--json-out", str(tmp_path / "r.json"), "--consolidate"])

        assert result.exit_code == EXIT_FATAL
        assert not isinstance(result.exception, TimeoutError)
        deps.telemetry.error.assert_called_once_with("Timed out waiting for lock file r.json.lock")


class TestFixCommand:
    def _remediation(self, *results: FixResult) -> RemediationOutcome:
        return RemediationOutcome(
            scan=_outcome(),
            results=list(results),
            summary=FixSummary.from_results(list(results)),
            report={},
            report_path="/work/platform/.remediation/reports/remediation.json",
        )

    def test_flags_are_forwarded(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.run.return_value = self._remediation()

        result = runner.invoke(
            CLIAppFactory.create_app(deps), ["fix", "root", "--dry-run", "--no-backup", "--rules", "x.yaml"])

        assert result.exit_code == 0
        deps.pipeline.run.assert_called_once_with("root", dry_run=True, backup=False, extra_sources=["x.yaml"])
        deps.reporter.report_fixes.assert_called_once_with([], True)

    def test_defaults_defer_to_configuration(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.run.return_value = self._remediation()
        runner.invoke(CLIAppFactory.create_app(deps), ["fix"])
        deps.pipeline.run.assert_called_once_with(".", dry_run=None, backup=None, extra_sources=[])

    def test_failed_fix_exits_with_violation_code(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.run.return_value = self._remediation(FixResult.failed(make_violation(), "boom"))
        result = runner.invoke(CLIAppFactory.create_app(deps), ["fix"])
        assert result.exit_code == EXIT_VIOLATIONS

    def test_configuration_error_is_fatal(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.run.side_effect = ConfigurationError("Required rule source not found: x.yaml")
        result = runner.invoke(CLIAppFactory.create_app(deps), ["fix", "--rules", "x.yaml"])
        assert result.exit_code == EXIT_FATAL


class TestRulesCommand:
    def test_category_filter(self) -> None:
        deps = _make_mock_deps()
        deps.pipeline.load_definitions.return_value = [
            RuleDefinition(id="MS-025", name="a", category=Category.DEPENDENCIES),
            RuleDefinition(id="MS-010", name="b", category=Category.STRUCTURE),
        ]

        result = runner.invoke(CLIAppFactory.create_app(deps), ["rules", "--category", "dependencies"])

        assert result.exit_code == 0
        listed = deps.reporter.report_rules.call_args[0][0]
        assert [d.id for d in listed] == ["MS-025"]
        deps.telemetry.handshake.assert_not_called()


class TestBackupsCommands:
    def test_list_empty(self) -> None:
        deps = _make_mock_deps()
        deps.backup_manager_factory.return_value.list_backed_up_files.return_value = []
        result = runner.invoke(CLIAppFactory.create_app(deps), ["backups", "list", "root"])
        assert "No staged backups." in result.output
        deps.backup_manager_factory.assert_called_once_with("root")

    def test_restore_single_file(self) -> None:
        deps = _make_mock_deps()
        manager = deps.backup_manager_factory.return_value
        manager.restore.return_value = RestoreRecord("/r/pom.xml", "/r/.remediation/staging/pom.xml.bak", True)

        result = runner.invoke(CLIAppFactory.create_app(deps), ["backups", "restore", "/r", "--file", "/r/pom.xml"])

        assert result.exit_code == 0
        manager.restore.assert_called_once_with("/r/pom.xml")
        deps.telemetry.step.assert_called_once_with("Restored /r/pom.xml")

    def test_restore_failure_exits_non_zero(self) -> None:
        deps = _make_mock_deps()
        manager = deps.backup_manager_factory.return_value
        manager.restore_all.return_value = [RestoreRecord("/r/pom.xml", None, False, "Backup does not exist")]
        result = runner.invoke(CLIAppFactory.create_app(deps), ["backups", "restore", "/r"])
        assert result.exit_code == EXIT_VIOLATIONS
        deps.telemetry.error.assert_called_once()

    def test_cleanup(self) -> None:
        deps = _make_mock_deps()
        deps.backup_manager_factory.return_value.cleanup.return_value = 3
        runner.invoke(CLIAppFactory.create_app(deps), ["backups", "cleanup"])
        deps.telemetry.step.assert_called_once_with("🧹 Removed 3 staged backup(s)")


class TestEndToEnd:
    """Test the wired container against a real project tree."""

    def _deps(self, project_tree: Path) -> CLIDependencies:
        container = WardenContainer(start_path=str(project_tree))
        return CLIDependencies(
            config_loader=container.get_config_loader(),
            telemetry=Mock(),
            pipeline=container.get_pipeline(),
            reporter=TerminalScanReporter(),
            compliance_writer=container.get_compliance_writer(),
            backup_manager_factory=container.create_backup_manager,
        )

    def test_scan_fix_rescan(self, project_tree: Path) -> None:
        app = CLIAppFactory.create_app(self._deps(project_tree))

        first = runner.invoke(app, ["scan", str(project_tree)])
        fixed = runner.invoke(app, ["fix", str(project_tree)])
        backups = runner.invoke(app, ["backups", "list", str(project_tree)])

        assert first.exit_code == EXIT_VIOLATIONS
        assert "Errors (3)" in first.output
        assert fixed.exit_code == 0
        assert "pom.xml" in backups.output
        assert (project_tree / "pom.xml").read_text(encoding="utf-8").count("<module>") == 2
