"""Unit tests for ComplianceReportWriter."""

import json
from datetime import datetime
from pathlib import Path

from structure_warden.domain.entities import (
    ModuleDescriptor,
    ModuleEvaluation,
    ModuleKind,
    Severity,
)
from structure_warden.infrastructure.services.compliance_report import ComplianceReportWriter
from tests.warden_test_utils import make_violation

NOW = datetime(2026, 5, 1, 12, 0, 0)


def _evaluation(name: str, errors: int = 0, warnings: int = 0) -> ModuleEvaluation:
    module = ModuleDescriptor(
        artifact_id=name,
        group_id="com.example",
        kind=ModuleKind.PARENT,
        base_path=f"/work/{name}",
        module_name=name,
    )
    violations = tuple(
        [make_violation("MS-025", target=name) for _ in range(errors)]
        + [make_violation("MS-010", severity=Severity.WARNING, target=name) for _ in range(warnings)]
    )
    return ModuleEvaluation(
        module=module,
        violations=violations,
        rules_evaluated=("MS-010", "MS-014", "MS-016", "MS-025"),
        execution_time_ms=7,
    )


class TestModuleReport:
    def test_fields_and_buckets(self) -> None:
        report = ComplianceReportWriter.build_module_report(_evaluation("billing", errors=1, warnings=1))
        assert report["moduleName"] == "billing"
        assert report["modulePath"] == "/work/billing"
        assert report["complianceScore"] == 50
        assert (report["errorCount"], report["warningCount"]) == (1, 1)
        assert (report["passedCount"], report["totalCount"]) == (2, 4)
        assert report["compliant"] is False
        assert report["violations"]["errors"][0]["module"] == "billing"
        assert report["violations"]["info"] == []

    def test_summary_of_nothing_is_compliant(self) -> None:
        summary = ComplianceReportWriter.build_summary([])
        assert summary["overallComplianceScore"] == 100
        assert summary["overallCompliant"] is True


class TestSaveReport:
    """Test timestamped and consolidated persistence."""

    def test_non_consolidated_report_is_timestamped(self, tmp_path: Path) -> None:
        output = tmp_path / "target" / "compliance-report.json"
        path = ComplianceReportWriter().save_report(_evaluation("billing"), str(output), now=NOW)

        assert Path(path).name == "compliance-report_2026-05-01_12-00-00.json"
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        assert data["consolidatedReport"] is False
        assert data["moduleName"] == "billing"
        assert data["generatedAt"] == "2026-05-01T12:00:00"

    def test_consolidated_merge_replaces_module_by_name(self, tmp_path: Path) -> None:
        """Test that a second scan of the same module replaces its entry."""
        output = tmp_path / "compliance-report.json"
        writer = ComplianceReportWriter()
        writer.save_report(_evaluation("billing", errors=2), str(output), consolidate=True)
        writer.save_report(_evaluation("orders"), str(output), consolidate=True)
        writer.save_report(_evaluation("billing"), str(output), consolidate=True)

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["consolidatedReport"] is True
        assert [m["moduleName"] for m in data["modules"]] == ["orders", "billing"]
        assert data["summary"]["totalModules"] == 2
        assert data["summary"]["totalErrors"] == 0
        assert not Path(str(output) + ".lock").exists()

    def test_unreadable_existing_report_starts_fresh(self, tmp_path: Path) -> None:
        output = tmp_path / "compliance-report.json"
        output.write_text("{not json", encoding="utf-8")
        ComplianceReportWriter().save_report(_evaluation("billing"), str(output), consolidate=True)
        data = json.loads(output.read_text(encoding="utf-8"))
        assert [m["moduleName"] for m in data["modules"]] == ["billing"]

    def test_snapshot_contains_every_module(self, tmp_path: Path) -> None:
        output = tmp_path / "report.json"
        path = ComplianceReportWriter().save_snapshot(
            [_evaluation("billing", errors=1), _evaluation("orders")], str(output), now=NOW)
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        assert len(data["modules"]) == 2
        assert data["summary"]["overallCompliant"] is False
        assert data["summary"]["overallComplianceScore"] == 87

    def test_reset_report(self, tmp_path: Path) -> None:
        output = tmp_path / "compliance-report.json"
        output.write_text("{}", encoding="utf-8")
        ComplianceReportWriter().reset_report(str(output))
        assert not output.exists()

    def test_timestamped_path_without_suffix(self) -> None:
        path = ComplianceReportWriter.timestamped_path("/out/report", NOW)
        assert path == Path("/out/report_2026-05-01_12-00-00")
