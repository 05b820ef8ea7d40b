"""Unit tests for RemediationReportGenerator."""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from structure_warden.domain.entities import FixResult
from structure_warden.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from structure_warden.infrastructure.services.remediation_report import (
    RemediationReportGenerator,
    VerificationResult,
)
from tests.warden_test_utils import make_violation

STAMP = datetime(2026, 3, 14, 9, 26, 53)


@pytest.fixture
def generator(telemetry: MagicMock) -> RemediationReportGenerator:
    return RemediationReportGenerator(FileSystemGateway(), telemetry)


def _mixed_results() -> list[FixResult]:
    ms025, ms016 = make_violation("MS-025"), make_violation("MS-016")
    return [
        FixResult.success(ms025, ["/p/pom.xml"], "Removed 1 dependencies from pure aggregator"),
        FixResult.success(ms016, ["/p/pom.xml", "/p/billing/pom.xml"], "Added 1 unlisted submodules: orders"),
        FixResult.failed(ms016, "boom"),
        FixResult.skipped(ms025, "No changes needed"),
    ]


class TestGenerate:
    """Test the structure of the generated document."""

    def test_summary_and_buckets(self, generator: RemediationReportGenerator) -> None:
        report = generator.generate(_mixed_results(), "/p", 42, timestamp=STAMP)

        assert report["timestamp"] == "2026-03-14T09:26:53"
        assert report["projectPath"] == "/p"
        assert report["durationMs"] == 42
        assert report["status"] == "PARTIAL_SUCCESS"
        assert report["summary"] == {
            "totalAttempted": 4,
            "successful": 2,
            "failed": 1,
            "skipped": 1,
            "filesModifiedCount": 2,
            "successRate": "50.0%",
        }
        assert report["filesModified"] == ["/p/billing/pom.xml", "/p/pom.xml"]
        assert len(report["fixes"]["successful"]) == 2
        assert "dryRun" not in report["fixes"]
        assert "verification" not in report

    def test_violations_by_rule(self, generator: RemediationReportGenerator) -> None:
        rollup = generator.generate(_mixed_results(), "/p", 0)["violationsByRule"]
        assert list(rollup) == ["MS-025", "MS-016"]
        assert rollup["MS-016"] == {
            "total": 2, "fixed": 1, "failed": 1, "skipped": 0,
            "exampleMessage": "Something is wrong",
        }

    def test_long_example_message_is_truncated(self) -> None:
        result = FixResult.skipped(make_violation(message="x" * 200), "No changes needed")
        rollup = RemediationReportGenerator.violations_by_rule([result])
        assert rollup["MS-025"]["exampleMessage"] == "x" * 150 + "..."

    def test_dry_run_bucket(self, generator: RemediationReportGenerator) -> None:
        results = [FixResult.dry_run(make_violation(), "Would remove 1 dependencies from pure aggregator (dry-run)")]
        report = generator.generate(results, "/p", 0)
        assert len(report["fixes"]["dryRun"]) == 1
        assert report["filesModified"] == []
        assert report["status"] == "COMPLETED"

    def test_verification_is_included(self, generator: RemediationReportGenerator) -> None:
        verification = VerificationResult(compile_success=False, message="mvn compile failed")
        report = generator.generate([], "/p", 0, verification=verification)
        assert report["status"] == "COMPILE_FAILED"
        assert report["verification"]["message"] == "mvn compile failed"


class TestDetermineStatus:
    @pytest.mark.parametrize(
        ("counts", "verification", "expected"),
        [
            ((2, 2, 0, 0), VerificationResult(rolled_back=True, compile_success=False), "ROLLED_BACK"),
            ((2, 2, 0, 0), VerificationResult(test_success=False), "TEST_FAILED"),
            ((3, 1, 1, 1), None, "PARTIAL_SUCCESS"),
            ((2, 0, 0, 2), None, "ALL_SKIPPED"),
            ((2, 2, 0, 0), None, "SUCCESS"),
            ((0, 0, 0, 0), None, "SUCCESS"),
            ((3, 2, 0, 1), None, "COMPLETED"),
        ],
    )
    def test_precedence(self, counts, verification, expected) -> None:
        assert RemediationReportGenerator.determine_status(*counts, verification) == expected

    def test_success_rate_without_attempts(self) -> None:
        assert RemediationReportGenerator.success_rate(0, 0) == "N/A"
        assert RemediationReportGenerator.success_rate(1, 3) == "33.3%"


class TestSave:
    def test_save_writes_json_under_report_dir(
        self, tmp_path: Path, generator: RemediationReportGenerator, telemetry: MagicMock
    ) -> None:
        """Test that the file name embeds the timestamp with colons replaced."""
        report = generator.generate(_mixed_results(), str(tmp_path), 5, timestamp=STAMP)

        path = generator.save(report, str(tmp_path))

        expected = tmp_path / ".remediation" / "reports" / "remediation-2026-03-14T09-26-53.json"
        assert path == str(expected)
        assert json.loads(expected.read_text(encoding="utf-8"))["status"] == "PARTIAL_SUCCESS"
        telemetry.step.assert_called_once()
