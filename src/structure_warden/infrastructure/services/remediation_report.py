"""Remediation report: summary, fixes by bucket and per-rule rollup as JSON."""

import json
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from structure_warden.domain.constants import (
    EXAMPLE_MESSAGE_LIMIT,
    REPORT_DIR,
    REPORT_VERSION,
)
from structure_warden.domain.entities import FAILED_STATUSES, SKIPPED_STATUSES, FixResult, FixStatus
from structure_warden.domain.protocols import FileSystemProtocol, TelemetryPort


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of post-fix verification (build/test run by the caller)."""
    compile_success: bool = True
    test_success: bool = True
    rolled_back: bool = False
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "compileSuccess": self.compile_success,
            "testSuccess": self.test_success,
            "rolledBack": self.rolled_back,
        }
        if self.message:
            data["message"] = self.message
        return data


class RemediationReportGenerator:
    """Builds and persists the remediation report document."""

    def __init__(
        self,
        filesystem: FileSystemProtocol,
        telemetry: Optional[TelemetryPort] = None,
        report_dir: str = REPORT_DIR,
    ) -> None:
        self.filesystem = filesystem
        self.telemetry = telemetry
        self.report_dir = report_dir

    def generate(
        self,
        results: list[FixResult],
        project_path: str,
        duration_ms: int,
        verification: Optional[VerificationResult] = None,
        timestamp: Optional[datetime] = None,
    ) -> dict[str, Any]:
        successful = [r for r in results if r.status is FixStatus.FIXED]
        failed = [r for r in results if r.status in FAILED_STATUSES]
        skipped = [r for r in results if r.status in SKIPPED_STATUSES]
        dry_run = [r for r in results if r.status is FixStatus.DRY_RUN]
        files_modified = sorted({f for r in successful for f in r.modified_files})

        report: dict[str, Any] = {
            "version": REPORT_VERSION,
            "timestamp": (timestamp or datetime.now()).isoformat(timespec="seconds"),
            "projectPath": project_path,
            "durationMs": duration_ms,
            "status": self.determine_status(
                len(results), len(successful), len(failed), len(skipped), verification),
            "summary": {
                "totalAttempted": len(results),
                "successful": len(successful),
                "failed": len(failed),
                "skipped": len(skipped),
                "filesModifiedCount": len(files_modified),
                "successRate": self.success_rate(len(successful), len(results)),
            },
        }
        fixes: dict[str, Any] = {
            "successful": [r.to_dict() for r in successful],
            "failed": [r.to_dict() for r in failed],
            "skipped": [r.to_dict() for r in skipped],
        }
        if dry_run:
            fixes["dryRun"] = [r.to_dict() for r in dry_run]
        report["fixes"] = fixes
        report["filesModified"] = files_modified
        if verification is not None:
            report["verification"] = verification.to_dict()
        report["violationsByRule"] = self.violations_by_rule(results)
        return report

    @staticmethod
    def determine_status(
        total: int,
        successful: int,
        failed: int,
        skipped: int,
        verification: Optional[VerificationResult] = None,
    ) -> str:
        if verification is not None:
            if verification.rolled_back:
                return "ROLLED_BACK"
            if not verification.compile_success:
                return "COMPILE_FAILED"
            if not verification.test_success:
                return "TEST_FAILED"
        if failed > 0:
            return "PARTIAL_SUCCESS"
        if successful == 0 and skipped > 0:
            return "ALL_SKIPPED"
        if successful == total:
            return "SUCCESS"
        return "COMPLETED"

    @staticmethod
    def success_rate(successful: int, total: int) -> str:
        if total == 0:
            return "N/A"
        return "%.1f%%" % (successful * 100.0 / total)

    @staticmethod
    def violations_by_rule(results: list[FixResult]) -> dict[str, dict[str, Any]]:
        rollup: "OrderedDict[str, dict[str, Any]]" = OrderedDict()
        for result in results:
            violation = result.violation
            entry = rollup.get(violation.rule_id)
            if entry is None:
                message = violation.message
                if len(message) > EXAMPLE_MESSAGE_LIMIT:
                    message = message[:EXAMPLE_MESSAGE_LIMIT] + "..."
                entry = {"total": 0, "fixed": 0, "failed": 0, "skipped": 0, "exampleMessage": message}
                rollup[violation.rule_id] = entry
            entry["total"] += 1
            if result.status is FixStatus.FIXED:
                entry["fixed"] += 1
            elif result.status in FAILED_STATUSES:
                entry["failed"] += 1
            elif result.status in SKIPPED_STATUSES:
                entry["skipped"] += 1
        return dict(rollup)

    def save(self, report: dict[str, Any], project_root: str) -> str:
        """Write to <root>/<report_dir>/remediation-<timestamp>.json and return the path."""
        directory = self.filesystem.join_path(project_root, self.report_dir)
        self.filesystem.make_dirs(directory, exist_ok=True)
        stamp = str(report.get("timestamp", datetime.now().isoformat(timespec="seconds")))
        path = self.filesystem.join_path(directory, f"remediation-{stamp.replace(':', '-')}.json")
        self.filesystem.write_text(path, json.dumps(report, indent=2))
        if self.telemetry:
            self.telemetry.step(f"💾 Remediation report written to: {path}")
        return path
