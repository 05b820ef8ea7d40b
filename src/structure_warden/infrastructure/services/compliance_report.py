"""Per-module compliance report, optionally consolidated across runs."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from structure_warden.domain.entities import ModuleEvaluation, Severity, Violation
from structure_warden.infrastructure.services.path_lock import PathLock

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
_SUFFIX_FORMAT = "%Y-%m-%d_%H-%M-%S"


class ComplianceReportWriter:
    """
    Writes ModuleEvaluation results as JSON.

    A consolidated report holds one entry per module, replaced by
    ``moduleName`` on each merge. Writers of the same consolidated file are
    serialized through PathLock so sibling module scans can share it.
    """

    def __init__(self, lock_timeout: float = 30.0) -> None:
        self.lock_timeout = lock_timeout

    def save_report(
        self,
        evaluation: ModuleEvaluation,
        output_path: str,
        consolidate: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        now = now or datetime.now()
        if not consolidate:
            target = self.timestamped_path(output_path, now)
            report = {
                "generatedAt": now.strftime(_TIMESTAMP_FORMAT),
                "consolidatedReport": False,
                **self.build_module_report(evaluation),
            }
            self._write(target, report)
            return str(target)

        target = Path(output_path)
        with PathLock(str(target), timeout=self.lock_timeout):
            existing = self._read(target)
            report = self.merge_into(existing, evaluation, now)
            self._write(target, report)
        logger.debug("Merged %s into %s", evaluation.module.module_name, target)
        return str(target)

    def save_snapshot(
        self,
        evaluations: list[ModuleEvaluation],
        output_path: str,
        now: Optional[datetime] = None,
    ) -> str:
        """All modules of one run in a single timestamped, non-consolidated file."""
        now = now or datetime.now()
        modules = [self.build_module_report(evaluation) for evaluation in evaluations]
        target = self.timestamped_path(output_path, now)
        self._write(target, {
            "generatedAt": now.strftime(_TIMESTAMP_FORMAT),
            "consolidatedReport": False,
            "modules": modules,
            "summary": self.build_summary(modules),
        })
        return str(target)

    def merge_into(
        self,
        existing: Optional[dict[str, Any]],
        evaluation: ModuleEvaluation,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        report = dict(existing or {})
        entry = self.build_module_report(evaluation)
        modules = [
            module for module in report.get("modules", [])
            if module.get("moduleName") != entry["moduleName"]
        ]
        modules.append(entry)
        report["generatedAt"] = (now or datetime.now()).strftime(_TIMESTAMP_FORMAT)
        report["consolidatedReport"] = True
        report["modules"] = modules
        report["summary"] = self.build_summary(modules)
        return report

    def reset_report(self, output_path: str) -> None:
        """Delete the consolidated file so a fresh build starts from scratch."""
        target = Path(output_path)
        with PathLock(str(target), timeout=self.lock_timeout):
            if target.exists():
                target.unlink()
                logger.debug("Reset compliance report %s", target)

    @classmethod
    def build_module_report(cls, evaluation: ModuleEvaluation) -> dict[str, Any]:
        module = evaluation.module
        by_severity: dict[str, list[dict[str, Any]]] = {"errors": [], "warnings": [], "info": []}
        bucket = {Severity.ERROR: "errors", Severity.WARNING: "warnings", Severity.INFO: "info"}
        for violation in evaluation.violations:
            by_severity[bucket[violation.severity]].append(cls._violation(violation))
        return {
            "moduleName": module.module_name,
            "modulePath": module.base_path,
            "executionTimeMs": evaluation.execution_time_ms,
            "complianceScore": evaluation.compliance_score,
            "errorCount": evaluation.error_count,
            "warningCount": evaluation.warning_count,
            "passedCount": evaluation.passed_count,
            "totalCount": evaluation.total_count,
            "compliant": evaluation.compliant,
            "violations": by_severity,
        }

    @staticmethod
    def build_summary(modules: list[dict[str, Any]]) -> dict[str, Any]:
        total_errors = sum(int(m.get("errorCount", 0)) for m in modules)
        total_warnings = sum(int(m.get("warningCount", 0)) for m in modules)
        total_passed = sum(int(m.get("passedCount", 0)) for m in modules)
        total_count = sum(int(m.get("totalCount", 0)) for m in modules)
        score = 100 if total_count == 0 else int(total_passed * 100 / total_count)
        return {
            "totalModules": len(modules),
            "totalErrors": total_errors,
            "totalWarnings": total_warnings,
            "totalPassed": total_passed,
            "totalCount": total_count,
            "overallComplianceScore": score,
            "overallCompliant": total_errors == 0,
        }

    @staticmethod
    def timestamped_path(output_path: str, now: datetime) -> Path:
        original = Path(output_path)
        stamp = now.strftime(_SUFFIX_FORMAT)
        if original.suffix:
            return original.with_name(f"{original.stem}_{stamp}{original.suffix}")
        return original.with_name(f"{original.name}_{stamp}")

    @staticmethod
    def _violation(violation: Violation) -> dict[str, Any]:
        data = violation.to_dict()
        data["module"] = violation.target
        return data

    @staticmethod
    def _read(path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Existing compliance report %s unreadable, starting fresh: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _write(path: Path, report: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2), encoding="utf-8")
