"""Fixer Orchestrator - routes violations to the best fixer and aggregates results."""

import threading
from pathlib import PurePath
from typing import Optional

from structure_warden.domain.config import FixerSettings
from structure_warden.domain.constants import DESCRIPTOR_FILE
from structure_warden.domain.entities import FixResult, FixSummary, Violation
from structure_warden.domain.fixing import FixerContext
from structure_warden.domain.protocols import (
    FixerProtocol,
    FixerRegistryProtocol,
    TelemetryPort,
)


class FixerOrchestrator:
    """
    Groups violations by rule and runs the highest-priority enabled fixer.

    Outside dry-run, each fixer invocation runs inside its own backup
    transaction: a failed result rolls the transaction back, anything else
    commits it. One failing fix never stops the batch.
    """

    def __init__(
        self,
        registry: FixerRegistryProtocol,
        settings: Optional[FixerSettings] = None,
        telemetry: Optional[TelemetryPort] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or FixerSettings()
        self.telemetry = telemetry
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop before the next fixer invocation. Results gathered so far are kept."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def fix_all(self, violations: list[Violation], context: FixerContext) -> list[FixResult]:
        self._cancelled.clear()
        if not self.settings.enabled:
            return [FixResult.skipped(v, "Fixers disabled") for v in violations]

        groups: dict[str, list[Violation]] = {}
        for violation in violations:
            if self.settings.is_rule_enabled(violation.rule_id):
                groups.setdefault(violation.rule_id, []).append(violation)

        results: list[FixResult] = []
        for rule_id, group in groups.items():
            if self.cancelled:
                break
            results.extend(self._fix_group(rule_id, group, context))
        self.log_summary(results, context.dry_run)
        return results

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        if not self.settings.is_rule_enabled(violation.rule_id):
            return FixResult.skipped(violation, f"Rule disabled: {violation.rule_id}")
        fixer = self.registry.find_fixer_for(violation)
        if fixer is None:
            return FixResult.not_fixable(violation, "No fixer available")
        if not self.settings.is_fixer_enabled(fixer.name):
            return FixResult.skipped(violation, f"Fixer disabled: {fixer.name}")
        return self._run(fixer, violation, context)

    def _fix_group(
        self, rule_id: str, group: list[Violation], context: FixerContext
    ) -> list[FixResult]:
        fixers = self.registry.find_fixers_for_rule(rule_id)
        if not fixers:
            return [
                FixResult.not_fixable(v, f"No fixer registered for rule: {rule_id}") for v in group
            ]
        fixer = fixers[0]
        if not self.settings.is_fixer_enabled(fixer.name):
            return [FixResult.skipped(v, f"Fixer disabled: {fixer.name}") for v in group]

        self._step(f"🔧 Running {fixer.name} for {len(group)} violation(s)")
        if not context.backups_enabled:
            return fixer.fix_all(group, context)

        results: list[FixResult] = []
        for violation in group:
            if self.cancelled:
                break
            if not fixer.can_fix(violation):
                results.append(
                    FixResult.skipped(violation, f"{fixer.name} cannot fix {violation.rule_id}"))
                continue
            results.append(self._run(fixer, violation, context))
        return results

    @staticmethod
    def module_root(violation: Violation) -> Optional[str]:
        if not violation.location:
            return None
        location = PurePath(violation.location)
        if location.name == DESCRIPTOR_FILE:
            return str(location.parent)
        return str(location)

    def _run(self, fixer: FixerProtocol, violation: Violation, context: FixerContext) -> FixResult:
        context = context.for_module(self.module_root(violation) or context.project_root)
        manager = context.backup_manager
        if not context.backups_enabled or manager is None:
            return fixer.safe_fix(violation, context)
        with manager.begin_transaction() as transaction:
            result = fixer.safe_fix(violation, context.bind(transaction))
            if result.is_failed():
                if self.telemetry:
                    self.telemetry.warning(
                        f"Rolling back {violation.rule_id} at {violation.location}: {result.error_message}")
                transaction.rollback()
            else:
                transaction.commit()
        return result

    def log_summary(self, results: list[FixResult], dry_run: bool) -> FixSummary:
        summary = FixSummary.from_results(results)
        self._step("Fix summary:")
        self._step(f"  Total:       {summary.total}")
        if dry_run:
            self._step(f"  Would Fix:   {summary.dry_run}")
        else:
            self._step(f"  Fixed:       {summary.fixed}")
        self._step(f"  Failed:      {summary.failed}")
        self._step(f"  Skipped:     {summary.skipped}")
        self._step(f"  Not Fixable: {summary.not_fixable}")
        return summary

    def _step(self, message: str) -> None:
        if self.telemetry:
            self.telemetry.step(message)
