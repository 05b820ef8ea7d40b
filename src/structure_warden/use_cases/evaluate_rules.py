"""Rule Engine - evaluates structure rules against scanned modules."""

import time
from typing import Optional

from structure_warden.domain.entities import (
    Category,
    ModuleDescriptor,
    ModuleEvaluation,
    Severity,
    Violation,
)
from structure_warden.domain.protocols import TelemetryPort
from structure_warden.domain.rules import StructureRule


class RuleEngine:
    """
    Runs every applicable rule on every module.

    Modules are visited in the order given (scan order), so reports are
    reproducible. A rule that raises produces a Configuration violation for
    that module instead of aborting the run.
    """

    def __init__(self, telemetry: Optional[TelemetryPort] = None) -> None:
        self.telemetry = telemetry

    def evaluate(
        self, rules: list[StructureRule], modules: list[ModuleDescriptor]
    ) -> list[Violation]:
        return [
            violation
            for evaluation in self.evaluate_modules(rules, modules)
            for violation in evaluation.violations
        ]

    def evaluate_modules(
        self, rules: list[StructureRule], modules: list[ModuleDescriptor]
    ) -> list[ModuleEvaluation]:
        evaluations = [self.evaluate_module(rules, module) for module in modules]
        if self.telemetry:
            total = sum(len(e.violations) for e in evaluations)
            self.telemetry.step(
                f"📏 Evaluated {len(rules)} rule(s) on {len(modules)} module(s): {total} violation(s)")
        return evaluations

    def evaluate_module(
        self, rules: list[StructureRule], module: ModuleDescriptor
    ) -> ModuleEvaluation:
        started = time.monotonic()
        violations: list[Violation] = []
        evaluated: list[str] = []
        for rule in rules:
            try:
                if not rule.is_applicable(module):
                    continue
                evaluated.append(rule.id)
                violations.extend(rule.validate(module))
            except Exception as exc:  # noqa: BLE001 - one bad rule must not abort the scan
                if rule.id not in evaluated:
                    evaluated.append(rule.id)
                violations.append(self._evaluation_failure(rule, module, exc))
        return ModuleEvaluation(
            module=module,
            violations=tuple(violations),
            rules_evaluated=tuple(evaluated),
            execution_time_ms=int((time.monotonic() - started) * 1000),
        )

    @staticmethod
    def _evaluation_failure(
        rule: StructureRule, module: ModuleDescriptor, exc: Exception
    ) -> Violation:
        return Violation(
            rule_id=rule.id,
            rule_name=rule.definition.name,
            target=module.artifact_id,
            message=f"Rule {rule.id} could not evaluate module '{module.artifact_id}': {exc}",
            severity=Severity.ERROR,
            category=Category.CONFIGURATION,
            location=module.base_path,
            reference=rule.definition.reference,
        )

    @staticmethod
    def apply_severity_overrides(
        violations: list[Violation], overrides: dict[str, Severity]
    ) -> list[Violation]:
        """Final pass: rewrite reported severity only, never add or drop violations."""
        if not overrides:
            return list(violations)
        return [
            v.with_severity(overrides[v.rule_id]) if v.rule_id in overrides else v
            for v in violations
        ]

    @classmethod
    def override_evaluations(
        cls, evaluations: list[ModuleEvaluation], overrides: dict[str, Severity]
    ) -> list[ModuleEvaluation]:
        if not overrides:
            return evaluations
        return [
            ModuleEvaluation(
                module=e.module,
                violations=tuple(cls.apply_severity_overrides(list(e.violations), overrides)),
                rules_evaluated=e.rules_evaluated,
                execution_time_ms=e.execution_time_ms,
            )
            for e in evaluations
        ]
