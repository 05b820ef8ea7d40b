"""Use Case: Remediate Project - scan, evaluate, fix and report in one pass."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from structure_warden.domain.config import ConfigurationLoader, RuleOverride, RuleSource
from structure_warden.domain.entities import (
    FixResult,
    FixSummary,
    ModuleDescriptor,
    ModuleEvaluation,
    RuleDefinition,
    Severity,
    Violation,
)
from structure_warden.domain.fixing import FixerContext
from structure_warden.domain.protocols import (
    BackupManagerProtocol,
    FixerRegistryProtocol,
    ModuleScannerProtocol,
    RemediationReportProtocol,
    RuleLoaderProtocol,
    TelemetryPort,
)
from structure_warden.domain.rules import StructureRule
from structure_warden.domain.rules.registry import RuleFactory
from structure_warden.use_cases.evaluate_rules import RuleEngine
from structure_warden.use_cases.fix_violations import FixerOrchestrator


@dataclass(frozen=True)
class ScanOutcome:
    """Modules found under one root and the rule results for each of them."""
    project_root: str
    modules: list[ModuleDescriptor]
    evaluations: list[ModuleEvaluation]
    rules: list[StructureRule] = field(default_factory=list)

    @property
    def violations(self) -> list[Violation]:
        return [v for e in self.evaluations for v in e.violations]

    def count(self, severity: Severity) -> int:
        return sum(1 for v in self.violations if v.severity is severity)

    @property
    def has_errors(self) -> bool:
        return self.count(Severity.ERROR) > 0


@dataclass(frozen=True)
class RemediationOutcome:
    scan: ScanOutcome
    results: list[FixResult]
    summary: FixSummary
    report: dict[str, Any]
    report_path: Optional[str] = None
    backups_cleaned: int = 0


class RemediationPipeline:
    """
    Scanner -> rule engine -> orchestrator -> report generator.

    Rules are rebuilt from their sources on every call so extra rule files
    given for one run never leak into the next.
    """

    def __init__(
        self,
        scanner: ModuleScannerProtocol,
        rule_loader_factory: Callable[[], RuleLoaderProtocol],
        default_sources: Sequence[RuleSource],
        engine: RuleEngine,
        registry: FixerRegistryProtocol,
        backup_manager_factory: Callable[[str], BackupManagerProtocol],
        report_generator: RemediationReportProtocol,
        config_loader: ConfigurationLoader,
        telemetry: Optional[TelemetryPort] = None,
    ) -> None:
        self.scanner = scanner
        self.rule_loader_factory = rule_loader_factory
        self.default_sources = list(default_sources)
        self.engine = engine
        self.registry = registry
        self.backup_manager_factory = backup_manager_factory
        self.report_generator = report_generator
        self.config_loader = config_loader
        self.telemetry = telemetry
        self._orchestrator: Optional[FixerOrchestrator] = None

    def load_definitions(self, extra_sources: Sequence[str] = ()) -> list[RuleDefinition]:
        """Configured (or packaged) sources first, then ``extra_sources`` as required layers."""
        loader = self.rule_loader_factory()
        sources = list(self.config_loader.rule_sources or self.default_sources)
        sources.extend(RuleSource(path, required=True) for path in extra_sources)
        loader.load(sources)
        loader.apply_overrides(self.config_loader.rule_overrides)
        loader.apply_overrides(
            {rule_id: RuleOverride(enabled=False) for rule_id in self.config_loader.disabled_rules
             if loader.get_rule(rule_id) is not None})
        return list(loader.get_rules().values())

    def load_rules(self, extra_sources: Sequence[str] = ()) -> list[StructureRule]:
        factory = RuleFactory(self.config_loader.namespace, self.config_loader.project)
        return factory.build(self.load_definitions(extra_sources))

    def scan_and_evaluate(
        self, project_root: str, extra_sources: Sequence[str] = ()
    ) -> ScanOutcome:
        rules = self.load_rules(extra_sources)
        modules = self.scanner.scan(project_root)
        evaluations = self.engine.evaluate_modules(rules, modules)
        evaluations = self.engine.override_evaluations(
            evaluations, self.config_loader.severity_overrides)
        return ScanOutcome(
            project_root=str(Path(project_root).resolve()),
            modules=modules,
            evaluations=evaluations,
            rules=rules,
        )

    def run(
        self,
        project_root: str,
        dry_run: Optional[bool] = None,
        backup: Optional[bool] = None,
        extra_sources: Sequence[str] = (),
    ) -> RemediationOutcome:
        started = time.monotonic()
        outcome = self.scan_and_evaluate(project_root, extra_sources)
        settings = self.config_loader.fixer_settings.with_overrides(
            dry_run=dry_run, backup_files=backup)
        root = outcome.project_root

        manager: Optional[BackupManagerProtocol] = None
        if settings.backup_files and not settings.dry_run:
            manager = self.backup_manager_factory(root)
        context = FixerContext(
            project_root=root,
            dry_run=settings.dry_run,
            settings=settings,
            telemetry=self.telemetry,
            backup_manager=manager,
            namespace=self.config_loader.namespace,
            project=self.config_loader.project,
        )
        self._orchestrator = FixerOrchestrator(self.registry, settings, self.telemetry)
        try:
            results = self._orchestrator.fix_all(outcome.violations, context)
        finally:
            self._orchestrator = None
        summary = FixSummary.from_results(results)

        cleaned = 0
        if manager is not None and settings.cleanup_backups and summary.failed == 0:
            cleaned = manager.cleanup()
            self._step(f"🧹 Removed {cleaned} staged backup(s)")

        duration_ms = int((time.monotonic() - started) * 1000)
        report = self.report_generator.generate(results, root, duration_ms)
        report_path = self.report_generator.save(report, root)
        return RemediationOutcome(
            scan=outcome,
            results=results,
            summary=summary,
            report=report,
            report_path=report_path,
            backups_cleaned=cleaned,
        )

    def cancel(self) -> None:
        """Ask a running ``run`` to stop before its next fixer invocation."""
        if self._orchestrator is not None:
            self._orchestrator.cancel()

    def _step(self, message: str) -> None:
        if self.telemetry:
            self.telemetry.step(message)
