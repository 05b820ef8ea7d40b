from typing import TYPE_CHECKING, Any, Optional, cast

from structure_warden.domain.config import ConfigurationLoader
from structure_warden.infrastructure.config_file_loader import ConfigFileLoader
from structure_warden.infrastructure.fixers.catalog import default_fixers
from structure_warden.infrastructure.gateways.descriptor_parser import PomDescriptorParser
from structure_warden.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from structure_warden.infrastructure.services.backup_manager import BackupManager
from structure_warden.infrastructure.services.compliance_report import ComplianceReportWriter
from structure_warden.infrastructure.services.fixer_registry import FixerRegistry
from structure_warden.infrastructure.services.remediation_report import (
    RemediationReportGenerator,
)
from structure_warden.infrastructure.services.rule_loader import RuleLoader, default_rule_sources
from structure_warden.interface.telemetry import ProjectTelemetry
from structure_warden.use_cases.evaluate_rules import RuleEngine
from structure_warden.use_cases.remediate_project import RemediationPipeline
from structure_warden.use_cases.scan_modules import ModuleScanner

if TYPE_CHECKING:
    from structure_warden.domain.protocols import (
        FileSystemProtocol,
        FixerRegistryProtocol,
        TelemetryPort,
    )


class WardenContainer:
    """Composition root: one instance per process, rebuilt by reset() in tests."""

    _instance: Optional["WardenContainer"] = None

    def __init__(self, start_path: Optional[str] = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._start_path = start_path
        self._register_defaults()

    def _register_defaults(self) -> None:
        config_dict, tool_section = ConfigFileLoader.load_config_from_fs(self._start_path)
        config_loader = ConfigurationLoader(config_dict, tool_section)
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = ProjectTelemetry("WARDEN", "cyan", "Structure compliance for multi-module builds")
        self.register_singleton("TelemetryPort", telemetry)

        filesystem = FileSystemGateway()
        self.register_singleton("FileSystemGateway", filesystem)
        parser = PomDescriptorParser()
        self.register_singleton(
            "ModuleScanner",
            ModuleScanner(filesystem, parser, config_loader.scan_settings, telemetry),
        )
        self.register_singleton("RuleEngine", RuleEngine(telemetry))
        # Fixers are a static list; registration happens once here.
        self.register_singleton("FixerRegistry", FixerRegistry(default_fixers()))
        self.register_singleton(
            "RemediationReportGenerator",
            RemediationReportGenerator(filesystem, telemetry, config_loader.report_dir),
        )
        self.register_singleton("ComplianceReportWriter", ComplianceReportWriter())

    # JUSTIFICATION: DI Container must handle any type of service
    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    # JUSTIFICATION: DI Container must return any type of service
    def get(self, key: str) -> Any:
        """Untyped lookup; the get_* accessors below wrap it."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_module_scanner(self) -> ModuleScanner:
        return cast(ModuleScanner, self.get("ModuleScanner"))

    def get_rule_engine(self) -> RuleEngine:
        return cast(RuleEngine, self.get("RuleEngine"))

    def get_fixer_registry(self) -> "FixerRegistryProtocol":
        return cast("FixerRegistryProtocol", self.get("FixerRegistry"))

    def get_report_generator(self) -> RemediationReportGenerator:
        return cast(RemediationReportGenerator, self.get("RemediationReportGenerator"))

    def get_compliance_writer(self) -> ComplianceReportWriter:
        return cast(ComplianceReportWriter, self.get("ComplianceReportWriter"))

    def create_rule_loader(self) -> RuleLoader:
        """A fresh loader per run; rule tables are not shared between runs."""
        return RuleLoader()

    def create_backup_manager(self, project_root: str) -> BackupManager:
        """Backup managers are bound to one project root, so they are not singletons."""
        return BackupManager(project_root, self.get_filesystem_gateway())

    def get_pipeline(self) -> RemediationPipeline:
        if "RemediationPipeline" not in self._singletons:
            self.register_singleton(
                "RemediationPipeline",
                RemediationPipeline(
                    scanner=self.get_module_scanner(),
                    rule_loader_factory=self.create_rule_loader,
                    default_sources=default_rule_sources(),
                    engine=self.get_rule_engine(),
                    registry=self.get_fixer_registry(),
                    backup_manager_factory=self.create_backup_manager,
                    report_generator=self.get_report_generator(),
                    config_loader=self.get_config_loader(),
                    telemetry=self.get_telemetry_port(),
                ),
            )
        return cast(RemediationPipeline, self.get("RemediationPipeline"))

    @classmethod
    def get_instance(cls) -> "WardenContainer":
        """Lazily build the process-wide container from the current directory."""
        if cls._instance is None:
            cls._instance = WardenContainer()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the process-wide container; the next get_instance() rereads config."""
        cls._instance = None
