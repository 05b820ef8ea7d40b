from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from structure_warden.domain.constants import (
    DESCRIPTOR_FILE,
    LAYER_PATTERN,
    LEAF_SUFFIXES,
)


class Severity(Enum):
    """Reported severity of a rule."""
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    @classmethod
    def parse(cls, token: Optional[str]) -> "Severity":
        """Unknown or empty tokens resolve to ERROR."""
        if token:
            normalized = token.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.ERROR


class Category(Enum):
    """Rule category."""
    DEPENDENCIES = "Dependencies"
    STRUCTURE = "Structure"
    NAMING = "Naming"
    QUALITY = "Quality"
    SECURITY = "Security"
    PERFORMANCE = "Performance"
    CONFIGURATION = "Configuration"

    @classmethod
    def parse(cls, token: Optional[str]) -> "Category":
        """Unknown or empty tokens resolve to STRUCTURE."""
        if token:
            normalized = token.strip().upper()
            for member in cls:
                if member.name == normalized or member.value.upper() == normalized:
                    return member
        return cls.STRUCTURE


class ModuleKind(Enum):
    PARENT = "Parent"
    LEAF = "Leaf"
    STANDALONE = "Standalone"


@dataclass(frozen=True)
class DependencyRef:
    """One <dependency> entry of a descriptor."""
    group_id: str
    artifact_id: str
    scope: Optional[str] = None

    @property
    def identifier(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass(frozen=True)
class ParentRef:
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    relative_path: Optional[str] = None


@dataclass(frozen=True)
class ParsedDescriptor:
    """
    Fields the engine consumes from a build descriptor.

    Everything else in the document stays opaque; fixers that need more
    re-read the file themselves.
    """
    path: str
    artifact_id: str
    group_id: str
    packaging: str = "jar"
    version: Optional[str] = None
    parent: Optional[ParentRef] = None
    modules: tuple[str, ...] = ()
    dependencies: tuple[DependencyRef, ...] = ()
    managed_dependencies: tuple[DependencyRef, ...] = ()
    elements: frozenset[str] = frozenset()

    @property
    def has_dependency_management(self) -> bool:
        return "dependencyManagement" in self.elements


@dataclass(frozen=True)
class SubModuleInfo:
    """A declared layer slot (api, core, spi, ...) of a parent module."""
    name: str
    exists: bool
    path: str
    artifact_id: Optional[str] = None
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class ModuleDescriptor:
    """One directory of the project tree that carries a build descriptor."""
    artifact_id: str
    group_id: str
    kind: ModuleKind
    base_path: str
    module_name: str
    declared_modules: tuple[str, ...] = ()
    dependencies: frozenset[str] = frozenset()
    descriptor: Optional[ParsedDescriptor] = None
    sub_modules: Mapping[str, SubModuleInfo] = field(default_factory=dict)
    source_dirs: tuple[str, ...] = ()
    discovered_children: tuple[str, ...] = ()

    @property
    def is_parent(self) -> bool:
        return self.kind is ModuleKind.PARENT

    @property
    def is_leaf(self) -> bool:
        return self.kind is ModuleKind.LEAF

    @property
    def is_standalone(self) -> bool:
        return self.kind is ModuleKind.STANDALONE

    @property
    def descriptor_path(self) -> str:
        if self.descriptor is not None:
            return self.descriptor.path
        return f"{self.base_path.rstrip('/')}/{DESCRIPTOR_FILE}"

    def has_slot(self, slot: str) -> bool:
        info = self.sub_modules.get(slot)
        return info is not None and info.exists

    @property
    def has_api(self) -> bool:
        return self.has_slot("api")

    @property
    def has_core(self) -> bool:
        return self.has_slot("core")

    @property
    def has_facade(self) -> bool:
        return self.has_slot("facade")

    @property
    def has_spi(self) -> bool:
        return self.has_slot("spi")

    @property
    def has_common(self) -> bool:
        return self.has_slot("common")

    @property
    def has_util(self) -> bool:
        return self.has_slot("util")

    @property
    def has_any_leaf_children(self) -> bool:
        """True when any declared child carries a layer suffix."""
        return any(name.endswith(LEAF_SUFFIXES) for name in self.declared_modules)

    @property
    def has_any_layer_modules(self) -> bool:
        if self.has_api or self.has_core or self.has_facade or self.has_spi:
            return True
        return self.has_any_leaf_children

    @property
    def is_pure_aggregator(self) -> bool:
        """A parent that only groups children and has no layer slots."""
        return self.is_parent and not self.has_any_layer_modules

    @property
    def has_source_code(self) -> bool:
        return bool(self.source_dirs)

    @property
    def base_name(self) -> str:
        """Artifact id with any layer suffix stripped."""
        match = LAYER_PATTERN.match(self.artifact_id)
        return match.group(1) if match else self.artifact_id


@dataclass(frozen=True)
class DependencyPatterns:
    must_contain: tuple[str, ...] = ()
    must_not_contain: tuple[str, ...] = ()
    exceptions: tuple[str, ...] = ()
    scope: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.must_contain or self.must_not_contain or self.scope)


@dataclass(frozen=True)
class StructurePatterns:
    required_modules: tuple[str, ...] = ()
    module_order: tuple[str, ...] = ()
    required_elements: tuple[str, ...] = ()
    require_parent: bool = False
    no_source_code: bool = False

    def is_empty(self) -> bool:
        return not (
            self.required_modules
            or self.module_order
            or self.required_elements
            or self.require_parent
            or self.no_source_code
        )


@dataclass(frozen=True)
class DetectionCriteria:
    path_patterns: tuple[str, ...] = ()
    file_patterns: tuple[str, ...] = ()
    package_patterns: tuple[str, ...] = ()
    dependency_patterns: DependencyPatterns = field(default_factory=DependencyPatterns)
    structure_patterns: StructurePatterns = field(default_factory=StructurePatterns)


@dataclass(frozen=True)
class RuleDefinition:
    """A named check loaded from a rule source. Immutable after load."""
    id: str
    name: str
    description: str = ""
    category: Category = Category.STRUCTURE
    severity: Severity = Severity.ERROR
    enabled: bool = True
    target_modules: tuple[str, ...] = ()
    detection: DetectionCriteria = field(default_factory=DetectionCriteria)
    reason: Optional[str] = None
    fix: Optional[str] = None
    reference: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "severity": self.severity.value,
            "enabled": self.enabled,
            "targetModules": list(self.target_modules),
        }


@dataclass(frozen=True)
class Violation:
    """One rule failing against one target."""
    rule_id: str
    rule_name: str
    target: str
    message: str
    severity: Severity
    category: Category
    location: str
    suggested_fix: Optional[str] = None
    reference: Optional[str] = None

    def with_severity(self, severity: Severity) -> "Violation":
        return replace(self, severity=severity)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
        }
        if self.location:
            data["location"] = self.location
        if self.suggested_fix:
            data["suggestedFix"] = self.suggested_fix
        if self.reference:
            data["reference"] = self.reference
        return data


class FixStatus(Enum):
    FIXED = "FIXED"
    DRY_RUN = "DRY_RUN"
    SKIPPED = "SKIPPED"
    NOT_FIXABLE = "NOT_FIXABLE"
    FAILED = "FAILED"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"


FAILED_STATUSES: frozenset[FixStatus] = frozenset(
    {FixStatus.FAILED, FixStatus.PARSE_ERROR, FixStatus.VALIDATION_FAILED}
)
SKIPPED_STATUSES: frozenset[FixStatus] = frozenset(
    {FixStatus.SKIPPED, FixStatus.NOT_FIXABLE})


@dataclass(frozen=True)
class FixResult:
    """
    Outcome of attempting to resolve one violation.

    modified_files is only populated for FIXED. diffs may accompany FIXED and
    DRY_RUN so a preview shows exactly the change a real run applies.
    """
    violation: Violation
    status: FixStatus
    description: str
    modified_files: tuple[str, ...] = ()
    diffs: tuple[str, ...] = ()
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.modified_files and self.status is not FixStatus.FIXED:
            raise ValueError(
                f"modified_files must be empty for status {self.status.value}")

    def is_success(self) -> bool:
        return self.status is FixStatus.FIXED

    def is_dry_run(self) -> bool:
        return self.status is FixStatus.DRY_RUN

    def is_failed(self) -> bool:
        return self.status in FAILED_STATUSES

    def is_skipped(self) -> bool:
        return self.status in SKIPPED_STATUSES

    @classmethod
    def success(
        cls,
        violation: Violation,
        modified_files: list[str],
        description: str,
        diffs: Optional[list[str]] = None,
    ) -> "FixResult":
        return cls(
            violation=violation,
            status=FixStatus.FIXED,
            description=description,
            modified_files=tuple(modified_files),
            diffs=tuple(diffs or ()),
        )

    @classmethod
    def dry_run(
        cls, violation: Violation, description: str, diffs: Optional[list[str]] = None
    ) -> "FixResult":
        return cls(
            violation=violation,
            status=FixStatus.DRY_RUN,
            description=description,
            diffs=tuple(diffs or ()),
        )

    @classmethod
    def skipped(cls, violation: Violation, reason: str) -> "FixResult":
        return cls(violation=violation, status=FixStatus.SKIPPED, description=reason)

    @classmethod
    def not_fixable(cls, violation: Violation, reason: str) -> "FixResult":
        return cls(violation=violation, status=FixStatus.NOT_FIXABLE, description=reason)

    @classmethod
    def failed(cls, violation: Violation, error_message: str) -> "FixResult":
        return cls(
            violation=violation,
            status=FixStatus.FAILED,
            description="Fix failed",
            error_message=error_message,
        )

    @classmethod
    def parse_error(cls, violation: Violation, error_message: str) -> "FixResult":
        return cls(
            violation=violation,
            status=FixStatus.PARSE_ERROR,
            description="Failed to parse file",
            error_message=error_message,
        )

    @classmethod
    def validation_failed(cls, violation: Violation, error_message: str) -> "FixResult":
        return cls(
            violation=violation,
            status=FixStatus.VALIDATION_FAILED,
            description="Validation failed after fix",
            error_message=error_message,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "description": self.description,
            "violation": self.violation.to_dict(),
        }
        if self.modified_files:
            data["modifiedFiles"] = list(self.modified_files)
        if self.diffs:
            data["diffs"] = list(self.diffs)
        if self.error_message:
            data["errorMessage"] = self.error_message
        return data


@dataclass(frozen=True)
class FixSummary:
    """Per-status counts of a fix run."""
    total: int = 0
    fixed: int = 0
    dry_run: int = 0
    failed: int = 0
    skipped: int = 0
    not_fixable: int = 0

    @classmethod
    def from_results(cls, results: list[FixResult]) -> "FixSummary":
        return cls(
            total=len(results),
            fixed=sum(1 for r in results if r.is_success()),
            dry_run=sum(1 for r in results if r.is_dry_run()),
            failed=sum(1 for r in results if r.is_failed()),
            skipped=sum(1 for r in results if r.status is FixStatus.SKIPPED),
            not_fixable=sum(
                1 for r in results if r.status is FixStatus.NOT_FIXABLE),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "fixed": self.fixed,
            "dryRun": self.dry_run,
            "failed": self.failed,
            "skipped": self.skipped,
            "notFixable": self.not_fixable,
        }


@dataclass(frozen=True)
class BackupRecord:
    """Result of staging one file."""
    original_path: str
    backup_path: Optional[str]
    success: bool
    message: Optional[str] = None

    @classmethod
    def succeeded(cls, original_path: str, backup_path: str) -> "BackupRecord":
        return cls(original_path, backup_path, True, None)

    @classmethod
    def failure(cls, original_path: str, message: str) -> "BackupRecord":
        return cls(original_path, None, False, message)


@dataclass(frozen=True)
class RestoreRecord:
    target: str
    backup: Optional[str]
    success: bool
    message: Optional[str] = None


class TransactionState(Enum):
    ACTIVE = "Active"
    COMMITTED = "Committed"
    ROLLED_BACK = "RolledBack"


@dataclass(frozen=True)
class ModuleEvaluation:
    """Rule outcome for a single module, the unit of the compliance report."""
    module: ModuleDescriptor
    violations: tuple[Violation, ...] = ()
    rules_evaluated: tuple[str, ...] = ()
    execution_time_ms: int = 0

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.INFO)

    @property
    def passed_count(self) -> int:
        failing = {v.rule_id for v in self.violations}
        return sum(1 for rule_id in self.rules_evaluated if rule_id not in failing)

    @property
    def total_count(self) -> int:
        return len(self.rules_evaluated)

    @property
    def compliance_score(self) -> int:
        if not self.rules_evaluated:
            return 100
        return int(self.passed_count / self.total_count * 100)

    @property
    def compliant(self) -> bool:
        return self.error_count == 0
