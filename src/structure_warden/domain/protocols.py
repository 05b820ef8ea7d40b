from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from structure_warden.domain.entities import (
        BackupRecord,
        FixResult,
        ModuleDescriptor,
        ParsedDescriptor,
        RestoreRecord,
        RuleDefinition,
        TransactionState,
        Violation,
    )
    from structure_warden.domain.config import RuleOverride, RuleSource
    from structure_warden.domain.fixing import FixerContext


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Path-string filesystem access used by the scanner, fixers and backups."""

    def resolve_path(self, path: str) -> str:
        ...

    def exists(self, path: str) -> bool:
        ...

    def is_directory(self, path: str) -> bool:
        ...

    def is_file(self, path: str) -> bool:
        ...

    def list_subdirectories(self, path: str) -> list[str]:
        """Immediate child directories of path, sorted by name."""
        ...

    def walk_files(self, path: str) -> list[str]:
        """All regular files below path (recursive), sorted."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        ...

    def read_bytes(self, path: str) -> bytes:
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        ...

    def copy_file(self, source: str, destination: str) -> None:
        """Copy bytes and metadata, creating destination parents."""
        ...

    def delete_file(self, path: str) -> bool:
        """Delete a file; False when it did not exist."""
        ...

    def remove_empty_dirs(self, path: str) -> None:
        """Prune empty directories under path, path itself included."""
        ...

    def make_dirs(self, path: str, exist_ok: bool = True) -> None:
        ...

    def join_path(self, *paths: str) -> str:
        ...

    def relative_to(self, path: str, base: str) -> str:
        ...


class DescriptorParserProtocol(Protocol):
    """Reads one build descriptor. Raises DescriptorParseError on failure."""

    def parse(self, path: str) -> "ParsedDescriptor":
        ...


class BackupTransactionProtocol(Protocol):
    """Scoped group of backups with commit/rollback."""

    @property
    def id(self) -> str: ...

    @property
    def state(self) -> "TransactionState": ...

    @property
    def records(self) -> list["BackupRecord"]: ...

    def backup(self, path: str) -> "BackupRecord": ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def close(self) -> None: ...
    def __enter__(self) -> "BackupTransactionProtocol": ...
    def __exit__(self, exc_type: object, exc: object, tb: object) -> None: ...


class BackupManagerProtocol(Protocol):
    """Staged single-file backups and multi-file transactions."""

    def backup(self, path: str) -> "BackupRecord": ...
    def restore(self, path: str) -> "RestoreRecord": ...
    def restore_all(self) -> list["RestoreRecord"]: ...
    def has_backup(self, path: str) -> bool: ...
    def delete_backup(self, path: str) -> bool: ...
    def begin_transaction(self) -> BackupTransactionProtocol: ...
    def list_backed_up_files(self) -> list[str]: ...
    def cleanup(self) -> int: ...


class FixerProtocol(Protocol):
    """A component that transforms files to resolve violations of specific rule ids."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def priority(self) -> int: ...

    @property
    def enabled(self) -> bool: ...

    def supported_rules(self) -> tuple[str, ...]: ...
    def can_fix(self, violation: "Violation") -> bool: ...
    def fix(self, violation: "Violation", context: "FixerContext") -> "FixResult": ...
    def safe_fix(self, violation: "Violation", context: "FixerContext") -> "FixResult": ...

    def fix_all(
        self, violations: list["Violation"], context: "FixerContext"
    ) -> list["FixResult"]: ...


class FixerRegistryProtocol(Protocol):
    def register(self, fixer: FixerProtocol) -> None: ...
    def unregister(self, fixer: FixerProtocol) -> bool: ...
    def find_fixer_for(self, violation: "Violation") -> Optional[FixerProtocol]: ...
    def find_fixers_for_rule(self, rule_id: str) -> list[FixerProtocol]: ...
    def get_all_fixers(self) -> list[FixerProtocol]: ...


class RuleLoaderProtocol(Protocol):
    def load(self, sources: list["RuleSource"]) -> dict[str, "RuleDefinition"]: ...
    def apply_overrides(self, overrides: dict[str, "RuleOverride"]) -> None: ...
    def get_rules(self) -> dict[str, "RuleDefinition"]: ...
    def get_rule(self, rule_id: str) -> Optional["RuleDefinition"]: ...
    def get_enabled_rules(self) -> list["RuleDefinition"]: ...


class ModuleScannerProtocol(Protocol):
    def scan(self, project_root: str) -> list["ModuleDescriptor"]: ...


class RemediationReportProtocol(Protocol):
    def generate(
        self, results: list["FixResult"], project_path: str, duration_ms: int
    ) -> dict[str, object]: ...

    def save(self, report: dict[str, object], project_root: str) -> str: ...
