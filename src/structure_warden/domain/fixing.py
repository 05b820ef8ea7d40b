"""Context handed to every fixer invocation."""

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Optional

from structure_warden.domain.config import FixerSettings

if TYPE_CHECKING:
    from structure_warden.domain.entities import BackupRecord
    from structure_warden.domain.protocols import (
        BackupManagerProtocol,
        BackupTransactionProtocol,
        TelemetryPort,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixerContext:
    """
    Carries the dry-run flag, project/module roots and the backup scope.

    A fixer never writes a file it has not staged through ``stage_backup``
    first (unless backups are switched off in settings).
    """
    project_root: str
    module_root: Optional[str] = None
    dry_run: bool = False
    settings: FixerSettings = field(default_factory=FixerSettings)
    telemetry: Optional["TelemetryPort"] = None
    backup_manager: Optional["BackupManagerProtocol"] = None
    transaction: Optional["BackupTransactionProtocol"] = None
    namespace: str = ""
    project: str = ""

    @property
    def backups_enabled(self) -> bool:
        return self.settings.backup_files and not self.dry_run and (
            self.transaction is not None or self.backup_manager is not None
        )

    def bind(self, transaction: "BackupTransactionProtocol") -> "FixerContext":
        """Copy of this context whose backups go through ``transaction``."""
        return replace(self, transaction=transaction)

    def for_module(self, module_root: str) -> "FixerContext":
        return replace(self, module_root=module_root)

    def stage_backup(self, path: str) -> Optional["BackupRecord"]:
        """Back up ``path`` in the active scope. None when backups are off."""
        if not self.backups_enabled:
            return None
        if self.transaction is not None:
            return self.transaction.backup(path)
        if self.backup_manager is not None:
            return self.backup_manager.backup(path)
        return None

    def log(self, message: str, *args: object) -> None:
        text = message % args if args else message
        if self.telemetry is not None:
            self.telemetry.step(text)
        else:
            logger.debug(text)
