"""Staged file backups and scoped multi-file transactions."""

import logging
import threading
import uuid
from pathlib import PurePath
from typing import Optional

from structure_warden.domain.constants import BACKUP_EXTENSION, STAGING_DIR
from structure_warden.domain.entities import BackupRecord, RestoreRecord, TransactionState
from structure_warden.domain.errors import RollbackError, TransactionError
from structure_warden.domain.protocols import (
    BackupManagerProtocol,
    BackupTransactionProtocol,
    FileSystemProtocol,
)

logger = logging.getLogger(__name__)


class StagingLayout:
    """Maps project files to <root>/.remediation/staging/<relative path>.bak and back."""

    def __init__(self, project_root: str, filesystem: FileSystemProtocol) -> None:
        self.project_root = filesystem.resolve_path(project_root)
        self.filesystem = filesystem
        self.staging_root = filesystem.join_path(self.project_root, STAGING_DIR)

    def absolute(self, path: str) -> str:
        fs = self.filesystem
        if PurePath(path).is_absolute():
            return fs.resolve_path(path)
        return fs.resolve_path(fs.join_path(self.project_root, path))

    def backup_path(self, original: str) -> str:
        relative = self.filesystem.relative_to(self.absolute(original), self.project_root)
        return self.filesystem.join_path(self.staging_root, relative + BACKUP_EXTENSION)

    def original_path(self, backup: str) -> str:
        relative = self.filesystem.relative_to(backup, self.staging_root)
        if relative.endswith(BACKUP_EXTENSION):
            relative = relative[: -len(BACKUP_EXTENSION)]
        return self.filesystem.join_path(self.project_root, relative)


class FileBackupService:
    """Single-file backup/restore against a StagingLayout."""

    def __init__(self, layout: StagingLayout) -> None:
        self.layout = layout
        self.filesystem = layout.filesystem

    def backup(self, path: str) -> BackupRecord:
        """Stage a copy. Missing or non-regular files yield a failed record, not an error."""
        original = self.layout.absolute(path)
        if not self.filesystem.exists(original):
            return BackupRecord.failure(original, "File does not exist")
        if not self.filesystem.is_file(original):
            return BackupRecord.failure(original, "Not a regular file")
        try:
            backup = self.layout.backup_path(original)
        except ValueError:
            return BackupRecord.failure(original, "Outside project root")
        try:
            self.filesystem.copy_file(original, backup)
        except OSError as exc:
            return BackupRecord.failure(original, f"Backup failed: {exc}")
        logger.debug("Backed up %s -> %s", original, backup)
        return BackupRecord.succeeded(original, backup)

    def restore(self, path: str) -> RestoreRecord:
        original = self.layout.absolute(path)
        try:
            backup = self.layout.backup_path(original)
        except ValueError:
            return RestoreRecord(original, None, False, "Outside project root")
        if not self.filesystem.is_file(backup):
            return RestoreRecord(original, None, False, "Backup does not exist")
        try:
            self.filesystem.copy_file(backup, original)
        except OSError as exc:
            return RestoreRecord(original, backup, False, f"Restore failed: {exc}")
        return RestoreRecord(original, backup, True, None)

    def has_backup(self, path: str) -> bool:
        return self.filesystem.is_file(self.layout.backup_path(path))

    def delete_backup(self, path: str) -> bool:
        return self.filesystem.delete_file(self.layout.backup_path(path))

    def list_backed_up_files(self) -> list[str]:
        staging = self.layout.staging_root
        return [
            self.layout.original_path(backup)
            for backup in self.filesystem.walk_files(staging)
            if backup.endswith(BACKUP_EXTENSION)
        ]

    def delete_all_backups(self) -> int:
        staging = self.layout.staging_root
        deleted = sum(1 for f in self.filesystem.walk_files(staging) if self.filesystem.delete_file(f))
        self.filesystem.remove_empty_dirs(staging)
        return deleted


class BackupTransaction(BackupTransactionProtocol):
    """
    Group of backups released as a unit.

    Use as a context manager: leaving the block while still ACTIVE rolls
    back every successful backup in reverse order, restoring the original
    bytes and deleting the staged copy. Rolling back a committed
    transaction raises TransactionError; a restore that fails raises
    RollbackError.
    """

    def __init__(self, manager: "BackupManager") -> None:
        self._id = str(uuid.uuid4())
        self._manager = manager
        self._records: list[BackupRecord] = []
        self._state = TransactionState.ACTIVE

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def records(self) -> list[BackupRecord]:
        return list(self._records)

    @property
    def active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    def backup(self, path: str) -> BackupRecord:
        if not self.active:
            raise TransactionError(f"Transaction {self._id} is no longer active")
        # The first staged copy holds the pre-transaction bytes; never overwrite it.
        original = self._manager.layout.absolute(path)
        for existing in self._records:
            if existing.success and existing.original_path == original:
                return existing
        record = self._manager.backup(path)
        self._records.append(record)
        return record

    def commit(self) -> None:
        """Staged copies are kept for audit; cleanup removes them later."""
        if not self.active:
            raise TransactionError(
                f"Cannot commit transaction {self._id} in state {self._state.value}")
        self._state = TransactionState.COMMITTED
        self._manager.release(self)

    def rollback(self) -> None:
        if self._state is TransactionState.COMMITTED:
            raise TransactionError("Cannot rollback committed transaction")
        if self._state is TransactionState.ROLLED_BACK:
            return
        self._state = TransactionState.ROLLED_BACK
        failures: list[str] = []
        try:
            for record in reversed(self._records):
                if not record.success or record.backup_path is None:
                    continue
                restored = self._manager.restore(record.original_path)
                if not restored.success:
                    failures.append(f"{record.original_path}: {restored.message}")
                    continue
                self._manager.delete_backup(record.original_path)
        finally:
            self._manager.release(self)
        if failures:
            raise RollbackError(self._id, failures)
        logger.info("Rolled back transaction %s (%d file(s))", self._id,
                    sum(1 for r in self._records if r.success))

    def close(self) -> None:
        if self.active:
            self.rollback()

    def __enter__(self) -> "BackupTransaction":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()


class BackupManager(BackupManagerProtocol):
    """
    Backup facade for one project root.

    The registry of in-flight transactions is the only shared mutable
    state and is guarded by a lock.
    """

    def __init__(self, project_root: str, filesystem: FileSystemProtocol) -> None:
        self.layout = StagingLayout(project_root, filesystem)
        self.service = FileBackupService(self.layout)
        self._lock = threading.Lock()
        self._transactions: dict[str, BackupTransaction] = {}

    @property
    def project_root(self) -> str:
        return self.layout.project_root

    def backup(self, path: str) -> BackupRecord:
        return self.service.backup(path)

    def restore(self, path: str) -> RestoreRecord:
        return self.service.restore(path)

    def restore_all(self) -> list[RestoreRecord]:
        return [self.service.restore(path) for path in self.service.list_backed_up_files()]

    def has_backup(self, path: str) -> bool:
        return self.service.has_backup(path)

    def backup_path_for(self, path: str) -> str:
        return self.layout.backup_path(path)

    def delete_backup(self, path: str) -> bool:
        return self.service.delete_backup(path)

    def list_backed_up_files(self) -> list[str]:
        return self.service.list_backed_up_files()

    def cleanup(self) -> int:
        """Delete every staged backup; returns how many files were removed."""
        deleted = self.service.delete_all_backups()
        if deleted:
            logger.info("Removed %d staged backup(s) under %s", deleted, self.layout.staging_root)
        return deleted

    def begin_transaction(self) -> BackupTransaction:
        transaction = BackupTransaction(self)
        with self._lock:
            self._transactions[transaction.id] = transaction
        return transaction

    def get_transaction(self, transaction_id: str) -> Optional[BackupTransaction]:
        with self._lock:
            return self._transactions.get(transaction_id)

    def active_transactions(self) -> list[BackupTransaction]:
        with self._lock:
            return list(self._transactions.values())

    def release(self, transaction: BackupTransaction) -> None:
        with self._lock:
            self._transactions.pop(transaction.id, None)
