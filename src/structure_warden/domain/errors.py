"""Exception hierarchy for structure-warden."""


class StructureWardenError(Exception):
    """Base class for all structure-warden errors."""


class ScanError(StructureWardenError):
    """Project root cannot be scanned (missing or not a directory)."""


class ConfigurationError(StructureWardenError):
    """A required rule source is missing or configuration is malformed."""


class DescriptorParseError(StructureWardenError):
    """A single build descriptor could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot parse descriptor {path}: {reason}")
        self.path = path
        self.reason = reason


class TransactionError(StructureWardenError):
    """Illegal transaction state transition."""


class RollbackError(TransactionError):
    """A rollback could not restore one or more files; filesystem state is unknown."""

    def __init__(self, transaction_id: str, failures: list[str]) -> None:
        joined = "; ".join(failures)
        super().__init__(f"Rollback of transaction {transaction_id} failed: {joined}")
        self.transaction_id = transaction_id
        self.failures = failures
