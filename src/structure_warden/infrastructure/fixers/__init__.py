"""Base class and shared helpers for descriptor fixers."""

import difflib
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

from structure_warden.domain.constants import DEFAULT_FIXER_PRIORITY, DESCRIPTOR_FILE
from structure_warden.domain.entities import FixResult, Violation
from structure_warden.domain.errors import DescriptorParseError
from structure_warden.domain.fixing import FixerContext
from structure_warden.domain.protocols import FixerProtocol

logger = logging.getLogger(__name__)


class StructureFixer(FixerProtocol):
    """
    Base for fixers that rewrite build descriptors textually.

    Subclasses set ``SUPPORTED_RULES``/``PRIORITY`` and implement ``fix``.
    ``fix`` must re-derive its target condition from the current file so a
    second invocation returns ``Skipped("No changes needed")``. ``apply_change``
    implements the common tail: diff, dry-run preview, backup, write.
    """

    SUPPORTED_RULES: tuple[str, ...] = ()
    PRIORITY: int = DEFAULT_FIXER_PRIORITY
    DESCRIPTION: str = ""

    def __init__(self, priority: Optional[int] = None, enabled: bool = True) -> None:
        self._priority = self.PRIORITY if priority is None else priority
        self._enabled = enabled

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def description(self) -> str:
        return self.DESCRIPTION

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def enabled(self) -> bool:
        return self._enabled

    def supported_rules(self) -> tuple[str, ...]:
        return self.SUPPORTED_RULES

    def can_fix(self, violation: Violation) -> bool:
        return violation.rule_id in self.SUPPORTED_RULES

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        raise NotImplementedError

    def safe_fix(self, violation: Violation, context: FixerContext) -> FixResult:
        """Run ``fix`` and turn any escaping exception into a result."""
        try:
            return self.fix(violation, context)
        except DescriptorParseError as exc:
            return FixResult.parse_error(violation, str(exc))
        except Exception as exc:  # noqa: BLE001 - failures are reported as data
            logger.debug("%s failed on %s", self.name, violation.location, exc_info=True)
            return FixResult.failed(violation, f"{type(exc).__name__}: {exc}")

    def fix_all(self, violations: list[Violation], context: FixerContext) -> list[FixResult]:
        results: list[FixResult] = []
        for violation in violations:
            if not self.can_fix(violation):
                results.append(
                    FixResult.skipped(violation, f"{self.name} cannot fix {violation.rule_id}"))
                continue
            results.append(self.safe_fix(violation, context))
        return results

    # Helpers

    @staticmethod
    def resolve_descriptor(violation: Violation) -> Optional[Path]:
        """A directory location means its descriptor file."""
        if not violation.location:
            return None
        location = Path(violation.location)
        if location.is_dir():
            return location / DESCRIPTOR_FILE
        return location

    @staticmethod
    def read_file(path: Path) -> str:
        return path.read_text(encoding="utf-8")

    @staticmethod
    def write_file(path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    @staticmethod
    def generate_diff(original: str, modified: str, file_name: str) -> str:
        return "".join(
            difflib.unified_diff(
                original.splitlines(keepends=True),
                modified.splitlines(keepends=True),
                fromfile=f"a/{file_name}",
                tofile=f"b/{file_name}",
            )
        )

    def locate(self, violation: Violation) -> tuple[Optional[Path], Optional[FixResult]]:
        """Descriptor path for the violation, or the Skipped result explaining why not."""
        path = self.resolve_descriptor(violation)
        if path is None:
            return None, FixResult.skipped(violation, "No location specified")
        if path.name != DESCRIPTOR_FILE:
            return None, FixResult.skipped(violation, f"Not a {DESCRIPTOR_FILE} file: {path}")
        if not path.is_file():
            return None, FixResult.skipped(violation, f"File not found: {path}")
        return path, None

    def apply_change(
        self,
        violation: Violation,
        context: FixerContext,
        path: Path,
        original: str,
        modified: str,
        description: str,
        dry_run_description: str,
    ) -> FixResult:
        if modified == original:
            return FixResult.skipped(violation, "No changes needed")
        try:
            ET.fromstring(modified)
        except ET.ParseError as exc:
            return FixResult.validation_failed(violation, f"Rewritten {path.name} is not well-formed: {exc}")
        diff = self.generate_diff(original, modified, path.name)
        if context.dry_run:
            context.log("[DRY-RUN] %s: %s", path, dry_run_description)
            return FixResult.dry_run(violation, dry_run_description, [diff])

        record = context.stage_backup(str(path))
        if record is not None and not record.success:
            return FixResult.failed(violation, f"Backup failed for {path}: {record.message}")
        self.write_file(path, modified)
        context.log("%s: %s", path, description)
        return FixResult.success(violation, [str(path)], description, [diff])
