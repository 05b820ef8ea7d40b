"""Fixers that strip dependency sections from pure aggregator descriptors."""

import re

from structure_warden.domain.entities import FixResult, Violation
from structure_warden.domain.fixing import FixerContext
from structure_warden.infrastructure.fixers import StructureFixer

# Top-level sections whose nested <dependencies> must not be touched.
_PROTECTED_SECTIONS = ("dependencyManagement", "build", "profiles", "reporting")
_PLACEHOLDER = "__WARDEN_PROTECTED_{}__"

_DEPENDENCIES = re.compile(r"(\s*)<dependencies>.*?</dependencies>(\s*)", re.DOTALL)
_DEPENDENCY = re.compile(r"<dependency>(.*?)</dependency>", re.DOTALL)
_GROUP_ID = re.compile(r"<groupId>\s*([^<]+?)\s*</groupId>")
_ARTIFACT_ID = re.compile(r"<artifactId>\s*([^<]+?)\s*</artifactId>")
_DEPENDENCY_MANAGEMENT = re.compile(
    r"(\s*)<dependencyManagement>.*?</dependencyManagement>(\s*)", re.DOTALL)
_EXCESS_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def _protect(content: str, sections: tuple[str, ...]) -> tuple[str, list[str]]:
    """Swap each protected block for a placeholder; returns the text and the saved blocks."""
    saved: list[str] = []
    for section in sections:
        pattern = re.compile(rf"<{section}>.*?</{section}>", re.DOTALL)

        def _stash(match: "re.Match[str]") -> str:
            saved.append(match.group(0))
            return _PLACEHOLDER.format(len(saved) - 1)

        content = pattern.sub(_stash, content)
    return content, saved


def _restore(content: str, saved: list[str]) -> str:
    """Undo _protect. Later blocks may hold earlier placeholders, so go newest first."""
    for index in reversed(range(len(saved))):
        content = content.replace(_PLACEHOLDER.format(index), saved[index], 1)
    return content


def _collapse(match: "re.Match[str]") -> str:
    """Replace a removed block, keeping the indentation of whatever follows it."""
    trailing = match.group(2)
    indent = trailing.rsplit("\n", 1)[-1] if "\n" in trailing else ""
    return "\n" + indent


class PureAggregatorDependenciesFixer(StructureFixer):
    """Removes the standalone <dependencies> section of a pure aggregator (MS-025)."""

    SUPPORTED_RULES = ("MS-025",)
    PRIORITY = 15
    DESCRIPTION = "Removes <dependencies> from pure aggregator descriptors; <dependencyManagement> is kept"

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        if not self.can_fix(violation):
            return FixResult.skipped(violation, "Not an MS-025 violation")
        path, skipped = self.locate(violation)
        if path is None:
            return skipped  # type: ignore[return-value]

        original = self.read_file(path)
        protected, saved = _protect(original, _PROTECTED_SECTIONS)
        match = _DEPENDENCIES.search(protected)
        if match is None:
            return FixResult.skipped(violation, "No changes needed")

        removed = [
            f"{self._first(_GROUP_ID, dep.group(1))}:{self._first(_ARTIFACT_ID, dep.group(1))}"
            for dep in _DEPENDENCY.finditer(match.group(0))
        ]
        for coordinate in removed:
            context.log("Removing dependency %s from %s", coordinate, path)

        modified = _restore(protected[: match.start()] + _collapse(match) + protected[match.end():], saved)
        count = len(removed)
        return self.apply_change(
            violation,
            context,
            path,
            original,
            modified,
            description=f"Removed {count} dependencies from pure aggregator",
            dry_run_description=f"Would remove {count} dependencies from pure aggregator (dry-run)",
        )

    @staticmethod
    def _first(pattern: "re.Pattern[str]", text: str) -> str:
        found = pattern.search(text)
        return found.group(1) if found else "?"


class PureAggregatorDependencyManagementFixer(StructureFixer):
    """MS-026."""

    SUPPORTED_RULES = ("MS-026",)
    PRIORITY = 10
    DESCRIPTION = "Removes <dependencyManagement> from pure aggregator descriptors"

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        if not self.can_fix(violation):
            return FixResult.skipped(violation, "Not an MS-026 violation")
        path, skipped = self.locate(violation)
        if path is None:
            return skipped  # type: ignore[return-value]

        original = self.read_file(path)
        protected, saved = _protect(original, ("build", "profiles"))
        match = _DEPENDENCY_MANAGEMENT.search(protected)
        if match is None:
            return FixResult.skipped(violation, "No changes needed")

        modified = protected[: match.start()] + _collapse(match) + protected[match.end():]
        modified = _restore(_EXCESS_BLANK_LINES.sub("\n\n", modified), saved)
        return self.apply_change(
            violation,
            context,
            path,
            original,
            modified,
            description="Removed <dependencyManagement> section from pure aggregator",
            dry_run_description="Would remove <dependencyManagement> section (dry-run)",
        )
