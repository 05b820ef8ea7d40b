"""Fixers that edit the <modules> list of parent descriptors."""

import re
from pathlib import Path

from structure_warden.domain.constants import DESCRIPTOR_FILE
from structure_warden.domain.entities import FixResult, Violation
from structure_warden.domain.fixing import FixerContext
from structure_warden.domain.rules.aggregator_rules import is_common_module
from structure_warden.infrastructure.fixers import StructureFixer

_MODULES_SECTION = re.compile(r"(<modules>)(.*?)(</modules>)", re.DOTALL)
_EMPTY_MODULES = re.compile(r"<modules\s*/>")
_MODULE_ENTRY = re.compile(r"<module>\s*([^<]+?)\s*</module>")
_ENTRY_INDENT = re.compile(r"\n([ \t]*)<module>")
_DEFAULT_INDENT = "        "


def _listed_modules(content: str) -> list[str]:
    section = _MODULES_SECTION.search(content)
    if section is None:
        return []
    return [m.group(1) for m in _MODULE_ENTRY.finditer(section.group(2))]


class UnlistedSubmodulesFixer(StructureFixer):
    """
    Adds child directories that carry a descriptor to <modules> (MS-016).

    The set of unlisted children is re-derived from disk on every call, so a
    repeated run finds nothing to add.
    """

    SUPPORTED_RULES = ("MS-016",)
    PRIORITY = 45
    DESCRIPTION = "Adds unlisted submodules to the <modules> section"

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        if not self.can_fix(violation):
            return FixResult.skipped(violation, "Not an MS-016 violation")
        path, skipped = self.locate(violation)
        if path is None:
            return skipped  # type: ignore[return-value]

        original = self.read_file(path)
        listed = set(_listed_modules(original))
        unlisted = [name for name in self._child_modules(path.parent) if name not in listed]
        if not unlisted:
            return FixResult.skipped(violation, "No changes needed")

        for name in unlisted:
            context.log("Adding <module>%s</module> to %s", name, path)
        modified = self._with_modules(original, unlisted)
        joined = ", ".join(unlisted)
        return self.apply_change(
            violation,
            context,
            path,
            original,
            modified,
            description=f"Added {len(unlisted)} unlisted submodules: {joined}",
            dry_run_description=f"Would add {len(unlisted)} unlisted submodules (dry-run)",
        )

    @staticmethod
    def _child_modules(module_root: Path) -> list[str]:
        return sorted(
            child.name
            for child in module_root.iterdir()
            if child.is_dir()
            and not child.name.startswith(".")
            and (child / DESCRIPTOR_FILE).is_file()
        )

    @staticmethod
    def _with_modules(content: str, names: list[str]) -> str:
        section = _MODULES_SECTION.search(content)
        if section is not None:
            body = section.group(2)
            indent_match = _ENTRY_INDENT.search(body)
            indent = indent_match.group(1) if indent_match else _DEFAULT_INDENT
            stripped = body.rstrip()
            closing = body[len(stripped):] or "\n    "
            additions = "".join(f"\n{indent}<module>{name}</module>" for name in names)
            new_body = stripped + additions + closing
            return content[: section.start(2)] + new_body + content[section.end(2):]

        entries = "".join(f"{_DEFAULT_INDENT}<module>{name}</module>\n" for name in names)
        block = f"<modules>\n{entries}    </modules>"
        if _EMPTY_MODULES.search(content):
            return _EMPTY_MODULES.sub(block, content, count=1)
        head, sep, tail = content.rpartition("</project>")
        if not sep:
            return content
        return f"{head.rstrip()}\n\n    {block}\n{sep}{tail}"


class CommonModuleOrderFixer(StructureFixer):
    """Moves the *-common child to the first position in <modules> (MS-010)."""

    SUPPORTED_RULES = ("MS-010",)
    PRIORITY = 85
    DESCRIPTION = "Moves the *-common module to the first position in parent <modules>"

    def fix(self, violation: Violation, context: FixerContext) -> FixResult:
        if not self.can_fix(violation):
            return FixResult.skipped(violation, "Not an MS-010 violation")
        path, skipped = self.locate(violation)
        if path is None:
            return skipped  # type: ignore[return-value]

        original = self.read_file(path)
        section = _MODULES_SECTION.search(original)
        if section is None:
            return FixResult.skipped(violation, "No <modules> section found")
        body = section.group(2)
        entries = list(_MODULE_ENTRY.finditer(body))
        common_index = next(
            (i for i, e in enumerate(entries) if is_common_module(e.group(1))), None)
        if common_index is None:
            return FixResult.skipped(violation, "No *-common module found")
        if common_index == 0:
            return FixResult.skipped(violation, "No changes needed")

        common = entries[common_index]
        new_body = self._move_first(body, entries[0], common)
        modified = original[: section.start(2)] + new_body + original[section.end(2):]
        name = common.group(1)
        return self.apply_change(
            violation,
            context,
            path,
            original,
            modified,
            description=f"Moved {name} to first position in <modules>",
            dry_run_description=f"Would move {name} to first position in <modules>",
        )

    @staticmethod
    def _move_first(body: str, first: "re.Match[str]", common: "re.Match[str]") -> str:
        """Move the whole line when entries sit on their own lines, else just the element."""
        line_start = body.rfind("\n", 0, common.start()) + 1
        line_end = body.find("\n", common.end())
        first_line_start = body.rfind("\n", 0, first.start()) + 1
        own_line = (
            line_end != -1
            and body[line_start:line_end].strip() == common.group(0)
            and not body[first_line_start:first.start()].strip()
        )
        if own_line:
            moved = body[line_start: line_end + 1]
            without = body[:line_start] + body[line_end + 1:]
            return without[:first_line_start] + moved + without[first_line_start:]
        token = common.group(0)
        without = body[: common.start()] + body[common.end():]
        return without[: first.start()] + token + without[first.start():]
