"""Domain models for structure rules."""

from typing import Optional

from structure_warden.domain.constants import MAX_VIOLATIONS_PER_RULE
from structure_warden.domain.entities import (
    ModuleDescriptor,
    RuleDefinition,
    Violation,
)
from structure_warden.domain.errors import ConfigurationError


def matches_wildcard(value: str, pattern: str) -> bool:
    """Match ``*x*`` (contains), ``*x`` (suffix), ``x*`` (prefix) or an exact value."""
    if len(pattern) > 1 and pattern.startswith("*") and pattern.endswith("*"):
        return pattern[1:-1] in value
    if pattern.startswith("*"):
        return value.endswith(pattern[1:])
    if pattern.endswith("*"):
        return value.startswith(pattern[:-1])
    return value == pattern


class StructureRule:
    """
    The fundamental unit of structure governance.

    Subclasses implement ``applies_to`` (a cheap predicate) and ``do_validate``.
    The shared ``validate`` honours the enabled flag, the target-module filter
    and the per-module violation cap.
    """

    rule_id: str = ""

    def __init__(self, definition: RuleDefinition) -> None:
        if not definition:
            raise ConfigurationError(f"Rule definition not found for {self.rule_id}")
        self.definition = definition

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def enabled(self) -> bool:
        return self.definition.enabled

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return True

    def matches_target(self, module: ModuleDescriptor) -> bool:
        targets = self.definition.target_modules
        if not targets:
            return True
        return any(matches_wildcard(module.artifact_id, pattern) for pattern in targets)

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        raise NotImplementedError

    def is_applicable(self, module: ModuleDescriptor) -> bool:
        return self.enabled and self.matches_target(module) and self.applies_to(module)

    def validate(self, module: ModuleDescriptor) -> list[Violation]:
        if not self.is_applicable(module):
            return []
        return self.cap(self.do_validate(module))

    def cap(self, violations: list[Violation]) -> list[Violation]:
        """Keep at most MAX_VIOLATIONS_PER_RULE; note the overflow on the last one."""
        if len(violations) <= MAX_VIOLATIONS_PER_RULE:
            return violations
        kept = violations[:MAX_VIOLATIONS_PER_RULE]
        extra = len(violations) - MAX_VIOLATIONS_PER_RULE
        last = kept[-1]
        kept[-1] = Violation(
            rule_id=last.rule_id,
            rule_name=last.rule_name,
            target=last.target,
            message=f"{last.message} ...and {extra} more",
            severity=last.severity,
            category=last.category,
            location=last.location,
            suggested_fix=last.suggested_fix,
            reference=last.reference,
        )
        return kept

    def create_violation(
        self,
        module: ModuleDescriptor,
        message: str,
        location: Optional[str] = None,
        suggested_fix: Optional[str] = None,
    ) -> Violation:
        definition = self.definition
        return Violation(
            rule_id=definition.id,
            rule_name=definition.name,
            target=module.artifact_id,
            message=message,
            severity=definition.severity,
            category=definition.category,
            location=location or module.base_path,
            suggested_fix=suggested_fix if suggested_fix is not None else definition.fix,
            reference=definition.reference,
        )
