"""Rules driven entirely by the detection criteria of their definition."""

from typing import Optional

from structure_warden.domain.entities import (
    DependencyRef,
    ModuleDescriptor,
    RuleDefinition,
    Violation,
)
from structure_warden.domain.rules import StructureRule, matches_wildcard


class DeclarativeRule(StructureRule):
    """
    Evaluates dependency and structure patterns declared in a rule source.

    Used for every definition that has detection criteria but no dedicated
    rule class. Each finding becomes one violation (subject to the cap).
    Patterns may contain ``{base}``, ``{module}``, ``{namespace}`` and
    ``{groupId}`` placeholders.
    """

    def __init__(self, definition: RuleDefinition, namespace: str = "", project: str = "") -> None:
        super().__init__(definition)
        self.rule_id = definition.id
        self._namespace = namespace
        self._project = project

    @staticmethod
    def is_declarative(definition: RuleDefinition) -> bool:
        detection = definition.detection
        return not (
            detection.dependency_patterns.is_empty()
            and detection.structure_patterns.is_empty()
        )

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.descriptor is not None

    def resolve(self, pattern: Optional[str], module: ModuleDescriptor) -> str:
        if not pattern:
            return ""
        group_id = ".".join(p for p in (self._namespace, self._project) if p)
        return (
            pattern.replace("{groupId}", group_id)
            .replace("{namespace}", self._namespace)
            .replace("{base}", module.base_name)
            .replace("{module}", module.module_name)
        )

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        findings = self._dependency_findings(module) + self._structure_findings(module)
        fix = self.resolve(self.definition.fix, module) or None
        return [
            self.create_violation(
                module,
                f"{self.definition.name}: {finding}",
                location=module.descriptor_path,
                suggested_fix=fix,
            )
            for finding in findings
        ]

    def _scoped_dependencies(self, module: ModuleDescriptor) -> list[DependencyRef]:
        if module.descriptor is None:
            return []
        scope = self.definition.detection.dependency_patterns.scope
        deps = list(module.descriptor.dependencies)
        if scope:
            deps = [d for d in deps if (d.scope or "compile") == scope]
        return deps

    def _dependency_findings(self, module: ModuleDescriptor) -> list[str]:
        patterns = self.definition.detection.dependency_patterns
        if patterns.is_empty():
            return []
        deps = self._scoped_dependencies(module)
        exceptions = [self.resolve(e, module) for e in patterns.exceptions]
        findings: list[str] = []
        for raw in patterns.must_not_contain:
            pattern = self.resolve(raw, module)
            for dep in deps:
                if not matches_wildcard(dep.artifact_id, pattern):
                    continue
                if any(matches_wildcard(dep.artifact_id, exc) for exc in exceptions):
                    continue
                findings.append(f"Forbidden dependency: {dep.identifier}")
        for raw in patterns.must_contain:
            pattern = self.resolve(raw, module)
            if not any(matches_wildcard(dep.artifact_id, pattern) for dep in deps):
                findings.append(f"Required dependency matching '{pattern}' not found")
        return findings

    def _structure_findings(self, module: ModuleDescriptor) -> list[str]:
        patterns = self.definition.detection.structure_patterns
        descriptor = module.descriptor
        findings: list[str] = []
        if descriptor is None:
            return findings
        declared = module.declared_modules

        for raw in patterns.required_modules:
            pattern = self.resolve(raw, module)
            if not any(matches_wildcard(name, pattern) for name in declared):
                findings.append(f"Required module matching '{pattern}' is not declared")

        if patterns.module_order:
            positions: list[tuple[str, int]] = []
            for raw in patterns.module_order:
                pattern = self.resolve(raw, module)
                index = next(
                    (i for i, name in enumerate(declared) if matches_wildcard(name, pattern)),
                    None,
                )
                if index is not None:
                    positions.append((declared[index], index))
            for (before, i), (after, j) in zip(positions, positions[1:]):
                if j < i:
                    findings.append(f"Module '{before}' must be listed before '{after}'")

        for element in patterns.required_elements:
            if element not in descriptor.elements:
                findings.append(f"Missing required element <{element}>")

        if patterns.require_parent and descriptor.parent is None:
            findings.append(f"Module '{module.artifact_id}' must declare a <parent>")

        if patterns.no_source_code and module.has_source_code:
            findings.append(
                f"Module '{module.artifact_id}' contains source code directories: "
                f"{', '.join(module.source_dirs)}"
            )
        return findings
