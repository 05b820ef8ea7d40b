"""Concrete rules for parent and aggregator modules."""

from structure_warden.domain.entities import ModuleDescriptor, Violation
from structure_warden.domain.rules import StructureRule


def is_common_module(name: str) -> bool:
    """The shared-code child that MS-010 wants listed first."""
    return name.endswith("-common")


class CommonModuleFirstRule(StructureRule):
    """MS-010: the *-common child must be listed first in <modules>."""

    rule_id = "MS-010"

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.is_parent and bool(module.declared_modules)

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        modules = module.declared_modules
        common = next((m for m in modules if is_common_module(m)), None)
        if common is None or modules[0] == common:
            return []
        return [
            self.create_violation(
                module,
                f"Module '{common}' must be listed first in <modules>, but '{modules[0]}' is first. "
                "The *-common module contains shared constants and utilities that other modules depend on.",
                location=module.descriptor_path,
            )
        ]


class AggregatorNoSourceCodeRule(StructureRule):
    """MS-014: aggregators keep implementation in their children."""

    rule_id = "MS-014"

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.is_parent

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        if not module.has_source_code:
            return []
        found = ", ".join(module.source_dirs)
        return [
            self.create_violation(
                module,
                f"Aggregator module '{module.artifact_id}' contains source code directories: "
                f"{found}. All implementation belongs in submodules.",
            )
        ]


class AllSubmodulesListedRule(StructureRule):
    """MS-016: every child directory carrying a descriptor is declared."""

    rule_id = "MS-016"

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.is_parent

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        listed = set(module.declared_modules)
        unlisted = [name for name in module.discovered_children if name not in listed]
        if not unlisted:
            return []
        return [
            self.create_violation(
                module,
                f"Aggregator module '{module.artifact_id}' has {len(unlisted)} "
                f"unlisted submodules: {', '.join(unlisted)}",
            )
        ]


class PureAggregatorNoDependenciesRule(StructureRule):
    """MS-025: pure aggregators declare modules only, never dependencies."""

    rule_id = "MS-025"

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.is_pure_aggregator

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        descriptor = module.descriptor
        if descriptor is None or not descriptor.dependencies:
            return []
        count = len(descriptor.dependencies)
        return [
            self.create_violation(
                module,
                f"Pure aggregator module '{module.artifact_id}' has {count} dependencies. "
                "Pure aggregators should have NO dependencies section - only <modules>. "
                "Move dependencies to dependencyManagement or specific submodules.",
            )
        ]


class PureAggregatorNoDependencyManagementRule(StructureRule):
    """MS-026."""

    rule_id = "MS-026"

    def applies_to(self, module: ModuleDescriptor) -> bool:
        return module.is_pure_aggregator

    def do_validate(self, module: ModuleDescriptor) -> list[Violation]:
        descriptor = module.descriptor
        if descriptor is None or not descriptor.has_dependency_management:
            return []
        return [
            self.create_violation(
                module,
                f"Pure aggregator module '{module.artifact_id}' must not have <dependencyManagement> section. "
                "Pure aggregators should ONLY have a <modules> section. "
                "Dependency management belongs in parent modules (-parent suffix).",
            )
        ]
