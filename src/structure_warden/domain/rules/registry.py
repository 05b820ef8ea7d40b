"""Explicit rule id -> rule class table, built from a static list at import time."""

from structure_warden.domain.entities import RuleDefinition
from structure_warden.domain.rules import StructureRule
from structure_warden.domain.rules.aggregator_rules import (
    AggregatorNoSourceCodeRule,
    AllSubmodulesListedRule,
    CommonModuleFirstRule,
    PureAggregatorNoDependenciesRule,
    PureAggregatorNoDependencyManagementRule,
)
from structure_warden.domain.rules.declarative import DeclarativeRule

RULE_TYPES: dict[str, type[StructureRule]] = {
    rule_type.rule_id: rule_type
    for rule_type in (
        CommonModuleFirstRule,
        AggregatorNoSourceCodeRule,
        AllSubmodulesListedRule,
        PureAggregatorNoDependenciesRule,
        PureAggregatorNoDependencyManagementRule,
    )
}


class RuleFactory:
    """Instantiates rules for loaded definitions. No reflective discovery."""

    def __init__(self, namespace: str = "", project: str = "") -> None:
        self._namespace = namespace
        self._project = project

    def build(self, definitions: list[RuleDefinition]) -> list[StructureRule]:
        """
        One rule per enabled definition that has an implementation.

        Definitions with neither a registered class nor detection criteria
        are documentation-only and produce no rule.
        """
        rules: list[StructureRule] = []
        for definition in definitions:
            if not definition.enabled:
                continue
            rule_type = RULE_TYPES.get(definition.id)
            if rule_type is not None:
                rules.append(rule_type(definition))
            elif DeclarativeRule.is_declarative(definition):
                rules.append(DeclarativeRule(definition, self._namespace, self._project))
        return rules
