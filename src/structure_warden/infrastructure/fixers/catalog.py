"""Static list of built-in fixers, registered at startup."""

from structure_warden.infrastructure.fixers import StructureFixer
from structure_warden.infrastructure.fixers.aggregator_fixers import (
    PureAggregatorDependenciesFixer,
    PureAggregatorDependencyManagementFixer,
)
from structure_warden.infrastructure.fixers.module_list_fixers import (
    CommonModuleOrderFixer,
    UnlistedSubmodulesFixer,
)


def default_fixers() -> list[StructureFixer]:
    return [
        CommonModuleOrderFixer(),
        UnlistedSubmodulesFixer(),
        PureAggregatorDependenciesFixer(),
        PureAggregatorDependencyManagementFixer(),
    ]
