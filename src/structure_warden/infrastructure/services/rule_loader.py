"""Rule Catalog - loads RuleDefinitions from layered .properties / YAML sources."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

from structure_warden.domain.config import RuleOverride, RuleSource
from structure_warden.domain.entities import (
    Category,
    DependencyPatterns,
    DetectionCriteria,
    RuleDefinition,
    Severity,
    StructurePatterns,
)
from structure_warden.domain.errors import ConfigurationError
from structure_warden.domain.protocols import RuleLoaderProtocol

logger = logging.getLogger(__name__)

_PROPERTIES_SUFFIXES = (".properties",)
_YAML_SUFFIXES = (".yaml", ".yml")

RuleFields = dict[str, Any]


def default_rule_sources() -> list[RuleSource]:
    """Packaged catalogue: the zero-dependency file first, the richer YAML layered on top."""
    resources = Path(__file__).resolve().parent.parent / "resources"
    return [
        RuleSource(str(resources / "structure_rules.properties"), required=True),
        RuleSource(str(resources / "structure_rules.yaml"), required=False),
    ]


def parse_properties(text: str) -> dict[str, str]:
    """
    Java-style properties: '=' or ':' separators, '#'/'!' comments,
    trailing backslash continues a logical line.
    """
    entries: dict[str, str] = {}
    pending = ""
    for raw_line in text.splitlines():
        line = raw_line.strip() if not pending else raw_line.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\") and not line.endswith("\\\\"):
            pending += line[:-1]
            continue
        logical, pending = pending + line, ""
        positions = [i for i in (logical.find("="), logical.find(":")) if i >= 0]
        if not positions:
            entries[logical.strip()] = ""
            continue
        split = min(positions)
        entries[logical[:split].strip()] = logical[split + 1:].strip()
    if pending:
        logger.warning("Properties source ends with a dangling line continuation")
    return entries


def _split_list(value: Union[str, Iterable[Any], None]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return tuple(str(part).strip() for part in value if str(part).strip())


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "yes", "1", "on")


def _section(fields: RuleFields, key: str) -> RuleFields:
    value = fields.get(key)
    return value if isinstance(value, dict) else {}


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RuleLoader(RuleLoaderProtocol):
    """
    Layered rule table keyed by id.

    Later sources replace earlier definitions with the same id entirely
    (last writer wins per rule, not per field). Unknown severity and
    category tokens fall back to ERROR and STRUCTURE instead of failing the
    load.
    """

    def __init__(self) -> None:
        self._rules: dict[str, RuleDefinition] = {}

    def load(self, sources: list[RuleSource]) -> dict[str, RuleDefinition]:
        for source in sources:
            self.load_source(source)
        return dict(self._rules)

    def load_required(self, path: str) -> dict[str, RuleDefinition]:
        return self.load([RuleSource(path, required=True)])

    def load_optional(self, path: str) -> dict[str, RuleDefinition]:
        return self.load([RuleSource(path, required=False)])

    def load_source(self, source: RuleSource) -> None:
        path = Path(source.path)
        if not path.is_file():
            if source.required:
                raise ConfigurationError(f"Required rule source not found: {source.path}")
            logger.debug("Optional rule source not found, skipping: %s", source.path)
            return

        suffix = path.suffix.lower()
        if suffix in _PROPERTIES_SUFFIXES:
            definitions = self._from_properties(self._read(path))
        elif suffix in _YAML_SUFFIXES:
            definitions = self._from_yaml(self._read(path), source.path)
        else:
            logger.warning("Unknown rule source format, skipping: %s", source.path)
            return

        for definition in definitions:
            self._rules[definition.id] = definition
        logger.debug("Loaded %d rule(s) from %s", len(definitions), source.path)

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read rule source {path}: {exc}") from exc

    def _from_properties(self, text: str) -> list[RuleDefinition]:
        grouped: dict[str, dict[str, str]] = {}
        for key, value in parse_properties(text).items():
            rule_id, dot, field_name = key.partition(".")
            if not dot or not field_name:
                continue
            grouped.setdefault(rule_id, {})[field_name] = value

        definitions = []
        for rule_id, flat in grouped.items():
            nested: RuleFields = {}
            for dotted, value in flat.items():
                cursor = nested
                *parents, leaf = dotted.split(".")
                for part in parents:
                    cursor = cursor.setdefault(part, {})
                cursor[leaf] = value
            definitions.append(self.build_definition(rule_id, nested))
        return definitions

    def _from_yaml(self, text: str, origin: str) -> list[RuleDefinition]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Malformed YAML rule source {origin}: {exc}") from exc
        if data is None:
            return []
        if not isinstance(data, dict):
            raise ConfigurationError(f"YAML rule source {origin} must be a mapping")
        table = data.get("rules", data)
        if not isinstance(table, dict):
            raise ConfigurationError(f"'rules' in {origin} must be a mapping")
        return [
            self.build_definition(str(rule_id), fields if isinstance(fields, dict) else {})
            for rule_id, fields in table.items()
        ]

    @staticmethod
    def build_definition(rule_id: str, fields: RuleFields) -> RuleDefinition:
        detection = _section(fields, "detection")
        dependency = _section(detection, "dependencyPatterns")
        structure = _section(detection, "structurePatterns")
        return RuleDefinition(
            id=rule_id,
            name=str(fields.get("name") or rule_id),
            description=str(fields.get("description") or ""),
            category=Category.parse(_optional_text(fields.get("category"))),
            severity=Severity.parse(_optional_text(fields.get("severity"))),
            enabled=_as_bool(fields.get("enabled"), default=True),
            target_modules=_split_list(fields.get("targetModules")),
            detection=DetectionCriteria(
                path_patterns=_split_list(detection.get("pathPatterns")),
                file_patterns=_split_list(detection.get("filePatterns")),
                package_patterns=_split_list(detection.get("packagePatterns")),
                dependency_patterns=DependencyPatterns(
                    must_contain=_split_list(dependency.get("mustContain")),
                    must_not_contain=_split_list(dependency.get("mustNotContain")),
                    exceptions=_split_list(dependency.get("exceptions")),
                    scope=_optional_text(dependency.get("scope")),
                ),
                structure_patterns=StructurePatterns(
                    required_modules=_split_list(structure.get("requiredModules")),
                    module_order=_split_list(structure.get("moduleOrder")),
                    required_elements=_split_list(structure.get("requiredElements")),
                    require_parent=_as_bool(structure.get("requireParent")),
                    no_source_code=_as_bool(structure.get("noSourceCode")),
                ),
            ),
            reason=_optional_text(fields.get("reason")),
            fix=_optional_text(fields.get("fix")),
            reference=_optional_text(fields.get("reference")),
        )

    def apply_overrides(self, overrides: dict[str, RuleOverride]) -> None:
        """Per-rule enabled/severity overrides from project configuration."""
        for rule_id, override in overrides.items():
            current = self._rules.get(rule_id)
            if current is None:
                logger.warning("Override for unknown rule %s ignored", rule_id)
                continue
            self._rules[rule_id] = replace(
                current,
                enabled=current.enabled if override.enabled is None else override.enabled,
                severity=override.severity or current.severity,
            )

    def disable(self, rule_ids: Iterable[str]) -> None:
        self.apply_overrides({rule_id: RuleOverride(enabled=False) for rule_id in rule_ids
                              if rule_id in self._rules})

    def get_rules(self) -> dict[str, RuleDefinition]:
        return dict(self._rules)

    def get_rule(self, rule_id: str) -> Optional[RuleDefinition]:
        return self._rules.get(rule_id)

    def get_rules_by_category(self, category: Category) -> list[RuleDefinition]:
        return [r for r in self._rules.values() if r.category is category]

    def get_enabled_rules(self) -> list[RuleDefinition]:
        return [r for r in self._rules.values() if r.enabled]
