"""Unit tests for RuleLoader and the properties reader."""

from pathlib import Path

import pytest

from structure_warden.domain.config import RuleOverride, RuleSource
from structure_warden.domain.entities import Category, Severity
from structure_warden.domain.errors import ConfigurationError
from structure_warden.infrastructure.services.rule_loader import (
    RuleLoader,
    default_rule_sources,
    parse_properties,
)

PROPERTIES = """\
# comment
! also a comment
MS-025.name=Pure Aggregator Has No Dependencies
MS-025.severity=ERROR
MS-025.category=DEPENDENCIES
MS-025.targetModules=*-parent, platform
MS-025.description=First half \\
    second half
MS-010.name: Common Module First
MS-010.enabled=false
MS-010.detection.structurePatterns.moduleOrder=*-common,*-api
"""

YAML = """\
rules:
  MS-025:
    name: Replaced
    severity: warning
  DP-001:
    name: API purity
    category: dependencies
    targetModules: ["*-api"]
    detection:
      dependencyPatterns:
        mustNotContain: ["*-core"]
        scope: compile
"""


@pytest.fixture
def sources(tmp_path: Path) -> tuple[str, str]:
    properties = tmp_path / "rules.properties"
    properties.write_text(PROPERTIES, encoding="utf-8")
    yaml_file = tmp_path / "rules.yaml"
    yaml_file.write_text(YAML, encoding="utf-8")
    return str(properties), str(yaml_file)


class TestParseProperties:
    def test_separators_comments_and_continuations(self) -> None:
        entries = parse_properties(PROPERTIES)
        assert entries["MS-010.name"] == "Common Module First"
        assert entries["MS-025.description"] == "First half second half"
        assert not any(key.startswith(("#", "!")) for key in entries)


class TestRuleLoader:
    """Test layered loading of rule sources."""

    def test_properties_source(self, sources: tuple[str, str]) -> None:
        """Test that dotted keys become nested definition fields."""
        rules = RuleLoader().load_required(sources[0])
        ms025 = rules["MS-025"]
        assert ms025.category is Category.DEPENDENCIES
        assert ms025.target_modules == ("*-parent", "platform")
        ms010 = rules["MS-010"]
        assert not ms010.enabled
        assert ms010.detection.structure_patterns.module_order == ("*-common", "*-api")

    def test_later_source_replaces_whole_definition(self, sources: tuple[str, str]) -> None:
        """Test that a redefinition replaces every field, not only the ones it sets."""
        rules = RuleLoader().load([RuleSource(sources[0]), RuleSource(sources[1])])
        replaced = rules["MS-025"]
        assert replaced.name == "Replaced"
        assert replaced.severity is Severity.WARNING
        assert replaced.category is Category.STRUCTURE
        assert replaced.target_modules == ()

    def test_yaml_detection_criteria(self, sources: tuple[str, str]) -> None:
        rule = RuleLoader().load_optional(sources[1])["DP-001"]
        patterns = rule.detection.dependency_patterns
        assert patterns.must_not_contain == ("*-core",)
        assert patterns.scope == "compile"
        assert rule.category is Category.DEPENDENCIES

    def test_missing_required_source_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Required rule source not found"):
            RuleLoader().load_required(str(tmp_path / "missing.properties"))

    def test_missing_optional_source_is_skipped(self, tmp_path: Path) -> None:
        assert RuleLoader().load_optional(str(tmp_path / "missing.yaml")) == {}

    def test_unknown_format_is_skipped(self, tmp_path: Path) -> None:
        other = tmp_path / "rules.json"
        other.write_text("{}", encoding="utf-8")
        assert RuleLoader().load_required(str(other)) == {}

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        broken = tmp_path / "broken.yaml"
        broken.write_text("rules: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Malformed YAML"):
            RuleLoader().load_required(str(broken))

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        listed = tmp_path / "list.yaml"
        listed.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RuleLoader().load_required(str(listed))

    def test_apply_overrides_and_disable(self, sources: tuple[str, str]) -> None:
        loader = RuleLoader()
        loader.load([RuleSource(sources[0])])
        loader.apply_overrides({
            "MS-010": RuleOverride(enabled=True, severity=Severity.INFO),
            "NOPE-1": RuleOverride(enabled=False),
        })
        loader.disable(["MS-025", "NOPE-2"])

        assert loader.get_rule("MS-010").enabled
        assert loader.get_rule("MS-010").severity is Severity.INFO
        assert not loader.get_rule("MS-025").enabled
        assert loader.get_rule("NOPE-1") is None
        assert [r.id for r in loader.get_enabled_rules()] == ["MS-010"]

    def test_rules_by_category(self, sources: tuple[str, str]) -> None:
        loader = RuleLoader()
        loader.load([RuleSource(sources[0])])
        assert [r.id for r in loader.get_rules_by_category(Category.DEPENDENCIES)] == ["MS-025"]


class TestPackagedRules:
    """The packaged catalogue loads and contains the built-in rules."""

    def test_default_sources_load(self) -> None:
        rules = RuleLoader().load(default_rule_sources())
        for rule_id in ("MS-010", "MS-014", "MS-016", "MS-025", "MS-026", "DP-001", "DP-002", "ST-001"):
            assert rule_id in rules
        assert rules["MS-010"].severity is Severity.WARNING
        assert rules["MS-025"].category is Category.DEPENDENCIES
