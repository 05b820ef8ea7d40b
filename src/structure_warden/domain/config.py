"""Configuration value objects. Immutable; created by Infrastructure at the composition root."""

from dataclasses import dataclass, field, replace
from typing import Optional

from structure_warden.domain.constants import (
    COMPLIANCE_REPORT_PATH,
    DEFAULT_EXCLUDED_DIRS,
    MAX_SCAN_DEPTH,
    REPORT_DIR,
)
from structure_warden.domain.entities import Severity
from structure_warden.domain.errors import ConfigurationError


@dataclass(frozen=True)
class RuleSource:
    """One layer of rule configuration. Later sources replace earlier rules by id."""
    path: str
    required: bool = False


@dataclass(frozen=True)
class RuleOverride:
    enabled: Optional[bool] = None
    severity: Optional[Severity] = None


@dataclass(frozen=True)
class FixerSettings:
    """Switches consulted by the fixer orchestrator."""
    enabled: bool = True
    dry_run: bool = False
    backup_files: bool = True
    cleanup_backups: bool = False
    enabled_fixers: frozenset[str] = frozenset()
    disabled_fixers: frozenset[str] = frozenset()
    disabled_rules: frozenset[str] = frozenset()
    report_dir: str = REPORT_DIR

    def is_rule_enabled(self, rule_id: str) -> bool:
        return rule_id not in self.disabled_rules

    def is_fixer_enabled(self, name: str) -> bool:
        """Empty enabled_fixers means every fixer not explicitly disabled."""
        if name in self.disabled_fixers:
            return False
        return not self.enabled_fixers or name in self.enabled_fixers

    def with_overrides(
        self, dry_run: Optional[bool] = None, backup_files: Optional[bool] = None
    ) -> "FixerSettings":
        changes: dict[str, bool] = {}
        if dry_run is not None:
            changes["dry_run"] = dry_run
        if backup_files is not None:
            changes["backup_files"] = backup_files
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class ScanSettings:
    max_depth: int = MAX_SCAN_DEPTH
    exclude_dirs: frozenset[str] = field(default=DEFAULT_EXCLUDED_DIRS)


class ConfigurationLoader:
    """
    Immutable configuration read from [tool.structure-warden].

    Created by Infrastructure from (config_dict, tool_section). Domain does not
    read the filesystem; Infrastructure calls ConfigFileLoader.load_config_from_fs()
    and constructs ConfigurationLoader(config_dict, tool_section) at composition root.
    """

    def __init__(
        self,
        config_dict: dict[str, object],
        tool_section: Optional[dict[str, object]] = None,
    ) -> None:
        self._config = config_dict
        self._tool_section = tool_section or {}
        if config_dict:
            self.validate_config(config_dict)

    def validate_config(self, config: dict[str, object]) -> None:
        """Reject values whose type cannot be interpreted."""
        list_keys = (
            "rule_sources",
            "disabled_rules",
            "enabled_fixers",
            "disabled_fixers",
            "exclude_dirs",
        )
        for key in list_keys:
            value = config.get(key)
            if value is not None and not isinstance(value, list):
                raise ConfigurationError(
                    f"[tool.structure-warden] '{key}' must be a list")
        for key in ("severity_overrides", "rule_overrides"):
            value = config.get(key)
            if value is not None and not isinstance(value, dict):
                raise ConfigurationError(
                    f"[tool.structure-warden] '{key}' must be a table")
        max_depth = config.get("max_depth")
        if max_depth is not None and (not isinstance(max_depth, int) or max_depth < 1):
            raise ConfigurationError(
                "[tool.structure-warden] 'max_depth' must be a positive integer")

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded configuration."""
        return self._config

    def _string_list(self, key: str) -> list[str]:
        raw = self._config.get(key, [])
        if isinstance(raw, list):
            return [str(x) for x in raw if isinstance(x, str)]
        return []

    def _flag(self, key: str, default: bool) -> bool:
        raw = self._config.get(key, default)
        return raw if isinstance(raw, bool) else default

    @property
    def rule_sources(self) -> list[RuleSource]:
        """
        Rule sources in application order.

        Entries are either plain paths (optional) or tables with
        ``path`` and ``required`` keys.
        """
        raw = self._config.get("rule_sources", [])
        sources: list[RuleSource] = []
        if not isinstance(raw, list):
            return sources
        for entry in raw:
            if isinstance(entry, str):
                sources.append(RuleSource(path=entry))
            elif isinstance(entry, dict) and isinstance(entry.get("path"), str):
                sources.append(
                    RuleSource(path=entry["path"], required=bool(entry.get("required", False))))
        return sources

    @property
    def disabled_rules(self) -> list[str]:
        return self._string_list("disabled_rules")

    @property
    def severity_overrides(self) -> dict[str, Severity]:
        raw = self._config.get("severity_overrides", {})
        if not isinstance(raw, dict):
            return {}
        return {str(k): Severity.parse(str(v)) for k, v in raw.items()}

    @property
    def rule_overrides(self) -> dict[str, RuleOverride]:
        raw = self._config.get("rule_overrides", {})
        overrides: dict[str, RuleOverride] = {}
        if not isinstance(raw, dict):
            return overrides
        for rule_id, entry in raw.items():
            if not isinstance(entry, dict):
                continue
            enabled = entry.get("enabled")
            severity = entry.get("severity")
            overrides[str(rule_id)] = RuleOverride(
                enabled=enabled if isinstance(enabled, bool) else None,
                severity=Severity.parse(str(severity)) if severity else None,
            )
        return overrides

    @property
    def namespace(self) -> str:
        return str(self._config.get("namespace", ""))

    @property
    def project(self) -> str:
        return str(self._config.get("project", ""))

    @property
    def report_dir(self) -> str:
        return str(self._config.get("report_dir", REPORT_DIR))

    @property
    def compliance_report(self) -> str:
        return str(self._config.get("compliance_report", COMPLIANCE_REPORT_PATH))

    @property
    def scan_settings(self) -> ScanSettings:
        max_depth = self._config.get("max_depth", MAX_SCAN_DEPTH)
        extra = frozenset(self._string_list("exclude_dirs"))
        return ScanSettings(
            max_depth=max_depth if isinstance(max_depth, int) else MAX_SCAN_DEPTH,
            exclude_dirs=DEFAULT_EXCLUDED_DIRS | extra,
        )

    @property
    def fixer_settings(self) -> FixerSettings:
        return FixerSettings(
            enabled=self._flag("fixers_enabled", True),
            dry_run=self._flag("dry_run", False),
            backup_files=self._flag("backup_files", True),
            cleanup_backups=self._flag("cleanup_backups", False),
            enabled_fixers=frozenset(self._string_list("enabled_fixers")),
            disabled_fixers=frozenset(self._string_list("disabled_fixers")),
            disabled_rules=frozenset(self.disabled_rules),
            report_dir=self.report_dir,
        )
