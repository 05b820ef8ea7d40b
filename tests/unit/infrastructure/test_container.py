"""Unit tests for WardenContainer wiring."""

from pathlib import Path

import pytest

from structure_warden.domain.errors import ConfigurationError
from structure_warden.infrastructure.di.container import WardenContainer
from structure_warden.infrastructure.services.backup_manager import BackupManager
from structure_warden.infrastructure.services.fixer_registry import FixerRegistry
from structure_warden.use_cases.remediate_project import RemediationPipeline


@pytest.fixture
def configured_root(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.structure-warden]\nreport_dir = "build/warden"\nmax_depth = 4\n', encoding="utf-8")
    return tmp_path


class TestWardenContainer:
    """Test that the container registers and returns the expected services."""

    def test_config_is_read_from_start_path(self, configured_root: Path) -> None:
        container = WardenContainer(start_path=str(configured_root))
        assert container.get_config_loader().report_dir == "build/warden"
        assert container.get_module_scanner().settings.max_depth == 4
        assert container.get_report_generator().report_dir == "build/warden"

    def test_fixer_registry_holds_builtin_fixers(self, configured_root: Path) -> None:
        registry = WardenContainer(start_path=str(configured_root)).get_fixer_registry()
        assert isinstance(registry, FixerRegistry)
        assert registry.size() == 4

    def test_pipeline_is_created_once(self, configured_root: Path) -> None:
        container = WardenContainer(start_path=str(configured_root))
        pipeline = container.get_pipeline()
        assert isinstance(pipeline, RemediationPipeline)
        assert container.get_pipeline() is pipeline

    def test_backup_managers_are_bound_per_root(self, configured_root: Path, tmp_path: Path) -> None:
        container = WardenContainer(start_path=str(configured_root))
        manager = container.create_backup_manager(str(tmp_path))
        assert isinstance(manager, BackupManager)
        assert manager.project_root == str(tmp_path.resolve())
        assert container.create_backup_manager(str(tmp_path)) is not manager

    def test_unknown_key_raises(self, configured_root: Path) -> None:
        with pytest.raises(ValueError, match="not registered"):
            WardenContainer(start_path=str(configured_root)).get("Nope")

    def test_invalid_config_surfaces_at_construction(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.structure-warden]\ndisabled_rules = "MS-010"\n', encoding="utf-8")
        with pytest.raises(ConfigurationError):
            WardenContainer(start_path=str(tmp_path))

    def test_get_instance_and_reset(self, monkeypatch: pytest.MonkeyPatch, configured_root: Path) -> None:
        monkeypatch.chdir(configured_root)
        first = WardenContainer.get_instance()
        assert WardenContainer.get_instance() is first
        WardenContainer.reset()
        assert WardenContainer.get_instance() is not first
