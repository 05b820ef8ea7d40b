"""Load [tool.structure-warden] and [tool] from pyproject.toml. Infrastructure I/O only."""

import logging
import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib as toml_lib
else:
    import tomli as toml_lib

from structure_warden.domain.constants import TOOL_SECTION
from structure_warden.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE = "pyproject.toml"


class ConfigFileLoader:
    """Finds the nearest pyproject.toml at or above a start directory."""

    @staticmethod
    def find_config_file(start: Optional[str] = None) -> Optional[Path]:
        current_path = Path(start).resolve() if start else Path.cwd()
        if current_path.is_file():
            current_path = current_path.parent
        for candidate_dir in (current_path, *current_path.parents):
            config_file = candidate_dir / CONFIG_FILE
            if config_file.is_file():
                return config_file
        return None

    @staticmethod
    def load_config_from_fs(
        start: Optional[str] = None,
    ) -> tuple[dict[str, object], dict[str, object]]:
        """Load [tool.structure-warden] and [tool]. Returns (config_dict, tool_section)."""
        empty: dict[str, object] = {}
        config_file = ConfigFileLoader.find_config_file(start)
        if config_file is None:
            return (empty, empty)
        try:
            with config_file.open("rb") as f:
                data = toml_lib.load(f)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", config_file, exc)
            return (empty, empty)
        except toml_lib.TOMLDecodeError as exc:
            raise ConfigurationError(f"Malformed {config_file}: {exc}") from exc
        tool_section = data.get("tool", {}) or {}
        config_dict = tool_section.get(TOOL_SECTION, {}) or {}
        if config_dict:
            logger.debug("Loaded [tool.%s] from %s", TOOL_SECTION, config_file)
        return (config_dict, tool_section)
