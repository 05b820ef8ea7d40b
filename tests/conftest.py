"""Pytest configuration and shared fixtures.

Run pytest from this project's root; pythonpath in pyproject.toml puts src/
and the project root on the import path.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from structure_warden.infrastructure.di.container import WardenContainer
from tests.warden_test_utils import write_pom


@pytest.fixture(autouse=True)
def _fresh_container():
    """Never let one test's container leak into another."""
    WardenContainer.reset()
    yield
    WardenContainer.reset()


@pytest.fixture
def telemetry() -> MagicMock:
    return MagicMock()


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """
    platform (pom, pure aggregator with a junit dependency; 'orders' unlisted)
      billing (pom, modules api/core/common with common last)
        billing-api (depends on billing-core)
        billing-core
        billing-common
      orders (jar)
    """
    root = tmp_path / "platform"
    write_pom(root, "platform", packaging="pom", modules=["billing"],
              dependencies=["junit:junit:test"])
    billing = root / "billing"
    write_pom(billing, "billing", packaging="pom", parent="platform",
              modules=["billing-api", "billing-core", "billing-common"])
    write_pom(billing / "billing-api", "billing-api", parent="billing",
              dependencies=["com.example:billing-core"])
    write_pom(billing / "billing-core", "billing-core", parent="billing")
    write_pom(billing / "billing-common", "billing-common", parent="billing")
    write_pom(root / "orders", "orders", parent="platform")
    return root
