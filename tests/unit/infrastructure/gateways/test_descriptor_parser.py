"""Unit tests for PomDescriptorParser."""

from pathlib import Path

import pytest

from structure_warden.domain.entities import DependencyRef
from structure_warden.domain.errors import DescriptorParseError
from structure_warden.infrastructure.gateways.descriptor_parser import PomDescriptorParser
from tests.warden_test_utils import pom_xml, write_pom


class TestPomDescriptorParser:
    """Test parsing of namespaced and bare pom.xml documents."""

    def test_parse_namespaced_aggregator(self, tmp_path: Path) -> None:
        """Test that coordinates, modules and dependencies are read."""
        path = write_pom(
            tmp_path, "platform", packaging="pom",
            modules=["billing", "orders"],
            dependencies=["junit:junit:test"],
            managed=["com.example:shared"],
        )
        descriptor = PomDescriptorParser().parse(str(path))

        assert descriptor.artifact_id == "platform"
        assert descriptor.group_id == "com.example"
        assert descriptor.packaging == "pom"
        assert descriptor.version == "1.0.0"
        assert descriptor.modules == ("billing", "orders")
        assert descriptor.dependencies == (DependencyRef("junit", "junit", "test"),)
        assert descriptor.managed_dependencies == (DependencyRef("com.example", "shared"),)
        assert descriptor.has_dependency_management
        assert {"modules", "dependencies", "dependencyManagement"} <= descriptor.elements

    def test_bare_document_inherits_group_from_parent(self) -> None:
        """Test that a missing groupId falls back to the parent's."""
        content = pom_xml("orders", group_id=None, parent="platform", namespaced=False)
        descriptor = PomDescriptorParser().parse_text("orders/pom.xml", content)

        assert descriptor.group_id == "com.example"
        assert descriptor.parent is not None
        assert descriptor.parent.artifact_id == "platform"
        assert descriptor.packaging == "jar"
        assert not descriptor.has_dependency_management

    def test_managed_dependencies_are_not_direct_dependencies(self) -> None:
        content = pom_xml("platform", packaging="pom", managed=["com.example:shared"])
        descriptor = PomDescriptorParser().parse_text("pom.xml", content)
        assert descriptor.dependencies == ()

    def test_malformed_xml_raises(self) -> None:
        """Test that broken markup becomes a DescriptorParseError."""
        with pytest.raises(DescriptorParseError) as exc_info:
            PomDescriptorParser().parse_text("broken/pom.xml", "<project><artifactId>x</project>")
        assert exc_info.value.path == "broken/pom.xml"

    def test_wrong_root_element_raises(self) -> None:
        with pytest.raises(DescriptorParseError, match="expected <project>"):
            PomDescriptorParser().parse_text("pom.xml", "<settings/>")

    def test_missing_artifact_id_raises(self) -> None:
        with pytest.raises(DescriptorParseError, match="missing <artifactId>"):
            PomDescriptorParser().parse_text("pom.xml", "<project><groupId>g</groupId></project>")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DescriptorParseError):
            PomDescriptorParser().parse(str(tmp_path / "nope" / "pom.xml"))
