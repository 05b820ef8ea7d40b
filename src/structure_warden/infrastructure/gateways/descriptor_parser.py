"""Parse pom.xml build descriptors into ParsedDescriptor values."""

import xml.etree.ElementTree as ET
from typing import Optional

from structure_warden.domain.entities import DependencyRef, ParentRef, ParsedDescriptor
from structure_warden.domain.errors import DescriptorParseError
from structure_warden.domain.protocols import DescriptorParserProtocol


def _local(tag: str) -> str:
    """Strip the '{namespace}' prefix ElementTree puts on qualified tags."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


class PomDescriptorParser(DescriptorParserProtocol):
    """
    Reads the coordinates, parent, modules and dependencies of a pom.xml.

    Works for both namespaced (``xmlns="http://maven.apache.org/POM/4.0.0"``)
    and bare documents. A missing groupId is inherited from <parent>.
    """

    def parse(self, path: str) -> ParsedDescriptor:
        try:
            tree = ET.parse(path)
        except ET.ParseError as exc:
            raise DescriptorParseError(path, str(exc)) from exc
        except OSError as exc:
            raise DescriptorParseError(path, exc.strerror or str(exc)) from exc
        return self.from_element(path, tree.getroot())

    def parse_text(self, path: str, content: str) -> ParsedDescriptor:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as exc:
            raise DescriptorParseError(path, str(exc)) from exc
        return self.from_element(path, root)

    def from_element(self, path: str, root: ET.Element) -> ParsedDescriptor:
        if _local(root.tag) != "project":
            raise DescriptorParseError(path, f"root element is <{_local(root.tag)}>, expected <project>")

        parent = self._parent(root)
        artifact_id = self._text(root, "artifactId")
        if not artifact_id:
            raise DescriptorParseError(path, "missing <artifactId>")
        group_id = self._text(root, "groupId") or (parent.group_id if parent else "")

        managed: tuple[DependencyRef, ...] = ()
        management = self._child(root, "dependencyManagement")
        if management is not None:
            managed = self._dependencies(self._child(management, "dependencies"))

        modules_el = self._child(root, "modules")
        modules: tuple[str, ...] = ()
        if modules_el is not None:
            modules = tuple(
                (el.text or "").strip()
                for el in modules_el
                if _local(el.tag) == "module" and (el.text or "").strip()
            )

        return ParsedDescriptor(
            path=path,
            artifact_id=artifact_id,
            group_id=group_id,
            packaging=self._text(root, "packaging") or "jar",
            version=self._text(root, "version") or (parent.version if parent else None),
            parent=parent,
            modules=modules,
            dependencies=self._dependencies(self._child(root, "dependencies")),
            managed_dependencies=managed,
            elements=frozenset(_local(el.tag) for el in root if isinstance(el.tag, str)),
        )

    @staticmethod
    def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
        for el in element:
            if isinstance(el.tag, str) and _local(el.tag) == name:
                return el
        return None

    def _text(self, element: ET.Element, name: str) -> str:
        child = self._child(element, name)
        if child is None or child.text is None:
            return ""
        return child.text.strip()

    def _parent(self, root: ET.Element) -> Optional[ParentRef]:
        el = self._child(root, "parent")
        if el is None:
            return None
        return ParentRef(
            group_id=self._text(el, "groupId"),
            artifact_id=self._text(el, "artifactId"),
            version=self._text(el, "version") or None,
            relative_path=self._text(el, "relativePath") or None,
        )

    def _dependencies(self, container: Optional[ET.Element]) -> tuple[DependencyRef, ...]:
        if container is None:
            return ()
        deps: list[DependencyRef] = []
        for el in container:
            if not isinstance(el.tag, str) or _local(el.tag) != "dependency":
                continue
            artifact_id = self._text(el, "artifactId")
            if not artifact_id:
                continue
            deps.append(
                DependencyRef(
                    group_id=self._text(el, "groupId"),
                    artifact_id=artifact_id,
                    scope=self._text(el, "scope") or None,
                )
            )
        return tuple(deps)
