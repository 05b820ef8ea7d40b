"""Module Scanner - walks a project tree and builds ModuleDescriptors."""

import logging
from pathlib import PurePath
from typing import Optional

from structure_warden.domain.config import ScanSettings
from structure_warden.domain.constants import (
    AGGREGATE_PACKAGING,
    DESCRIPTOR_FILE,
    LAYER_PATTERN,
    LEAF_SUFFIXES,
    SOURCE_DIRS,
)
from structure_warden.domain.entities import (
    ModuleDescriptor,
    ModuleKind,
    ParsedDescriptor,
    SubModuleInfo,
)
from structure_warden.domain.errors import DescriptorParseError, ScanError
from structure_warden.domain.protocols import (
    DescriptorParserProtocol,
    FileSystemProtocol,
    ModuleScannerProtocol,
    TelemetryPort,
)

logger = logging.getLogger(__name__)


class ModuleScanner(ModuleScannerProtocol):
    """
    Read-only walk of a project directory.

    A directory is a module iff it holds a descriptor file. The walk is
    depth-first with children sorted by name, so the result order is stable
    between runs on an unchanged tree. Hidden directories, the staging area
    and configured exclusions are never entered.
    """

    def __init__(
        self,
        filesystem: FileSystemProtocol,
        parser: DescriptorParserProtocol,
        settings: Optional[ScanSettings] = None,
        telemetry: Optional[TelemetryPort] = None,
    ) -> None:
        self.filesystem = filesystem
        self.parser = parser
        self.settings = settings or ScanSettings()
        self.telemetry = telemetry

    def scan(self, project_root: str) -> list[ModuleDescriptor]:
        if not self.filesystem.exists(project_root):
            raise ScanError(f"Project root does not exist: {project_root}")
        if not self.filesystem.is_directory(project_root):
            raise ScanError(f"Project root is not a directory: {project_root}")
        root = self.filesystem.resolve_path(project_root)

        modules: list[ModuleDescriptor] = []
        for directory in self._module_directories(root):
            module = self._build(directory)
            if module is not None:
                modules.append(module)
        if self.telemetry:
            self.telemetry.step(f"🔍 Scanned {len(modules)} module(s) under {root}")
        return modules

    def _module_directories(self, root: str) -> list[str]:
        found: list[str] = []
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            directory, depth = stack.pop()
            if self._has_descriptor(directory):
                found.append(directory)
            if depth >= self.settings.max_depth:
                continue
            children = [
                child
                for child in self.filesystem.list_subdirectories(directory)
                if not self._is_excluded(root, child)
            ]
            # Reverse so the stack pops children in name order.
            stack.extend((child, depth + 1) for child in reversed(children))
        return found

    def _is_excluded(self, root: str, directory: str) -> bool:
        name = PurePath(directory).name
        if name.startswith("."):
            return True
        if name in self.settings.exclude_dirs:
            return True
        relative = self.filesystem.relative_to(directory, root)
        return relative in self.settings.exclude_dirs

    def _has_descriptor(self, directory: str) -> bool:
        return self.filesystem.is_file(self.filesystem.join_path(directory, DESCRIPTOR_FILE))

    def _parse(self, directory: str) -> Optional[ParsedDescriptor]:
        path = self.filesystem.join_path(directory, DESCRIPTOR_FILE)
        try:
            return self.parser.parse(path)
        except DescriptorParseError as exc:
            logger.warning("Skipping module: %s", exc)
            if self.telemetry:
                self.telemetry.warning(f"Skipping module: {exc}")
            return None

    def _build(self, directory: str) -> Optional[ModuleDescriptor]:
        descriptor = self._parse(directory)
        if descriptor is None:
            return None
        return ModuleDescriptor(
            artifact_id=descriptor.artifact_id,
            group_id=descriptor.group_id,
            kind=self.classify(descriptor),
            base_path=directory,
            module_name=PurePath(directory).name,
            declared_modules=descriptor.modules,
            dependencies=frozenset(dep.identifier for dep in descriptor.dependencies),
            descriptor=descriptor,
            sub_modules=self._sub_modules(directory, descriptor),
            source_dirs=tuple(
                d for d in SOURCE_DIRS
                if self.filesystem.is_directory(self.filesystem.join_path(directory, d))
            ),
            discovered_children=tuple(
                PurePath(child).name
                for child in self.filesystem.list_subdirectories(directory)
                if not PurePath(child).name.startswith(".") and self._has_descriptor(child)
            ),
        )

    @staticmethod
    def classify(descriptor: ParsedDescriptor) -> ModuleKind:
        if descriptor.packaging == AGGREGATE_PACKAGING:
            return ModuleKind.PARENT
        if descriptor.artifact_id.endswith(LEAF_SUFFIXES):
            return ModuleKind.LEAF
        return ModuleKind.STANDALONE

    def _sub_modules(
        self, directory: str, descriptor: ParsedDescriptor
    ) -> dict[str, SubModuleInfo]:
        """Layer slots for each declared child named <base>-<layer>. A missing directory is not an error."""
        slots: dict[str, SubModuleInfo] = {}
        for name in descriptor.modules:
            match = LAYER_PATTERN.match(PurePath(name).name)
            if not match:
                continue
            slot = "util" if match.group(2) == "utils" else match.group(2)
            if slot in slots:
                continue
            child_dir = self.filesystem.join_path(directory, name)
            exists = self._has_descriptor(child_dir)
            child = self._parse(child_dir) if exists else None
            slots[slot] = SubModuleInfo(
                name=name,
                exists=exists,
                path=child_dir,
                artifact_id=child.artifact_id if child else None,
                dependencies=tuple(d.identifier for d in child.dependencies) if child else (),
            )
        return slots
