"""pathlib-backed FileSystemProtocol for project trees and the staging area."""

import os
import shutil
from pathlib import Path
from typing import List

from structure_warden.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """All paths in and out are plain strings; symlinked directories are not followed."""

    def resolve_path(self, path: str) -> str:
        return str(Path(path).resolve())

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def is_directory(self, path: str) -> bool:
        return Path(path).is_dir()

    def is_file(self, path: str) -> bool:
        return Path(path).is_file()

    def list_subdirectories(self, path: str) -> List[str]:
        """Immediate child directories, sorted by name for deterministic scans."""
        path_obj = Path(path)
        if not path_obj.is_dir():
            return []
        return sorted(str(p) for p in path_obj.iterdir() if p.is_dir() and not p.is_symlink())

    def walk_files(self, path: str) -> List[str]:
        path_obj = Path(path)
        if not path_obj.is_dir():
            return []
        return sorted(str(p) for p in path_obj.rglob("*") if p.is_file())

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return Path(path).read_text(encoding=encoding)

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        Path(path).write_text(content, encoding=encoding)

    def copy_file(self, source: str, destination: str) -> None:
        """Copy bytes and metadata, creating destination parents."""
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)

    def delete_file(self, path: str) -> bool:
        path_obj = Path(path)
        if not path_obj.is_file():
            return False
        path_obj.unlink()
        return True

    def remove_empty_dirs(self, path: str) -> None:
        """Remove empty directories below and including path, deepest first."""
        root = Path(path)
        if not root.is_dir():
            return
        for dirpath, _dirnames, _filenames in os.walk(root, topdown=False):
            current = Path(dirpath)
            if not any(current.iterdir()):
                current.rmdir()

    def make_dirs(self, path: str, exist_ok: bool = True) -> None:
        Path(path).mkdir(parents=True, exist_ok=exist_ok)

    def join_path(self, *paths: str) -> str:
        return str(Path(*paths))

    def relative_to(self, path: str, base: str) -> str:
        """POSIX-style relative path, used for staging layout and report paths."""
        return Path(path).relative_to(Path(base)).as_posix()
