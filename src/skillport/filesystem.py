"""Filesystem abstraction for testability.

This module provides a filesystem abstraction that enables testing
without real I/O operations. The RealFileSystem implementation
wraps standard library operations.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

# Never materialized into canonical storage.
EXCLUDED_FILES = frozenset({"metadata.json"})
EXCLUDED_DIRS = frozenset({".git"})


def is_excluded(name: str, is_dir: bool = False) -> bool:
    """Check whether a skill entry is left out of canonical storage."""
    if name.startswith("_"):
        return True
    if is_dir:
        return name in EXCLUDED_DIRS
    return name in EXCLUDED_FILES


def ignore_excluded(directory: str, names: Iterable[str]) -> set[str]:
    """``shutil.copytree`` ignore callback applying :func:`is_excluded`."""
    return {name for name in names if is_excluded(name, os.path.isdir(os.path.join(directory, name)))}


class RealFileSystem:
    """Production filesystem implementation.

    Wraps standard library Path and shutil operations.
    Satisfies the FileSystem protocol structurally.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists, following symlinks."""
        return path.exists()

    def lexists(self, path: Path) -> bool:
        """Check if a path exists without following symlinks."""
        return os.path.lexists(path)

    def is_symlink(self, path: Path) -> bool:
        """Check if a path is a symlink."""
        return path.is_symlink()

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        path.mkdir(parents=parents, exist_ok=exist_ok)

    def symlink(self, target: Path, link: Path) -> None:
        """Create a directory symlink at ``link`` pointing to ``target``."""
        os.symlink(target, link, target_is_directory=True)

    def copytree(self, src: Path, dst: Path) -> None:
        """Copy a skill directory, leaving out excluded entries."""
        shutil.copytree(src, dst, ignore=ignore_excluded, symlinks=False)

    def replace(self, src: Path, dst: Path) -> None:
        """Rename ``src`` to ``dst`` in one step. ``dst`` must not be a non-empty directory."""
        os.replace(src, dst)

    def remove(self, path: Path) -> None:
        """Remove a file, symlink or directory tree without following links.

        Missing paths are ignored.
        """
        if not os.path.lexists(path):
            return
        if path.is_symlink() or not path.is_dir():
            path.unlink()
        else:
            shutil.rmtree(path)
