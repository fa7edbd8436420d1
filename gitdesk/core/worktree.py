"""Filesystem access scoped under a working-directory root."""

import os
import shutil
from pathlib import Path
from typing import List, Union

from gitdesk.core.errors import ValidationError

# Text is decoded with surrogateescape so that any byte sequence survives a
# read_text/write_text round trip unchanged.
ENCODING = 'utf-8'
ERRORS = 'surrogateescape'


def decode(data: bytes) -> str:
    return data.decode(ENCODING, ERRORS)


def encode(text: str) -> bytes:
    return text.encode(ENCODING, ERRORS)


class WorkingTree:
    """
    Filesystem capability for one working directory.

    All paths are '/'-separated and relative to ``root``; a path that
    resolves outside the root is rejected with ValidationError.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def path(self, relpath: str) -> Path:
        """
        Resolve a repository-relative path to an absolute one.

        Args:
            relpath: Path relative to the working directory

        Returns:
            Absolute Path inside the working directory

        Raises:
            ValidationError: If the path is empty or escapes the root
        """
        if relpath is None or not str(relpath).strip():
            raise ValidationError("Path must not be empty")
        full = (self.root / str(relpath).lstrip('/')).resolve()
        if full != self.root and self.root not in full.parents:
            raise ValidationError(f"Path '{relpath}' is outside the working tree")
        return full

    def exists(self, relpath: str) -> bool:
        return self.path(relpath).exists()

    def read_file(self, relpath: str) -> bytes:
        return self.path(relpath).read_bytes()

    def read_text(self, relpath: str) -> str:
        return decode(self.read_file(relpath))

    def write_file(self, relpath: str, data: bytes) -> None:
        """Write bytes, creating parent directories as needed."""
        full = self.path(relpath)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)

    def write_text(self, relpath: str, text: str) -> None:
        self.write_file(relpath, encode(text))

    def unlink(self, relpath: str) -> None:
        self.path(relpath).unlink()

    def mkdir(self, relpath: str) -> None:
        self.path(relpath).mkdir(parents=True, exist_ok=True)

    def readdir(self, relpath: str = '') -> List[str]:
        target = self.path(relpath) if relpath else self.root
        return sorted(os.listdir(target))

    def stat(self, relpath: str) -> os.stat_result:
        return self.path(relpath).stat()

    def clear(self) -> None:
        """
        Remove everything below the root, keeping the root itself.

        Creates the root when it does not exist yet.
        """
        if not self.root.exists():
            self.root.mkdir(parents=True)
            return
        for child in self.root.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()

    def prune_empty_dirs(self, relpath: str) -> None:
        """Remove now-empty parent directories of a deleted file."""
        parent = self.path(relpath).parent
        while parent != self.root and parent.exists() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def __repr__(self) -> str:
        return f"WorkingTree(root={self.root})"
