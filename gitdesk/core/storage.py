"""Durable key-value storage for gitdesk state.

Stash entries, stash archives, configuration and credentials are kept in a
key-value store that is injected into the repository facade. Two backends
are provided:

- MemoryStore: keeps values in a dict (used by tests and throwaway sessions)
- JsonFileStore: one JSON document per key below a root directory

Values must be JSON-serialisable. Keys are '/'-separated paths such as
``stash`` or ``stash/3f2a...``.
"""

import copy
import hashlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from gitdesk.core.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PART = re.compile(r'^[A-Za-z0-9_.\-]+$')


def default_store_root() -> Path:
    """Base directory for per-repository stores (``$GITDESK_HOME`` or ~/.gitdesk)."""
    home = os.environ.get('GITDESK_HOME')
    if home:
        return Path(home)
    return Path.home() / '.gitdesk'


class KeyValueStore:
    """
    Interface of the durable store.

    Subclasses implement ``get``, ``set``, ``delete`` and ``keys``.
    """

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def keys(self, prefix: str = '') -> List[str]:
        raise NotImplementedError

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryStore(KeyValueStore):
    """In-memory store; values are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not serialisable: {e}") from e
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = '') -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def __repr__(self) -> str:
        return f"MemoryStore(keys={len(self._data)})"


class JsonFileStore(KeyValueStore):
    """
    Store that keeps each key in its own JSON file.

    Key ``stash/abc`` is stored at ``<root>/stash/abc.json``. Writes go to a
    temporary file that is then renamed over the target, so a reader never
    sees a half-written document.
    """

    SUFFIX = '.json'

    def __init__(self, root):
        """
        Initialize store.

        Args:
            root: Directory holding the JSON documents (created on first write)
        """
        self.root = Path(root)

    @classmethod
    def for_workdir(cls, workdir, base: Optional[Path] = None) -> 'JsonFileStore':
        """
        Create the store belonging to a working directory.

        Each working directory gets its own namespace so that two
        repositories never see each other's stashes or credentials.

        Args:
            workdir: Repository working directory
            base: Base directory (defaults to default_store_root())

        Returns:
            JsonFileStore rooted at <base>/<sha1 of resolved workdir>
        """
        resolved = str(Path(workdir).resolve())
        digest = hashlib.sha1(resolved.encode('utf-8')).hexdigest()
        return cls((base or default_store_root()) / digest)

    def _path(self, key: str) -> Path:
        parts = key.split('/')
        if not all(_KEY_PART.match(part) and part not in ('.', '..') for part in parts):
            raise StorageError(f"Invalid store key: {key!r}")
        return self.root.joinpath(*parts[:-1]) / (parts[-1] + self.SUFFIX)

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_name(path.name + '.tmp')
        try:
            data = json.dumps(value, indent=2)
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(data, encoding='utf-8')
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e
        logger.debug("Stored %s (%d bytes)", key, len(data))

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e
        return True

    def keys(self, prefix: str = '') -> List[str]:
        if not self.root.exists():
            return []
        found = []
        for path in self.root.rglob('*' + self.SUFFIX):
            rel = path.relative_to(self.root).as_posix()
            key = rel[:-len(self.SUFFIX)]
            if key.startswith(prefix):
                found.append(key)
        return sorted(found)

    def __repr__(self) -> str:
        return f"JsonFileStore(root={self.root})"
