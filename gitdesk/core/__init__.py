"""Core functionality for gitdesk.

This module contains:
- Status classification (Slot, Category, classify)
- The repository facade
- Configuration and credential management
- The key-value store and working-tree capabilities
- The error taxonomy

For diff, merge and stash, see gitdesk.operations
For the version-control engine, see gitdesk.engine
"""

from gitdesk.core.status import (Slot, Category, StatusSignal, FileStatusEntry,
                                 classify, classify_all)
from gitdesk.core.storage import KeyValueStore, MemoryStore, JsonFileStore
from gitdesk.core.config import Config
from gitdesk.core.credentials import Credential, CredentialStore
from gitdesk.core.worktree import WorkingTree

__all__ = [
    'Slot',
    'Category',
    'StatusSignal',
    'FileStatusEntry',
    'classify',
    'classify_all',
    'KeyValueStore',
    'MemoryStore',
    'JsonFileStore',
    'Config',
    'Credential',
    'CredentialStore',
    'WorkingTree',
]
