"""Operations module for high-level gitdesk operations.

This module contains:
- Diff computation
- Merge coordination
- Stash management
"""

from gitdesk.operations.diff import DiffEngine, DiffResult, DiffHunk, DiffLine
from gitdesk.operations.merge import MergeCoordinator, MergeOutcome, MergeState
from gitdesk.operations.stash import StashStore, StashEntry

__all__ = [
    'DiffEngine', 'DiffResult', 'DiffHunk', 'DiffLine',
    'MergeCoordinator', 'MergeOutcome', 'MergeState',
    'StashStore', 'StashEntry',
]
