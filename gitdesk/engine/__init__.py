"""Version-control engines.

VersionControlEngine is the capability the facade depends on;
DulwichEngine implements it with dulwich.
"""

from gitdesk.engine.base import (VersionControlEngine, Signature, CommitInfo, BranchInfo,
                                 RemoteInfo, TagInfo, Auth, MergeReport)
from gitdesk.engine.progress import GitProgress

__all__ = [
    'VersionControlEngine', 'Signature', 'CommitInfo', 'BranchInfo',
    'RemoteInfo', 'TagInfo', 'Auth', 'MergeReport', 'GitProgress',
]
