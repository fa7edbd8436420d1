"""gitdesk - status, diff, merge and stash on top of a git engine."""

__version__ = '0.1.0'

from gitdesk.core.repository import RepositoryFacade, RepositoryInfo
from gitdesk.core.errors import (GitdeskError, EngineError, MergeConflictError,
                                 NoChangesError, NotFoundError, ValidationError,
                                 StorageError)

__all__ = [
    'RepositoryFacade',
    'RepositoryInfo',
    'GitdeskError',
    'EngineError',
    'MergeConflictError',
    'NoChangesError',
    'NotFoundError',
    'ValidationError',
    'StorageError',
]
