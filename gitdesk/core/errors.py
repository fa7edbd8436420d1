"""Error taxonomy for gitdesk.

Every error raised on purpose by gitdesk derives from ``GitdeskError`` so
callers (the CLI in particular) can catch them in one place. Errors raised
by the underlying engine library that gitdesk does not translate propagate
unchanged.
"""


class GitdeskError(Exception):
    """Base class for all gitdesk errors."""


class EngineError(GitdeskError):
    """The version-control engine failed to carry out an operation."""


class MergeConflictError(EngineError):
    """A merge stopped because one or more paths conflict.

    The message always contains the word "conflict" so that callers
    matching on the text (as the merge coordinator does) recognise it.
    """

    def __init__(self, paths):
        self.paths = list(paths)
        super().__init__(
            f"Automatic merge failed: conflict in {len(self.paths)} file(s)"
        )


class NoChangesError(GitdeskError):
    """Stash attempted with nothing to stash."""

    def __init__(self, message: str = "No local changes to save"):
        super().__init__(message)


class NotFoundError(GitdeskError, LookupError):
    """A stash entry, tag, branch, remote or object does not exist."""


class ValidationError(GitdeskError, ValueError):
    """Empty or malformed input, such as a blank branch name."""


class StorageError(GitdeskError):
    """The durable key-value store could not be read or written."""
