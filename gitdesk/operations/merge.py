"""Merge coordination: run the engine's merge and classify the outcome."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from gitdesk.core.errors import MergeConflictError, NotFoundError, ValidationError
from gitdesk.core.status import Category, FileStatusEntry, classify_all

logger = logging.getLogger(__name__)


class MergeState(Enum):
    IDLE = 'idle'
    MERGING = 'merging'
    SUCCEEDED = 'succeeded'
    CONFLICTED = 'conflicted'
    ABORTED = 'aborted'


@dataclass
class MergeOutcome:
    """Result of a merge."""
    succeeded: bool
    conflicting_paths: List[str] = field(default_factory=list)
    fast_forward: bool = False
    already_merged: bool = False
    oid: Optional[str] = None

    def __repr__(self) -> str:
        if self.succeeded:
            if self.already_merged:
                return "MergeOutcome(already merged)"
            if self.fast_forward:
                return "MergeOutcome(fast-forward)"
            return "MergeOutcome(success)"
        return f"MergeOutcome(conflicts={len(self.conflicting_paths)})"


def _is_conflict(error: Exception) -> bool:
    if isinstance(error, MergeConflictError):
        return True
    # Lookup and argument errors may quote a ref named like "conflict-fix"
    if isinstance(error, (NotFoundError, ValidationError)):
        return False
    return 'conflict' in str(error).lower()


class MergeCoordinator:
    """
    Drives merges through the engine.

    A conflicted merge is not an error here: the coordinator reads the
    status afterwards and reports the conflicting paths in the outcome.
    Any other engine failure propagates unchanged.
    """

    def __init__(self, engine, status_fn: Optional[Callable[[], List[FileStatusEntry]]] = None):
        """
        Initialize merge coordinator.

        Args:
            engine: VersionControlEngine of the repository
            status_fn: Returns the current status entries (defaults to
                classifying the engine's status matrix)
        """
        self.engine = engine
        self.status_fn = status_fn or (lambda: classify_all(engine.status_matrix()))
        self.state = MergeState.IDLE

    def merge(self, theirs: str, message: Optional[str] = None, author=None) -> MergeOutcome:
        """
        Merge a branch or commit into the current branch.

        Args:
            theirs: Branch, tag or commit to merge
            message: Merge commit message
            author: Signature of the merge commit

        Returns:
            MergeOutcome; ``succeeded`` is False when paths conflict
        """
        self.state = MergeState.MERGING
        report = None
        stopped = False
        try:
            report = self.engine.merge(theirs, message=message, author=author)
        except Exception as e:
            if not _is_conflict(e):
                self.state = MergeState.IDLE
                raise
            logger.info("Merge of %s stopped: %s", theirs, e)
            stopped = True

        if report is not None and (report.already_merged or report.fast_forward):
            self.state = MergeState.SUCCEEDED
            return MergeOutcome(
                succeeded=True,
                fast_forward=report.fast_forward,
                already_merged=report.already_merged,
                oid=report.oid,
            )

        conflicting = [entry.path for entry in self.status_fn()
                       if entry.category is Category.CONFLICT]
        if conflicting or stopped:
            self.state = MergeState.CONFLICTED
            return MergeOutcome(succeeded=False, conflicting_paths=conflicting)

        self.state = MergeState.SUCCEEDED
        return MergeOutcome(succeeded=True, oid=report.oid if report else None)

    def abort_merge(self) -> None:
        """
        Abandon a merge, restoring the tree to the tip of the current history.

        Raises:
            NotFoundError: If there is no commit to return to
        """
        commits = self.engine.log(depth=1)
        if not commits:
            raise NotFoundError("No commit to restore")
        branch = self.engine.current_branch()
        self.engine.checkout(branch or commits[0].oid, force=True)
        self.engine.clear_merge_state()
        self.state = MergeState.ABORTED
        logger.info("Merge aborted; reset to %s", commits[0].short_oid)
        self.state = MergeState.IDLE
