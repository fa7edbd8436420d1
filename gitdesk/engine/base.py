"""Version-control engine capability.

The facade and its components never touch git objects directly; they talk
to an engine through this interface. ``DulwichEngine`` is the production
implementation; tests may substitute a fake.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from gitdesk.core.status import StatusSignal
from gitdesk.engine.progress import GitProgress

ProgressCallback = Callable[[GitProgress], None]


@dataclass
class Signature:
    """Author or committer of a commit."""
    name: str
    email: str
    timestamp: int = 0
    timezone_offset: int = 0

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass
class CommitInfo:
    """Decoded commit."""
    oid: str
    message: str
    author: Signature
    committer: Signature
    parents: List[str] = field(default_factory=list)
    tree: str = ''

    @property
    def short_oid(self) -> str:
        return self.oid[:7]

    @property
    def summary(self) -> str:
        return self.message.split('\n', 1)[0]


@dataclass
class BranchInfo:
    name: str
    current: bool = False
    remote: Optional[str] = None
    last_commit: Optional[str] = None


@dataclass
class RemoteInfo:
    name: str
    url: str


@dataclass
class TagInfo:
    name: str
    oid: str
    annotated: bool = False


@dataclass
class Auth:
    """Credentials handed to a network operation."""
    username: str
    password: Optional[str] = None


@dataclass
class MergeReport:
    """
    What the engine's merge primitive did.

    A merge that stopped on conflicts raises MergeConflictError instead of
    returning a report.
    """
    oid: Optional[str] = None
    already_merged: bool = False
    fast_forward: bool = False


class VersionControlEngine:
    """
    Interface of a version-control engine bound to one working directory.

    Paths are '/'-separated and relative to the working directory; refs
    may be branch names, tag names, 'HEAD' or commit ids.
    """

    # ---- repository lifecycle ----
    def init(self, default_branch: str = 'main') -> None:
        raise NotImplementedError

    def is_repository(self) -> bool:
        raise NotImplementedError

    def clone(self, url: str, ref: Optional[str] = None, depth: Optional[int] = None,
              progress: Optional[ProgressCallback] = None, auth: Optional[Auth] = None) -> None:
        raise NotImplementedError

    # ---- status & staging ----
    def status_matrix(self) -> List[StatusSignal]:
        raise NotImplementedError

    def add(self, path: str) -> None:
        raise NotImplementedError

    def remove(self, path: str) -> None:
        raise NotImplementedError

    def reset_index(self, path: str) -> None:
        raise NotImplementedError

    # ---- history ----
    def commit(self, message: str, author: Signature) -> str:
        raise NotImplementedError

    def log(self, ref: Optional[str] = None, depth: Optional[int] = None) -> List[CommitInfo]:
        raise NotImplementedError

    def read_commit(self, oid: str) -> CommitInfo:
        raise NotImplementedError

    def resolve_ref(self, ref: str) -> str:
        raise NotImplementedError

    def read_blob(self, ref: str, path: str) -> bytes:
        raise NotImplementedError

    # ---- branches ----
    def current_branch(self) -> Optional[str]:
        raise NotImplementedError

    def list_branches(self, remote: Optional[str] = None) -> List[str]:
        raise NotImplementedError

    def create_branch(self, name: str, ref: Optional[str] = None) -> None:
        raise NotImplementedError

    def delete_branch(self, name: str) -> None:
        raise NotImplementedError

    def rename_branch(self, old_name: str, new_name: str) -> None:
        raise NotImplementedError

    def checkout(self, ref: Optional[str] = None, force: bool = False, track: bool = True) -> None:
        raise NotImplementedError

    # ---- remotes & network ----
    def list_remotes(self) -> List[RemoteInfo]:
        raise NotImplementedError

    def add_remote(self, name: str, url: str) -> None:
        raise NotImplementedError

    def delete_remote(self, name: str) -> None:
        raise NotImplementedError

    def fetch(self, remote: str, ref: Optional[str] = None, depth: Optional[int] = None,
              auth: Optional[Auth] = None, progress: Optional[ProgressCallback] = None) -> None:
        raise NotImplementedError

    def pull(self, remote: str, ref: Optional[str] = None, auth: Optional[Auth] = None,
             progress: Optional[ProgressCallback] = None, author: Optional[Signature] = None) -> None:
        raise NotImplementedError

    def push(self, remote: str, ref: Optional[str] = None, force: bool = False,
             auth: Optional[Auth] = None, progress: Optional[ProgressCallback] = None) -> None:
        raise NotImplementedError

    # ---- merge ----
    def merge(self, theirs: str, message: Optional[str] = None,
              author: Optional[Signature] = None) -> MergeReport:
        raise NotImplementedError

    def is_merge_in_progress(self) -> bool:
        raise NotImplementedError

    def merge_message(self) -> Optional[str]:
        """Prepared message of the merge in progress, or None when there is none."""
        raise NotImplementedError

    def clear_merge_state(self) -> None:
        raise NotImplementedError

    # ---- tags ----
    def list_tags(self) -> List[TagInfo]:
        raise NotImplementedError

    def tag(self, name: str, ref: Optional[str] = None, message: Optional[str] = None,
            tagger: Optional[Signature] = None) -> None:
        raise NotImplementedError

    def delete_tag(self, name: str) -> None:
        raise NotImplementedError
