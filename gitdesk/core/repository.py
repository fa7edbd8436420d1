"""Repository facade: the single entry point to gitdesk."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from gitdesk.core.config import Config
from gitdesk.core.credentials import Credential, CredentialStore
from gitdesk.core.errors import GitdeskError, NotFoundError, ValidationError
from gitdesk.core.status import Category, FileStatusEntry, classify_all
from gitdesk.core.storage import JsonFileStore, KeyValueStore
from gitdesk.core.worktree import WorkingTree, decode
from gitdesk.engine.base import (
    Auth,
    BranchInfo,
    CommitInfo,
    RemoteInfo,
    Signature,
    TagInfo,
)
from gitdesk.engine.progress import GitProgress
from gitdesk.operations.diff import DiffEngine, DiffResult
from gitdesk.operations.merge import MergeCoordinator, MergeOutcome
from gitdesk.operations.stash import StashEntry, StashRef, StashStore

logger = logging.getLogger(__name__)

ProgressHandler = Callable[[GitProgress], None]


@dataclass
class RepositoryInfo:
    dir: str
    is_initialized: bool
    current_branch: Optional[str] = None
    remotes: List[RemoteInfo] = field(default_factory=list)
    has_uncommitted_changes: bool = False


def _require(value: Optional[str], what: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{what} must not be empty")
    return value


class RepositoryFacade:
    """
    A repository working directory and everything gitdesk does with it.

    The facade owns the configuration, the credential map and the stash
    list of one working directory and delegates version-control work to an
    engine. Facades are built explicitly and share no state.
    """

    def __init__(self, dir: Union[str, Path] = '.', engine=None,
                 store: Optional[KeyValueStore] = None,
                 worktree: Optional[WorkingTree] = None,
                 global_config_path: Optional[Path] = None):
        """
        Initialize the facade.

        Args:
            dir: Working directory
            engine: VersionControlEngine (defaults to a DulwichEngine on dir)
            store: KeyValueStore for config, credentials and stashes
                (defaults to the JSON store of dir)
            worktree: WorkingTree (defaults to one rooted at dir)
            global_config_path: Override for ~/.gitdeskconfig
        """
        self._engine_injected = engine is not None
        self._store_injected = store is not None
        self._worktree_injected = worktree is not None
        self._global_config_path = global_config_path
        self._bind(Path(dir), engine, store, worktree)

    def _bind(self, dir: Path, engine=None, store=None, worktree=None) -> None:
        self.dir = dir.resolve()
        self.store = store if store is not None else JsonFileStore.for_workdir(self.dir)
        self.config = Config(self.store, self._global_config_path)
        if engine is None:
            from gitdesk.engine.dulwich_engine import DulwichEngine
            engine = DulwichEngine(self.dir, line_endings=self.config.autocrlf)
        self.engine = engine
        self.worktree = worktree if worktree is not None else WorkingTree(self.dir)
        self.credentials = CredentialStore(self.store)
        self.stashes = StashStore(self.engine, self.worktree, self.store)
        self.merger = MergeCoordinator(self.engine, self.status)
        self.differ = DiffEngine()

    def _rebind(self, dir: Path) -> None:
        """Point the facade at another working directory, keeping injected parts."""
        self._bind(
            dir,
            self.engine if self._engine_injected else None,
            self.store if self._store_injected else None,
            self.worktree if self._worktree_injected else None,
        )

    def _auth(self, credentials: Optional[Auth], remote: Optional[str] = None,
              url: Optional[str] = None) -> Optional[Auth]:
        if credentials is not None:
            return credentials
        if url is None and remote is not None:
            for info in self.list_remotes():
                if info.name == remote:
                    url = info.url
                    break
        stored = self.credentials.resolve(url)
        if stored is None:
            return None
        return Auth(stored.username, stored.secret)

    # ---- lifecycle ----
    def init(self, default_branch: Optional[str] = None) -> None:
        branch = default_branch or self.config.default_branch
        self.engine.init(default_branch=branch)
        logger.info("Initialized repository in %s (branch %s)", self.dir, branch)

    def clone(self, url: str, dir: Optional[Union[str, Path]] = None,
              branch: Optional[str] = None, depth: Optional[int] = 1,
              credentials: Optional[Auth] = None,
              on_progress: Optional[ProgressHandler] = None) -> None:
        """
        Clone a remote repository into the working directory.

        Whatever the target directory contained before is removed first.

        Args:
            url: Remote URL or path
            dir: Target directory; when given the facade is rebound to it
            branch: Branch to check out (default: the remote HEAD)
            depth: History depth (None for full history)
            credentials: Explicit credentials (default: resolved from the store)
            on_progress: Called with GitProgress updates
        """
        _require(url, "Clone URL")
        if dir is not None and Path(dir).resolve() != self.dir:
            self._rebind(Path(dir))
        self.worktree.clear()
        self.engine.clone(url, ref=branch, depth=depth, progress=on_progress,
                          auth=self._auth(credentials, url=url))
        logger.info("Cloned %s into %s", url, self.dir)

    def is_repository(self) -> bool:
        try:
            return self.engine.is_repository()
        except Exception as e:
            logger.warning("Repository check failed for %s: %s", self.dir, e)
            return False

    def get_repository_info(self) -> RepositoryInfo:
        if not self.is_repository():
            return RepositoryInfo(dir=str(self.dir), is_initialized=False)
        return RepositoryInfo(
            dir=str(self.dir),
            is_initialized=True,
            current_branch=self.get_current_branch(),
            remotes=self.list_remotes(),
            has_uncommitted_changes=bool(self.status()),
        )

    # ---- configuration ----
    def set_config(self, values: Dict[str, str]) -> None:
        """Set dotted configuration keys, e.g. {'user.name': 'Ada'}."""
        self.config.update(values)
        if hasattr(self.engine, 'line_endings'):
            self.engine.line_endings = self.config.autocrlf

    def get_config(self) -> Dict[str, str]:
        return self.config.as_flat_dict()

    def get_author(self) -> Signature:
        name, email = self.config.get_user_identity()
        return Signature(name=name, email=email)

    # ---- credentials ----
    def set_credentials(self, remote: str, credential: Auth) -> Credential:
        _require(remote, "Credential key")
        return self.credentials.set(remote, credential.username, credential.password)

    def get_credentials(self, remote: str) -> Optional[Credential]:
        return self.credentials.get(remote)

    def remove_credentials(self, remote: str) -> bool:
        return self.credentials.remove(remote)

    def resolve_credentials(self, url: Optional[str]) -> Optional[Credential]:
        return self.credentials.resolve(url)

    # ---- staging ----
    def status(self) -> List[FileStatusEntry]:
        try:
            return classify_all(self.engine.status_matrix())
        except Exception as e:
            logger.warning("Could not read status of %s: %s", self.dir, e)
            return []

    def add(self, path: str) -> None:
        self.engine.add(_require(path, "Path"))

    def add_all(self) -> None:
        """Stage every change; deleted paths are removed from the index."""
        for entry in self.status():
            if entry.category is Category.DELETED:
                if not entry.staged:
                    self.engine.remove(entry.path)
            elif self.worktree.exists(entry.path):
                self.engine.add(entry.path)
            else:
                self.engine.remove(entry.path)

    def unstage(self, path: str) -> None:
        self.engine.reset_index(_require(path, "Path"))

    def unstage_all(self) -> None:
        for entry in self.status():
            if entry.staged:
                self.engine.reset_index(entry.path)

    def remove(self, path: str) -> None:
        self.engine.remove(_require(path, "Path"))

    # ---- history ----
    def commit(self, message: str, author: Optional[Signature] = None) -> str:
        """
        Commit the index.

        Args:
            message: Commit message
            author: Commit author (default: configured user)

        Returns:
            New commit id
        """
        _require(message, "Commit message")
        oid = self.engine.commit(message, author or self.get_author())
        logger.info("Committed %s - %s", oid[:7], message.split('\n', 1)[0])
        return oid

    def log(self, ref: Optional[str] = None, depth: Optional[int] = 50) -> List[CommitInfo]:
        try:
            return self.engine.log(ref=ref, depth=depth)
        except Exception as e:
            logger.warning("Could not read log of %s: %s", ref or 'HEAD', e)
            return []

    def get_commit(self, oid: str) -> Optional[CommitInfo]:
        try:
            return self.engine.read_commit(oid)
        except Exception as e:
            logger.warning("Could not read commit %s: %s", oid, e)
            return None

    # ---- branches ----
    def get_current_branch(self) -> Optional[str]:
        return self.engine.current_branch()

    def list_branches(self, remote: Optional[str] = None) -> List[BranchInfo]:
        """
        List local branches, or the remote-tracking branches of ``remote``.

        Local branches carry the current flag; every branch carries the
        short id of its tip.
        """
        try:
            names = self.engine.list_branches(remote=remote)
            current = None if remote else self.engine.current_branch()
            branches = []
            for name in names:
                ref = f"{remote}/{name}" if remote else name
                branches.append(BranchInfo(
                    name=name,
                    current=name == current,
                    remote=remote,
                    last_commit=self.engine.resolve_ref(ref)[:7],
                ))
            return branches
        except Exception as e:
            logger.warning("Could not list branches: %s", e)
            return []

    def create_branch(self, name: str, ref: Optional[str] = None, checkout: bool = False) -> None:
        self.engine.create_branch(_require(name, "Branch name"), ref=ref)
        if checkout:
            self.engine.checkout(name)

    def delete_branch(self, name: str) -> None:
        self.engine.delete_branch(_require(name, "Branch name"))

    def rename_branch(self, old_name: str, new_name: str) -> None:
        self.engine.rename_branch(_require(old_name, "Branch name"),
                                  _require(new_name, "Branch name"))

    def checkout(self, ref: str, force: bool = False, track: bool = True) -> None:
        self.engine.checkout(_require(ref, "Ref"), force=force, track=track)

    # ---- remotes ----
    def list_remotes(self) -> List[RemoteInfo]:
        try:
            return self.engine.list_remotes()
        except Exception as e:
            logger.warning("Could not list remotes: %s", e)
            return []

    def add_remote(self, name: str, url: str) -> None:
        self.engine.add_remote(_require(name, "Remote name"), _require(url, "Remote URL"))

    def remove_remote(self, name: str) -> None:
        self.engine.delete_remote(_require(name, "Remote name"))

    # ---- network ----
    def fetch(self, remote: str = 'origin', ref: Optional[str] = None,
              credentials: Optional[Auth] = None,
              on_progress: Optional[ProgressHandler] = None,
              depth: Optional[int] = None) -> None:
        self.engine.fetch(remote, ref=ref, depth=depth,
                          auth=self._auth(credentials, remote=remote), progress=on_progress)

    def pull(self, remote: str = 'origin', ref: Optional[str] = None,
             credentials: Optional[Auth] = None,
             on_progress: Optional[ProgressHandler] = None) -> None:
        self.engine.pull(remote, ref=ref, auth=self._auth(credentials, remote=remote),
                         progress=on_progress, author=self.get_author())

    def push(self, remote: str = 'origin', ref: Optional[str] = None, force: bool = False,
             credentials: Optional[Auth] = None,
             on_progress: Optional[ProgressHandler] = None) -> None:
        self.engine.push(remote, ref=ref, force=force,
                         auth=self._auth(credentials, remote=remote), progress=on_progress)

    # ---- merge ----
    def merge(self, theirs: str, message: Optional[str] = None,
              author: Optional[Signature] = None) -> MergeOutcome:
        return self.merger.merge(_require(theirs, "Branch to merge"), message=message,
                                 author=author or self.get_author())

    def abort_merge(self) -> None:
        self.merger.abort_merge()

    def get_merge_message(self) -> Optional[str]:
        """Prepared commit message of the merge in progress, or None."""
        return self.engine.merge_message()

    # ---- stash ----
    def stash(self, message: Optional[str] = None) -> StashEntry:
        return self.stashes.stash(message)

    def stash_pop(self, ref: Optional[StashRef] = None) -> StashEntry:
        return self.stashes.stash_pop(ref)

    def stash_drop(self, ref: StashRef) -> StashEntry:
        return self.stashes.stash_drop(ref)

    def stash_list(self) -> List[StashEntry]:
        return self.stashes.stash_list()

    def stash_show(self, ref: Optional[StashRef] = None) -> List[str]:
        return self.stashes.stash_show(ref)

    def stash_clear(self) -> int:
        return self.stashes.stash_clear()

    def recover_stashes(self) -> List[StashEntry]:
        return self.stashes.recover()

    # ---- diff ----
    def _read_committed(self, ref: str, path: str) -> Optional[str]:
        try:
            return decode(self.engine.read_blob(ref, path))
        except NotFoundError:
            return None

    def _read_working(self, path: str) -> Optional[str]:
        if not self.worktree.exists(path):
            return None
        return self.worktree.read_text(path)

    def diff(self, path: Optional[str] = None, commit_a: Optional[str] = None,
             commit_b: Optional[str] = None) -> List[DiffResult]:
        """
        Diff files between two commits or a commit and the working tree.

        Args:
            path: Single path to diff (default: every path in status)
            commit_a: Old side (default: HEAD)
            commit_b: New side (default: the working tree)

        Returns:
            DiffResult per path; paths that fail to diff are skipped
        """
        paths = [path] if path else [entry.path for entry in self.status()]
        results = []
        for item in paths:
            try:
                old = self._read_committed(commit_a or 'HEAD', item)
                if commit_b:
                    new = self._read_committed(commit_b, item)
                else:
                    new = self._read_working(item)
            except (GitdeskError, OSError) as e:
                logger.warning("Could not diff %s: %s", item, e)
                continue
            if old is None and new is None:
                continue
            results.append(self.differ.diff(old, new, item))
        return results

    # ---- tags ----
    def list_tags(self) -> List[TagInfo]:
        try:
            return self.engine.list_tags()
        except Exception as e:
            logger.warning("Could not list tags: %s", e)
            return []

    def create_tag(self, name: str, ref: Optional[str] = None,
                   message: Optional[str] = None) -> None:
        self.engine.tag(_require(name, "Tag name"), ref=ref, message=message,
                        tagger=self.get_author())

    def delete_tag(self, name: str) -> None:
        self.engine.delete_tag(_require(name, "Tag name"))

    # ---- reset ----
    def reset(self, ref: Optional[str] = None, hard: bool = False) -> None:
        """
        Reset the repository.

        A hard reset force-checks-out ``ref`` (default HEAD), discarding
        local changes; a soft reset only resets the whole index to HEAD.
        """
        if hard:
            self.engine.checkout(ref or 'HEAD', force=True)
        else:
            self.engine.reset_index('.')

    # ---- files ----
    def read_file(self, path: str, ref: Optional[str] = None) -> str:
        if ref:
            return decode(self.engine.read_blob(ref, path))
        return self.worktree.read_text(path)

    def write_file(self, path: str, content: Union[str, bytes]) -> None:
        if isinstance(content, bytes):
            self.worktree.write_file(path, content)
        else:
            self.worktree.write_text(path, content)

    def delete_file(self, path: str) -> None:
        self.worktree.unlink(path)
        self.worktree.prune_empty_dirs(path)

    def list_files(self, dirpath: Optional[str] = None) -> List[str]:
        try:
            return [name for name in self.worktree.readdir(dirpath or '') if name != '.git']
        except (GitdeskError, OSError) as e:
            logger.warning("Could not list %s: %s", dirpath or self.dir, e)
            return []

    def __repr__(self) -> str:
        return f"RepositoryFacade(dir={self.dir})"
