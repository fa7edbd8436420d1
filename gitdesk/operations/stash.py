"""Stash: park working-tree changes in a durable archive."""

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

from gitdesk.core.errors import NoChangesError, NotFoundError, StorageError
from gitdesk.core.status import Category, classify_all

logger = logging.getLogger(__name__)

StashRef = Union[int, str]


@dataclass
class StashEntry:
    """
    Represents a single stash entry.

    ``archive_id`` is the stable identity of the entry. ``index`` is the
    list position the entry had when it was created; positions of later
    entries shift when an earlier one is popped or dropped, so ``index``
    is kept for display only.
    """
    index: int
    message: str
    archive_id: str
    timestamp: int
    source_branch: str
    complete: bool = True

    def __repr__(self) -> str:
        return f"StashEntry({self.archive_id[:8]}, {self.message[:40]})"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StashEntry':
        return cls(**data)


class StashStore:
    """
    Manages the stash list of a repository.

    An archive maps each changed path to its full working-tree text, or
    to None for a path that was deleted. Archives live in the key-value
    store under ``stash/<archive_id>``; the entry list lives under
    ``stash``.

    The entry is persisted before the working tree is reset and marked
    complete afterwards, so a crash in between leaves an incomplete entry
    whose archive ``recover()`` can still restore.
    """

    STORE_KEY = 'stash'
    ARCHIVE_PREFIX = 'stash/'

    def __init__(self, engine, worktree, store):
        """
        Initialize stash store.

        Args:
            engine: VersionControlEngine of the repository
            worktree: WorkingTree the archive is captured from
            store: KeyValueStore holding entries and archives
        """
        self.engine = engine
        self.worktree = worktree
        self.store = store

    def _archive_key(self, archive_id: str) -> str:
        return f"{self.ARCHIVE_PREFIX}{archive_id}"

    def _load(self) -> List[StashEntry]:
        data = self.store.get(self.STORE_KEY, [])
        try:
            return [StashEntry.from_dict(item) for item in data]
        except (TypeError, KeyError) as e:
            raise StorageError(f"Stash list is corrupt: {e}") from e

    def _save(self, stashes: List[StashEntry]) -> None:
        self.store.set(self.STORE_KEY, [entry.to_dict() for entry in stashes])

    def _locate(self, stashes: List[StashEntry], ref: Optional[StashRef]) -> int:
        """Find the list position of a stash given a position or archive id."""
        if not stashes:
            raise NotFoundError("No stash entries found")
        if ref is None:
            return len(stashes) - 1
        if isinstance(ref, int):
            if 0 <= ref < len(stashes):
                return ref
            raise NotFoundError(f"stash@{{{ref}}} does not exist")
        for position, entry in enumerate(stashes):
            if entry.archive_id == ref:
                return position
        raise NotFoundError(f"No stash entry with id '{ref}'")

    def _load_archive(self, entry: StashEntry) -> Dict[str, Optional[str]]:
        archive = self.store.get(self._archive_key(entry.archive_id))
        if archive is None:
            raise NotFoundError(f"Archive of stash '{entry.archive_id}' is missing")
        return archive

    def stash(self, message: Optional[str] = None) -> StashEntry:
        """
        Save working-tree changes and reset the tree to HEAD.

        Args:
            message: Optional stash message (default 'WIP on <branch>')

        Returns:
            The new StashEntry

        Raises:
            NoChangesError: If there is nothing to stash
        """
        changes = classify_all(self.engine.status_matrix())
        if not changes:
            raise NoChangesError()
        # Resetting needs a commit to reset to
        self.engine.resolve_ref('HEAD')

        archive: Dict[str, Optional[str]] = {}
        for change in changes:
            try:
                archive[change.path] = self.worktree.read_text(change.path)
            except FileNotFoundError:
                archive[change.path] = None
            except OSError as e:
                logger.warning("Could not read %s for stash: %s", change.path, e)

        branch = self.engine.current_branch() or 'unknown'
        stashes = self._load()
        entry = StashEntry(
            index=len(stashes),
            message=message or f"WIP on {branch}",
            archive_id=uuid.uuid4().hex,
            timestamp=int(time.time()),
            source_branch=branch,
            complete=False,
        )

        self.store.set(self._archive_key(entry.archive_id), archive)
        stashes.append(entry)
        self._save(stashes)

        self.engine.checkout(force=True)

        # Untracked files are not touched by the reset
        for change in changes:
            if change.category is Category.UNTRACKED and archive.get(change.path) is not None:
                if self.worktree.exists(change.path):
                    self.worktree.unlink(change.path)
                    self.worktree.prune_empty_dirs(change.path)

        entry.complete = True
        self._save(stashes)
        logger.info("Saved %d path(s) to stash %s", len(archive), entry.archive_id)
        return entry

    def stash_pop(self, ref: Optional[StashRef] = None) -> StashEntry:
        """
        Restore a stash and remove it from the list.

        Args:
            ref: List position or archive id (default: the latest entry)

        Returns:
            The removed StashEntry
        """
        stashes = self._load()
        position = self._locate(stashes, ref)
        entry = stashes[position]
        archive = self._load_archive(entry)

        for path, text in sorted(archive.items()):
            if text is None:
                if self.worktree.exists(path):
                    self.worktree.unlink(path)
                    self.worktree.prune_empty_dirs(path)
            else:
                self.worktree.write_text(path, text)

        self.store.delete(self._archive_key(entry.archive_id))
        del stashes[position]
        self._save(stashes)
        logger.info("Restored stash %s (%d path(s))", entry.archive_id, len(archive))
        return entry

    def stash_drop(self, ref: StashRef) -> StashEntry:
        stashes = self._load()
        position = self._locate(stashes, ref)
        entry = stashes.pop(position)
        self.store.delete(self._archive_key(entry.archive_id))
        self._save(stashes)
        return entry

    def stash_list(self) -> List[StashEntry]:
        return self._load()

    def stash_show(self, ref: Optional[StashRef] = None) -> List[str]:
        """Paths captured by a stash entry."""
        stashes = self._load()
        entry = stashes[self._locate(stashes, ref)]
        return sorted(self._load_archive(entry))

    def stash_clear(self) -> int:
        """Drop every entry; returns how many were dropped."""
        stashes = self._load()
        for entry in stashes:
            self.store.delete(self._archive_key(entry.archive_id))
        self._save([])
        return len(stashes)

    def recover(self) -> List[StashEntry]:
        """
        Finish entries left incomplete by an interrupted stash.

        Their archives are kept so the changes can still be popped.

        Returns:
            Entries that were marked complete
        """
        stashes = self._load()
        recovered = [entry for entry in stashes if not entry.complete]
        for entry in recovered:
            logger.warning("Recovered interrupted stash %s", entry.archive_id)
            entry.complete = True
        if recovered:
            self._save(stashes)
        return recovered
