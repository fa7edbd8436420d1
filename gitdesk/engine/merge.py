"""Merge primitive for the dulwich engine.

Finds merge bases, decides between already-merged / fast-forward /
three-way, merges trees path by path and records conflicts. Content of a
path changed differently on both sides is never merged line by line: the
path is reported as a conflict and the working tree gets conflict markers.
"""

import logging
import stat
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from dulwich.objects import Commit, Tag, Tree

logger = logging.getLogger(__name__)

S_IFGITLINK = 0o160000

# path -> (mode, blob sha)
TreeFiles = Dict[str, Tuple[int, bytes]]


def decode_path(path: bytes) -> str:
    return path.decode('utf-8', 'surrogateescape')


def encode_path(path: str) -> bytes:
    return path.encode('utf-8', 'surrogateescape')


@dataclass
class MergeConflict:
    """A path changed differently on both sides of a merge."""
    path: str
    base_content: Optional[bytes]
    ours_content: Optional[bytes]
    theirs_content: Optional[bytes]

    def __repr__(self) -> str:
        return f"MergeConflict({self.path})"


class TreeMerger:
    """
    History and tree helpers over a dulwich repository.

    Commit ids are hex ``bytes`` as dulwich uses them.
    """

    def __init__(self, repo):
        self.repo = repo

    def peel(self, sha: bytes) -> bytes:
        """Follow annotated tags down to the object they point at."""
        obj = self.repo[sha]
        while isinstance(obj, Tag):
            sha = obj.object[1]
            obj = self.repo[sha]
        return sha

    def ancestors(self, commit_id: bytes) -> Set[bytes]:
        """
        Get all ancestors of a commit.

        Args:
            commit_id: Starting commit id

        Returns:
            Set of ancestor ids (including the commit itself)
        """
        seen: Set[bytes] = set()
        queue = deque([commit_id])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            try:
                commit = self.repo[current]
            except KeyError:
                # Shallow clones stop at a missing parent
                continue
            if isinstance(commit, Commit):
                queue.extend(p for p in commit.parents if p not in seen)
        return seen

    def distance(self, start: bytes, target: bytes) -> float:
        """Number of parent hops from start to target (inf if unreachable)."""
        queue = deque([(start, 0)])
        seen: Set[bytes] = set()
        while queue:
            current, hops = queue.popleft()
            if current == target:
                return hops
            if current in seen:
                continue
            seen.add(current)
            try:
                commit = self.repo[current]
            except KeyError:
                continue
            if isinstance(commit, Commit):
                queue.extend((p, hops + 1) for p in commit.parents)
        return float('inf')

    def is_ancestor(self, ancestor: bytes, descendant: bytes) -> bool:
        return ancestor in self.ancestors(descendant)

    def find_merge_base(self, ours: bytes, theirs: bytes) -> Optional[bytes]:
        """
        Find the common ancestor closest to both commits.

        Args:
            ours: First commit id
            theirs: Second commit id

        Returns:
            Merge base id, or None when the histories are unrelated
        """
        if ours == theirs:
            return ours
        common = self.ancestors(ours) & self.ancestors(theirs)
        if not common:
            return None
        return min(
            sorted(common),
            key=lambda c: self.distance(ours, c) + self.distance(theirs, c),
        )

    def commit_tree(self, commit_id: Optional[bytes]) -> Optional[bytes]:
        if commit_id is None:
            return None
        commit = self.repo[self.peel(commit_id)]
        return commit.tree if isinstance(commit, Commit) else None

    def tree_files(self, tree_id: Optional[bytes], prefix: str = '') -> TreeFiles:
        """
        Flatten a tree into {path: (mode, sha)}.

        Submodule entries are skipped.
        """
        files: TreeFiles = {}
        if tree_id is None:
            return files
        tree = self.repo[tree_id]
        if not isinstance(tree, Tree):
            return files
        for entry in tree.items():
            name = decode_path(entry.path)
            path = f"{prefix}/{name}" if prefix else name
            if stat.S_ISDIR(entry.mode):
                files.update(self.tree_files(entry.sha, path))
            elif entry.mode != S_IFGITLINK:
                files[path] = (entry.mode, entry.sha)
        return files

    def blob_data(self, sha: Optional[bytes]) -> Optional[bytes]:
        if sha is None:
            return None
        return self.repo[sha].data

    def merge_trees(
        self,
        base_files: TreeFiles,
        ours_files: TreeFiles,
        theirs_files: TreeFiles,
    ) -> Tuple[TreeFiles, List[MergeConflict]]:
        """
        Merge flattened trees using three-way rules per path.

        - same on both sides: keep it (or keep it deleted)
        - changed on one side only: take that side
        - changed differently on both sides: conflict

        Returns:
            Tuple of (merged files, conflicts). Conflicted paths are absent
            from the merged files.
        """
        merged: TreeFiles = {}
        conflicts: List[MergeConflict] = []

        for path in sorted(set(base_files) | set(ours_files) | set(theirs_files)):
            base = base_files.get(path)
            ours = ours_files.get(path)
            theirs = theirs_files.get(path)

            if ours == theirs:
                if ours is not None:
                    merged[path] = ours
                continue
            if base == theirs:
                if ours is not None:
                    merged[path] = ours
                continue
            if base == ours:
                if theirs is not None:
                    merged[path] = theirs
                continue

            conflicts.append(MergeConflict(
                path=path,
                base_content=self.blob_data(base[1]) if base else None,
                ours_content=self.blob_data(ours[1]) if ours else None,
                theirs_content=self.blob_data(theirs[1]) if theirs else None,
            ))

        return merged, conflicts


def conflict_markers(conflict: MergeConflict, theirs_label: str) -> bytes:
    """
    Render a conflicted path with standard conflict markers.

    Args:
        conflict: The conflict to render
        theirs_label: Name shown after '>>>>>>>' (usually the merged ref)

    Returns:
        File content with conflict markers
    """
    parts = [b"<<<<<<< HEAD\n"]
    parts.extend(_marker_side(conflict.ours_content))
    parts.append(b"=======\n")
    parts.extend(_marker_side(conflict.theirs_content))
    parts.append(f">>>>>>> {theirs_label}\n".encode('utf-8'))
    return b''.join(parts)


def _marker_side(content: Optional[bytes]) -> List[bytes]:
    # A deleted side renders as an empty block
    if not content:
        return []
    if content.endswith(b"\n"):
        return [content]
    return [content, b"\n"]


class MergeState:
    """
    Merge-in-progress bookkeeping in the git directory.

    Uses the same files as git: MERGE_HEAD holds the commit being merged,
    MERGE_MODE marks a merge, MERGE_MSG holds the prepared message with a
    '# Conflicts:' section listing unresolved paths.
    """

    def __init__(self, git_dir):
        self.git_dir = Path(git_dir)
        self.merge_head_file = self.git_dir / 'MERGE_HEAD'
        self.merge_mode_file = self.git_dir / 'MERGE_MODE'
        self.merge_msg_file = self.git_dir / 'MERGE_MSG'

    def save(self, theirs: bytes, message: str, conflicts: List[MergeConflict]) -> None:
        self.merge_head_file.write_text(theirs.decode('ascii') + '\n')
        self.merge_mode_file.write_text('')
        lines = [message, '', '# Conflicts:']
        lines.extend(f"#\t{conflict.path}" for conflict in conflicts)
        self.merge_msg_file.write_text('\n'.join(lines) + '\n', encoding='utf-8')

    def clear(self) -> None:
        for path in (self.merge_head_file, self.merge_mode_file, self.merge_msg_file):
            if path.exists():
                path.unlink()

    def in_progress(self) -> bool:
        return self.merge_head_file.exists()

    def merge_head(self) -> Optional[bytes]:
        if not self.in_progress():
            return None
        return self.merge_head_file.read_text().strip().encode('ascii')

    def message(self) -> Optional[str]:
        """Prepared merge message without the conflict section."""
        if not self.merge_msg_file.exists():
            return None
        text = self.merge_msg_file.read_text(encoding='utf-8')
        kept = [line for line in text.splitlines() if not line.startswith('#')]
        return '\n'.join(kept).strip() or None

    def conflicted_paths(self) -> List[str]:
        if not self.in_progress() or not self.merge_msg_file.exists():
            return []
        paths = []
        for line in self.merge_msg_file.read_text(encoding='utf-8').splitlines():
            if line.startswith('#\t'):
                paths.append(line[2:])
        return paths

    def resolve(self, path: str) -> None:
        """Drop a path from the conflict list (it was staged after fixing)."""
        if not self.merge_msg_file.exists():
            return
        lines = self.merge_msg_file.read_text(encoding='utf-8').splitlines()
        kept = [line for line in lines if line != f"#\t{path}"]
        self.merge_msg_file.write_text('\n'.join(kept) + '\n', encoding='utf-8')
