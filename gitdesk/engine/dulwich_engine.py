"""Version-control engine backed by dulwich.

dulwich is a pure-Python git implementation, so no git binary is needed.
Object storage, packfiles and the network protocols are dulwich's; this
module maps the engine interface onto dulwich repositories and adds the
pieces dulwich's porcelain does not offer in the shape gitdesk needs (the
status matrix, forced checkout, the merge primitive).
"""

import logging
import os
import re
import shutil
import stat
import time
from pathlib import Path
from typing import Dict, List, Optional, Set

from dulwich import porcelain
from dulwich.errors import NotGitRepository, NotTreeError
from dulwich.index import commit_tree, index_entry_from_stat
from dulwich.objects import Blob, Commit, Tag
from dulwich.refs import check_ref_format
from dulwich.repo import Repo

from gitdesk.core.errors import (
    EngineError,
    MergeConflictError,
    NotFoundError,
    ValidationError,
)
from gitdesk.core.status import Slot, StatusSignal
from gitdesk.engine.base import (
    Auth,
    CommitInfo,
    MergeReport,
    RemoteInfo,
    Signature,
    TagInfo,
    VersionControlEngine,
)
from gitdesk.engine.merge import (
    MergeState,
    TreeFiles,
    TreeMerger,
    conflict_markers,
    decode_path,
    encode_path,
)
from gitdesk.engine.progress import ProgressStream
from gitdesk.utils.ignore import load_repository_ignores

logger = logging.getLogger(__name__)

HEAD = b'HEAD'
BRANCH_PREFIX = b'refs/heads/'
TAG_PREFIX = b'refs/tags/'
REMOTE_PREFIX = b'refs/remotes/'

_IDENTITY = re.compile(rb'^(?P<name>.*?)\s*<(?P<email>[^>]*)>')
_HEX_SHA = re.compile(r'^[0-9a-f]{40}$')
_ABBREV_SHA = re.compile(r'^[0-9a-f]{4,39}$')
_NETWORK_URL = re.compile(r'^(?:https?|git|ssh)://|^[\w.-]+@[\w.-]+:')

BINARY_SNIFF_BYTES = 8000


def _parse_identity(raw: bytes, when: int, tz: int) -> Signature:
    match = _IDENTITY.match(raw)
    if match:
        name, email = match.group('name'), match.group('email')
    else:
        name, email = raw, b''
    return Signature(
        name=name.decode('utf-8', 'replace'),
        email=email.decode('utf-8', 'replace'),
        timestamp=when,
        timezone_offset=tz // 60,
    )


def _commit_info(commit: Commit) -> CommitInfo:
    return CommitInfo(
        oid=commit.id.decode('ascii'),
        message=commit.message.decode('utf-8', 'replace'),
        author=_parse_identity(commit.author, commit.author_time, commit.author_timezone),
        committer=_parse_identity(commit.committer, commit.commit_time, commit.commit_timezone),
        parents=[p.decode('ascii') for p in commit.parents],
        tree=commit.tree.decode('ascii'),
    )


def _is_network_url(url: str) -> bool:
    return bool(_NETWORK_URL.match(url))


class DulwichEngine(VersionControlEngine):
    """
    Engine bound to one working directory.

    A dulwich ``Repo`` is opened per operation and closed afterwards, so
    the engine holds no file handles between calls.
    """

    def __init__(self, workdir, line_endings: str = 'false'):
        """
        Initialize engine.

        Args:
            workdir: Working directory of the repository
            line_endings: core.autocrlf policy ('true', 'false', 'input');
                anything but 'false' makes status compare files with CRLF
                normalised to LF
        """
        self.root = Path(workdir).resolve()
        self.line_endings = line_endings

    # ---- helpers ----
    def _open(self) -> Repo:
        try:
            return Repo(str(self.root))
        except NotGitRepository as e:
            raise EngineError(f"Not a git repository: {self.root}") from e

    def _full(self, path: str) -> Path:
        return self.root / path

    def _rel(self, path: str) -> str:
        rel = Path(path.replace('\\', '/')).as_posix()
        if rel.startswith('./'):
            rel = rel[2:]
        return rel.strip('/')

    @staticmethod
    def _head_id(repo: Repo) -> Optional[bytes]:
        try:
            return repo.refs[HEAD]
        except KeyError:
            return None

    def _normalize(self, data: bytes) -> bytes:
        if self.line_endings == 'false' or b'\0' in data[:BINARY_SNIFF_BYTES]:
            return data
        return data.replace(b'\r\n', b'\n')

    def _worktree_blob(self, full: Path) -> Blob:
        if full.is_symlink():
            return Blob.from_string(os.fsencode(os.readlink(full)))
        return Blob.from_string(self._normalize(full.read_bytes()))

    def _resolve(self, repo: Repo, ref: str) -> bytes:
        """Resolve a ref, tag, branch or (abbreviated) commit id to a commit id."""
        if not ref or not ref.strip():
            raise ValidationError("Ref must not be empty")
        merger = TreeMerger(repo)
        if ref == 'HEAD':
            head = self._head_id(repo)
            if head is None:
                raise NotFoundError("HEAD does not point to a commit yet")
            return head

        name = ref.encode('utf-8')
        for candidate in (name, b'refs/' + name, TAG_PREFIX + name,
                          BRANCH_PREFIX + name, REMOTE_PREFIX + name,
                          REMOTE_PREFIX + name + b'/HEAD'):
            try:
                return merger.peel(repo.refs[candidate])
            except KeyError:
                continue

        if _HEX_SHA.match(ref) and name in repo.object_store:
            return merger.peel(name)
        if _ABBREV_SHA.match(ref):
            matches = [sha for sha in repo.object_store if sha.startswith(name)]
            if len(matches) == 1:
                return merger.peel(matches[0])
            if len(matches) > 1:
                raise ValidationError(f"Short object id '{ref}' is ambiguous")
        raise NotFoundError(f"Could not resolve ref '{ref}'")

    def _index_files(self, index) -> Dict[str, bytes]:
        files = {}
        for path, entry in index.items():
            sha = getattr(entry, 'sha', None)
            if sha is not None:
                files[decode_path(path)] = sha
        return files

    def _index_conflicts(self, index) -> Set[str]:
        return {decode_path(path) for path, entry in index.items()
                if getattr(entry, 'sha', None) is None}

    def _scan_worktree(self, tracked: Set[str]) -> Set[str]:
        """
        Collect working-tree file paths.

        Ignored paths are skipped unless they are tracked; ignored
        directories are not descended into unless they hold tracked paths.
        """
        matcher = load_repository_ignores(self.root)
        tracked_dirs = set()
        for path in tracked:
            parts = path.split('/')
            for i in range(1, len(parts)):
                tracked_dirs.add('/'.join(parts[:i]))

        found = set()
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            rel_dir = '' if rel_dir == '.' else rel_dir
            kept = []
            for dirname in dirnames:
                rel = f"{rel_dir}/{dirname}" if rel_dir else dirname
                if dirname == '.git':
                    continue
                if matcher.is_ignored(rel, is_dir=True) and rel not in tracked_dirs:
                    continue
                kept.append(dirname)
            dirnames[:] = kept
            for filename in filenames:
                rel = f"{rel_dir}/{filename}" if rel_dir else filename
                if rel in tracked or not matcher.is_ignored(rel):
                    found.add(rel)
            # Symlinked directories are reported as files, never followed
            for dirname in list(dirnames):
                full = Path(dirpath) / dirname
                if full.is_symlink():
                    dirnames.remove(dirname)
                    found.add(f"{rel_dir}/{dirname}" if rel_dir else dirname)
        return found

    def _signals(self, repo: Repo) -> List[StatusSignal]:
        merger = TreeMerger(repo)
        head_files = {path: sha for path, (_mode, sha) in
                      merger.tree_files(merger.commit_tree(self._head_id(repo))).items()}
        index = repo.open_index()
        index_files = self._index_files(index)
        conflicted = self._index_conflicts(index)
        conflicted.update(MergeState(repo.controldir()).conflicted_paths())
        work_files = self._scan_worktree(set(head_files) | set(index_files) | conflicted)

        signals = []
        for path in sorted(set(head_files) | set(index_files) | work_files | conflicted):
            head_sha = head_files.get(path)
            index_sha = index_files.get(path)

            work_sha = None
            if path in work_files:
                try:
                    work_sha = self._worktree_blob(self._full(path)).id
                except OSError as e:
                    logger.debug("Unreadable working-tree file %s: %s", path, e)

            head_slot = Slot.MATCHES if head_sha is not None else Slot.ABSENT
            if work_sha is None:
                work_slot = Slot.ABSENT
            elif work_sha == head_sha:
                work_slot = Slot.MATCHES
            else:
                work_slot = Slot.DIFFERS
            if index_sha is None:
                stage_slot = Slot.ABSENT
            elif index_sha == head_sha:
                stage_slot = Slot.MATCHES
            elif index_sha == work_sha:
                stage_slot = Slot.DIFFERS
            else:
                stage_slot = Slot.DIFFERS_FROM_BOTH

            signals.append(StatusSignal(path, head_slot, work_slot, stage_slot,
                                        conflicted=path in conflicted))
        return signals

    def _write_blob(self, repo: Repo, path: str, mode: int, sha: bytes):
        """Materialise a blob in the working tree and return its index entry."""
        full = self._full(path)
        if full.is_symlink() or full.is_file():
            full.unlink()
        elif full.is_dir():
            shutil.rmtree(full)
        full.parent.mkdir(parents=True, exist_ok=True)

        data = repo[sha].data
        if stat.S_ISLNK(mode):
            os.symlink(os.fsdecode(data), full)
        else:
            full.write_bytes(data)
            if mode & 0o111:
                full.chmod(full.stat().st_mode | 0o111)
        return index_entry_from_stat(os.lstat(full), sha, mode)

    def _remove_worktree_file(self, path: str) -> None:
        full = self._full(path)
        if full.is_symlink() or full.is_file():
            full.unlink()
        parent = full.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def _check_overwrites(self, repo: Repo, current: TreeFiles, target: TreeFiles,
                          operation: str) -> None:
        dirty = {s.path for s in self._signals(repo)
                 if s.triple != (Slot.MATCHES, Slot.MATCHES, Slot.MATCHES)}
        blocked = sorted(p for p in dirty if current.get(p) != target.get(p))
        if blocked:
            raise EngineError(
                f"Your local changes to the following files would be overwritten by "
                f"{operation}: {', '.join(blocked)}"
            )

    def _switch_tree(self, repo: Repo, current: TreeFiles, target: TreeFiles,
                     force: bool) -> None:
        """
        Move the working tree and index from ``current`` to ``target``.

        With force, every tracked path (HEAD or index) is rewritten and the
        index is rebuilt from ``target``. Without force only paths that
        differ between the two trees are touched, keeping local edits to
        other files.
        """
        index = repo.open_index()
        index_paths = set(self._index_files(index)) | self._index_conflicts(index)
        tracked = set(current) | index_paths if force else set(current)

        for path in sorted(tracked - set(target)):
            self._remove_worktree_file(path)
            key = encode_path(path)
            if key in index:
                del index[key]

        for path, (mode, sha) in sorted(target.items()):
            if not force and current.get(path) == (mode, sha):
                continue
            index[encode_path(path)] = self._write_blob(repo, path, mode, sha)

        index.write()

    def _make_commit(self, repo: Repo, tree_id: bytes, parents: List[bytes],
                     message: str, author: Signature) -> Commit:
        identity = f"{author.name} <{author.email}>".encode('utf-8')
        when = author.timestamp or int(time.time())
        commit = Commit()
        commit.tree = tree_id
        commit.parents = parents
        commit.author = commit.committer = identity
        commit.author_time = commit.commit_time = when
        commit.author_timezone = commit.commit_timezone = author.timezone_offset * 60
        commit.encoding = b'UTF-8'
        commit.message = message.encode('utf-8')
        repo.object_store.add_object(commit)
        return commit

    def _advance_head(self, repo: Repo, sha: bytes) -> None:
        # Follows HEAD to the checked-out branch, or moves a detached HEAD
        repo.refs[HEAD] = sha

    def _detach_head(self, repo: Repo, sha: bytes) -> None:
        Path(repo.controldir(), 'HEAD').write_text(sha.decode('ascii') + '\n')

    def _remote_url(self, repo: Repo, remote: str) -> Optional[str]:
        config = repo.get_config()
        try:
            return config.get((b'remote', remote.encode('utf-8')), b'url').decode('utf-8')
        except KeyError:
            return None

    def _auth_kwargs(self, url: Optional[str], auth: Optional[Auth]) -> dict:
        # Only HTTP transports accept credentials
        if auth is None or not url or not url.startswith(('http://', 'https://')):
            return {}
        kwargs = {'username': auth.username}
        if auth.password is not None:
            kwargs['password'] = auth.password
        return kwargs

    @staticmethod
    def _check_branch_name(name: str) -> bytes:
        if not name or not name.strip():
            raise ValidationError("Branch name must not be empty")
        ref = BRANCH_PREFIX + name.encode('utf-8')
        if not check_ref_format(ref):
            raise ValidationError(f"'{name}' is not a valid branch name")
        return ref

    # ---- repository lifecycle ----
    def init(self, default_branch: str = 'main') -> None:
        head_ref = self._check_branch_name(default_branch)
        self.root.mkdir(parents=True, exist_ok=True)
        if (self.root / '.git').exists():
            logger.info("Reinitialising existing repository in %s", self.root)
            return
        repo = Repo.init(str(self.root))
        try:
            repo.refs.set_symbolic_ref(HEAD, head_ref)
        finally:
            repo.close()

    def is_repository(self) -> bool:
        try:
            Repo(str(self.root)).close()
        except NotGitRepository:
            return False
        return True

    def clone(self, url, ref=None, depth=None, progress=None, auth=None):
        stream = ProgressStream(progress)
        kwargs = self._auth_kwargs(url, auth)
        if depth and not _is_network_url(url):
            logger.debug("Shallow clone not supported for local source %s; cloning fully", url)
            depth = None
        try:
            repo = porcelain.clone(
                url,
                str(self.root),
                checkout=True,
                depth=depth,
                branch=ref,
                errstream=stream,
                **kwargs,
            )
        except NotGitRepository as e:
            raise NotFoundError(f"Repository '{url}' not found") from e
        stream.flush()
        repo.close()

    # ---- status & staging ----
    def status_matrix(self) -> List[StatusSignal]:
        with self._open() as repo:
            return self._signals(repo)

    def add(self, path: str) -> None:
        rel = self._rel(path)
        full = self._full(rel) if rel else self.root
        if not full.exists() and not full.is_symlink():
            raise NotFoundError(f"Could not find '{path}' in the working tree")

        with self._open() as repo:
            if full.is_dir() and not full.is_symlink():
                index_files = self._index_files(repo.open_index())
                prefix = f"{rel}/" if rel else ''
                paths = sorted(p for p in self._scan_worktree(set(index_files))
                               if p.startswith(prefix))
            else:
                paths = [rel]

            index = repo.open_index()
            state = MergeState(repo.controldir())
            for rel_path in paths:
                item = self._full(rel_path)
                blob = self._worktree_blob(item)
                repo.object_store.add_object(blob)
                index[encode_path(rel_path)] = index_entry_from_stat(os.lstat(item), blob.id)
                state.resolve(rel_path)
            index.write()
        logger.debug("Staged %d path(s) for %s", len(paths), path)

    def remove(self, path: str) -> None:
        rel = self._rel(path)
        with self._open() as repo:
            index = repo.open_index()
            key = encode_path(rel)
            if key not in index:
                raise NotFoundError(f"'{path}' is not in the index")
            del index[key]
            index.write()
            MergeState(repo.controldir()).resolve(rel)

    def reset_index(self, path: str) -> None:
        rel = self._rel(path)
        with self._open() as repo:
            merger = TreeMerger(repo)
            head_files = merger.tree_files(merger.commit_tree(self._head_id(repo)))
            index = repo.open_index()

            if rel in ('', '.'):
                paths = set(head_files) | set(self._index_files(index))
            else:
                paths = {rel}

            for item in sorted(paths):
                key = encode_path(item)
                if item not in head_files:
                    if key in index:
                        del index[key]
                    continue
                mode, sha = head_files[item]
                full = self._full(item)
                if full.exists() or full.is_symlink():
                    st = os.lstat(full)
                else:
                    st = os.stat_result((mode, 0, 0, 0, 0, 0, 0, 0, 0, 0))
                index[key] = index_entry_from_stat(st, sha, mode)
            index.write()

    # ---- history ----
    def commit(self, message: str, author: Signature) -> str:
        with self._open() as repo:
            state = MergeState(repo.controldir())
            unresolved = state.conflicted_paths()
            if unresolved:
                raise EngineError(
                    "Committing is not possible because you have unmerged files: "
                    + ', '.join(unresolved)
                )
            tree_id = repo.open_index().commit(repo.object_store)
            head = self._head_id(repo)
            parents = [head] if head is not None else []
            if state.in_progress():
                parents.append(state.merge_head())
            commit = self._make_commit(repo, tree_id, parents, message, author)
            self._advance_head(repo, commit.id)
            state.clear()
            return commit.id.decode('ascii')

    def log(self, ref=None, depth=None) -> List[CommitInfo]:
        with self._open() as repo:
            start = self._resolve(repo, ref or 'HEAD')
            walker = repo.get_walker(include=[start], max_entries=depth)
            return [_commit_info(entry.commit) for entry in walker]

    def read_commit(self, oid: str) -> CommitInfo:
        with self._open() as repo:
            obj = repo[self._resolve(repo, oid)]
            if not isinstance(obj, Commit):
                raise NotFoundError(f"'{oid}' is not a commit")
            return _commit_info(obj)

    def resolve_ref(self, ref: str) -> str:
        with self._open() as repo:
            return self._resolve(repo, ref).decode('ascii')

    def read_blob(self, ref: str, path: str) -> bytes:
        with self._open() as repo:
            merger = TreeMerger(repo)
            tree_id = merger.commit_tree(self._resolve(repo, ref))
            try:
                _mode, sha = repo[tree_id].lookup_path(
                    repo.object_store.__getitem__, encode_path(self._rel(path))
                )
                blob = repo[sha]
            except (KeyError, NotTreeError) as e:
                raise NotFoundError(f"'{path}' does not exist in {ref}") from e
            if not isinstance(blob, Blob):
                raise NotFoundError(f"'{path}' is not a file in {ref}")
            return blob.data

    # ---- branches ----
    def current_branch(self) -> Optional[str]:
        with self._open() as repo:
            head = repo.refs.read_ref(HEAD)
        if head and head.startswith(b'ref: ' + BRANCH_PREFIX):
            return head[len(b'ref: ' + BRANCH_PREFIX):].strip().decode('utf-8')
        return None

    def list_branches(self, remote=None) -> List[str]:
        if remote:
            prefix = REMOTE_PREFIX + remote.encode('utf-8') + b'/'
        else:
            prefix = BRANCH_PREFIX
        with self._open() as repo:
            names = [name[len(prefix):].decode('utf-8')
                     for name in repo.refs.allkeys() if name.startswith(prefix)]
        return sorted(name for name in names if name != 'HEAD')

    def create_branch(self, name: str, ref=None) -> None:
        branch_ref = self._check_branch_name(name)
        with self._open() as repo:
            sha = self._resolve(repo, ref or 'HEAD')
            if not repo.refs.add_if_new(branch_ref, sha):
                raise EngineError(f"A branch named '{name}' already exists")

    def delete_branch(self, name: str) -> None:
        branch_ref = self._check_branch_name(name)
        with self._open() as repo:
            if branch_ref not in repo.refs:
                raise NotFoundError(f"Branch '{name}' not found")
            if repo.refs.read_ref(HEAD) == b'ref: ' + branch_ref:
                raise EngineError(f"Cannot delete branch '{name}' checked out at {self.root}")
            del repo.refs[branch_ref]

    def rename_branch(self, old_name: str, new_name: str) -> None:
        old_ref = self._check_branch_name(old_name)
        new_ref = self._check_branch_name(new_name)
        with self._open() as repo:
            if old_ref not in repo.refs:
                raise NotFoundError(f"Branch '{old_name}' not found")
            if not repo.refs.add_if_new(new_ref, repo.refs[old_ref]):
                raise EngineError(f"A branch named '{new_name}' already exists")
            if repo.refs.read_ref(HEAD) == b'ref: ' + old_ref:
                repo.refs.set_symbolic_ref(HEAD, new_ref)
            del repo.refs[old_ref]

    def _tracking_candidate(self, repo: Repo, name: str) -> Optional[bytes]:
        """Remote-tracking ref for ``name``, preferring 'origin'."""
        suffix = b'/' + name.encode('utf-8')
        candidates = sorted(
            ref for ref in repo.refs.allkeys()
            if ref.startswith(REMOTE_PREFIX) and ref.endswith(suffix)
            and ref.count(b'/') == 3 + name.count('/')
        )
        for ref in candidates:
            if ref == REMOTE_PREFIX + b'origin' + suffix:
                return ref
        return candidates[0] if candidates else None

    def checkout(self, ref=None, force=False, track=True) -> None:
        with self._open() as repo:
            merger = TreeMerger(repo)
            head = self._head_id(repo)
            current = merger.tree_files(merger.commit_tree(head))

            branch_ref = None
            if ref in (None, 'HEAD'):
                target = self._resolve(repo, 'HEAD')
            elif BRANCH_PREFIX + ref.encode('utf-8') in repo.refs:
                branch_ref = BRANCH_PREFIX + ref.encode('utf-8')
                target = repo.refs[branch_ref]
            else:
                tracking = self._tracking_candidate(repo, ref) if track else None
                if tracking is not None:
                    branch_ref = self._check_branch_name(ref)
                    target = repo.refs[tracking]
                    repo.refs.add_if_new(branch_ref, target)
                    remote_name = tracking[len(REMOTE_PREFIX):].split(b'/', 1)[0]
                    config = repo.get_config()
                    section = (b'branch', ref.encode('utf-8'))
                    config.set(section, b'remote', remote_name)
                    config.set(section, b'merge', branch_ref)
                    config.write_to_path()
                    logger.info("Branch '%s' set up to track '%s'", ref, tracking.decode())
                else:
                    target = self._resolve(repo, ref)

            target_files = merger.tree_files(merger.commit_tree(target))
            if not force:
                self._check_overwrites(repo, current, target_files, 'checkout')
            self._switch_tree(repo, current, target_files, force)

            if branch_ref is not None:
                repo.refs.set_symbolic_ref(HEAD, branch_ref)
            elif ref not in (None, 'HEAD'):
                self._detach_head(repo, target)

    # ---- remotes & network ----
    def list_remotes(self) -> List[RemoteInfo]:
        with self._open() as repo:
            config = repo.get_config()
            remotes = []
            for section in config.sections():
                if len(section) == 2 and section[0] == b'remote':
                    try:
                        url = config.get(section, b'url')
                    except KeyError:
                        continue
                    remotes.append(RemoteInfo(section[1].decode('utf-8'), url.decode('utf-8')))
        return remotes

    def add_remote(self, name: str, url: str) -> None:
        if not name or not name.strip() or not url or not url.strip():
            raise ValidationError("Remote name and URL must not be empty")
        with self._open() as repo:
            config = repo.get_config()
            section = (b'remote', name.encode('utf-8'))
            if config.has_section(section):
                raise EngineError(f"Remote '{name}' already exists")
            config.set(section, b'url', url.encode('utf-8'))
            config.set(section, b'fetch',
                       f"+refs/heads/*:refs/remotes/{name}/*".encode('utf-8'))
            config.write_to_path()

    def delete_remote(self, name: str) -> None:
        with self._open() as repo:
            config = repo.get_config()
            section = (b'remote', name.encode('utf-8'))
            if not config.has_section(section):
                raise NotFoundError(f"Remote '{name}' not found")
            del config[section]
            config.write_to_path()
            prefix = REMOTE_PREFIX + name.encode('utf-8') + b'/'
            for ref in [r for r in repo.refs.allkeys() if r.startswith(prefix)]:
                del repo.refs[ref]

    def fetch(self, remote, ref=None, depth=None, auth=None, progress=None) -> None:
        with self._open() as repo:
            url = self._remote_url(repo, remote)
        if url is None:
            raise NotFoundError(f"Remote '{remote}' not found")
        if ref:
            logger.debug("Fetching all branches of %s (requested %s)", remote, ref)
        stream = ProgressStream(progress)
        if depth and not _is_network_url(url):
            depth = None
        porcelain.fetch(str(self.root), remote, errstream=stream, depth=depth,
                        **self._auth_kwargs(url, auth))
        stream.flush()

    def pull(self, remote, ref=None, auth=None, progress=None, author=None) -> None:
        with self._open() as repo:
            url = self._remote_url(repo, remote)
        if url is None:
            raise NotFoundError(f"Remote '{remote}' not found")
        stream = ProgressStream(progress)
        refspecs = [ref.encode('utf-8')] if ref else None
        porcelain.pull(str(self.root), remote, refspecs=refspecs, errstream=stream,
                       **self._auth_kwargs(url, auth))
        stream.flush()

    def push(self, remote, ref=None, force=False, auth=None, progress=None) -> None:
        with self._open() as repo:
            url = self._remote_url(repo, remote)
        if url is None:
            raise NotFoundError(f"Remote '{remote}' not found")
        stream = ProgressStream(progress)
        refspecs = [ref.encode('utf-8')] if ref else None
        porcelain.push(str(self.root), remote, refspecs=refspecs, force=force,
                       errstream=stream, **self._auth_kwargs(url, auth))
        stream.flush()

    # ---- merge ----
    def merge(self, theirs, message=None, author=None) -> MergeReport:
        with self._open() as repo:
            state = MergeState(repo.controldir())
            if state.in_progress():
                raise EngineError("A merge is already in progress; commit or abort it first")

            merger = TreeMerger(repo)
            head = self._head_id(repo)
            if head is None:
                raise NotFoundError("No commits on current branch")
            theirs_id = self._resolve(repo, theirs)

            if theirs_id == head or merger.is_ancestor(theirs_id, head):
                return MergeReport(oid=head.decode('ascii'), already_merged=True)

            current = merger.tree_files(merger.commit_tree(head))
            theirs_files = merger.tree_files(merger.commit_tree(theirs_id))

            if merger.is_ancestor(head, theirs_id):
                self._check_overwrites(repo, current, theirs_files, 'merge')
                self._switch_tree(repo, current, theirs_files, force=False)
                self._advance_head(repo, theirs_id)
                logger.info("Fast-forward to %s", theirs_id[:7].decode())
                return MergeReport(oid=theirs_id.decode('ascii'), fast_forward=True)

            base = merger.find_merge_base(head, theirs_id)
            if base is None:
                raise EngineError(f"Refusing to merge unrelated histories ({theirs})")
            base_files = merger.tree_files(merger.commit_tree(base))
            merged, conflicts = merger.merge_trees(base_files, current, theirs_files)
            message = message or f"Merge branch '{theirs}'"

            # Conflicted paths keep our version in the index
            clean = dict(merged)
            for conflict in conflicts:
                if conflict.path in current:
                    clean[conflict.path] = current[conflict.path]
            self._check_overwrites(repo, current, clean, 'merge')
            self._switch_tree(repo, current, clean, force=False)

            if conflicts:
                for conflict in conflicts:
                    full = self._full(conflict.path)
                    full.parent.mkdir(parents=True, exist_ok=True)
                    full.write_bytes(conflict_markers(conflict, theirs))
                state.save(theirs_id, message, conflicts)
                raise MergeConflictError(c.path for c in conflicts)

            tree_id = commit_tree(
                repo.object_store,
                [(encode_path(path), sha, mode) for path, (mode, sha) in merged.items()],
            )
            commit = self._make_commit(repo, tree_id, [head, theirs_id], message,
                                       author or Signature('gitdesk', 'gitdesk@localhost'))
            self._advance_head(repo, commit.id)
            return MergeReport(oid=commit.id.decode('ascii'))

    def is_merge_in_progress(self) -> bool:
        with self._open() as repo:
            return MergeState(repo.controldir()).in_progress()

    def merge_message(self) -> Optional[str]:
        with self._open() as repo:
            state = MergeState(repo.controldir())
            if not state.in_progress():
                return None
            return state.message() or "Merge commit"

    def clear_merge_state(self) -> None:
        with self._open() as repo:
            MergeState(repo.controldir()).clear()

    # ---- tags ----
    def list_tags(self) -> List[TagInfo]:
        tags = []
        with self._open() as repo:
            merger = TreeMerger(repo)
            for name in sorted(repo.refs.allkeys()):
                if not name.startswith(TAG_PREFIX):
                    continue
                sha = repo.refs[name]
                tags.append(TagInfo(
                    name=name[len(TAG_PREFIX):].decode('utf-8'),
                    oid=merger.peel(sha).decode('ascii'),
                    annotated=isinstance(repo[sha], Tag),
                ))
        return tags

    def tag(self, name, ref=None, message=None, tagger=None) -> None:
        if not name or not name.strip():
            raise ValidationError("Tag name must not be empty")
        tag_ref = TAG_PREFIX + name.encode('utf-8')
        if not check_ref_format(tag_ref):
            raise ValidationError(f"'{name}' is not a valid tag name")
        with self._open() as repo:
            if tag_ref in repo.refs:
                raise EngineError(f"Tag '{name}' already exists")
            target = self._resolve(repo, ref or 'HEAD')
            if message is None:
                repo.refs[tag_ref] = target
                return
            tagger = tagger or Signature('gitdesk', 'gitdesk@localhost')
            tag_obj = Tag()
            tag_obj.name = name.encode('utf-8')
            tag_obj.message = message.encode('utf-8')
            tag_obj.tagger = f"{tagger.name} <{tagger.email}>".encode('utf-8')
            tag_obj.tag_time = tagger.timestamp or int(time.time())
            tag_obj.tag_timezone = tagger.timezone_offset * 60
            tag_obj.object = (Commit, target)
            repo.object_store.add_object(tag_obj)
            repo.refs[tag_ref] = tag_obj.id

    def delete_tag(self, name: str) -> None:
        tag_ref = TAG_PREFIX + name.encode('utf-8')
        with self._open() as repo:
            if tag_ref not in repo.refs:
                raise NotFoundError(f"Tag '{name}' not found")
            del repo.refs[tag_ref]

    def __repr__(self) -> str:
        return f"DulwichEngine(root={self.root})"
