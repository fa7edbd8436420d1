"""Shared pytest fixtures for gitdesk tests."""

import pytest

from gitdesk.core.config import Config
from gitdesk.core.errors import NotFoundError
from gitdesk.core.repository import RepositoryFacade
from gitdesk.core.storage import MemoryStore
from gitdesk.core.worktree import WorkingTree
from gitdesk.engine.base import (
    CommitInfo,
    MergeReport,
    Signature,
    VersionControlEngine,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep stores and global config of every test inside tmp_path."""
    home = tmp_path / 'gitdesk-home'
    monkeypatch.setenv('GITDESK_HOME', str(home))
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', tmp_path / 'gitdeskconfig')
    for name in ('GITDESK_USER_NAME', 'GITDESK_USER_EMAIL', 'GITDESK_CORE_AUTOCRLF',
                 'GITDESK_INIT_DEFAULTBRANCH'):
        monkeypatch.delenv(name, raising=False)
    return home


class FakeEngine(VersionControlEngine):
    """
    Recording engine for tests that do not need real git.

    Every call is appended to ``calls`` as (name, args, kwargs). Status,
    history, blobs and merge results are plain attributes tests can set.
    """

    def __init__(self):
        self.calls = []
        self.initialized = True
        self.signals = []
        self.branch = 'main'
        self.branches = ['main']
        self.commits = [make_commit_info('1' * 40, 'Initial commit')]
        self.blobs = {}
        self.remotes = []
        self.tags = []
        self.merge_report = MergeReport(oid='2' * 40)
        self.merge_error = None
        self.merge_in_progress = False
        self.merge_msg = "Merge branch 'feature'"
        self.checkout_hook = None
        self.status_error = None

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    def init(self, default_branch='main'):
        self._record('init', default_branch=default_branch)
        self.initialized = True
        self.branch = default_branch

    def is_repository(self):
        return self.initialized

    def clone(self, url, ref=None, depth=None, progress=None, auth=None):
        self._record('clone', url, ref=ref, depth=depth, auth=auth)

    def status_matrix(self):
        self._record('status_matrix')
        if self.status_error is not None:
            raise self.status_error
        return list(self.signals)

    def add(self, path):
        self._record('add', path)

    def remove(self, path):
        self._record('remove', path)

    def reset_index(self, path):
        self._record('reset_index', path)

    def commit(self, message, author):
        self._record('commit', message, author=author)
        oid = f"{len(self.commits) + 1:040x}"
        self.commits.insert(0, make_commit_info(oid, message))
        return oid

    def log(self, ref=None, depth=None):
        self._record('log', ref=ref, depth=depth)
        return self.commits[:depth] if depth else list(self.commits)

    def read_commit(self, oid):
        for commit in self.commits:
            if commit.oid == oid:
                return commit
        raise NotFoundError(oid)

    def resolve_ref(self, ref):
        if not self.commits:
            raise NotFoundError("HEAD does not point to a commit yet")
        return self.commits[0].oid

    def read_blob(self, ref, path):
        try:
            return self.blobs[(ref, path)]
        except KeyError:
            raise NotFoundError(f"{path} not in {ref}") from None

    def current_branch(self):
        return self.branch

    def list_branches(self, remote=None):
        return list(self.branches)

    def create_branch(self, name, ref=None):
        self._record('create_branch', name, ref=ref)
        self.branches.append(name)

    def delete_branch(self, name):
        self._record('delete_branch', name)

    def rename_branch(self, old_name, new_name):
        self._record('rename_branch', old_name, new_name)

    def checkout(self, ref=None, force=False, track=True):
        self._record('checkout', ref, force=force, track=track)
        if self.checkout_hook is not None:
            self.checkout_hook(ref, force)

    def list_remotes(self):
        return list(self.remotes)

    def add_remote(self, name, url):
        self._record('add_remote', name, url)

    def delete_remote(self, name):
        self._record('delete_remote', name)

    def fetch(self, remote, ref=None, depth=None, auth=None, progress=None):
        self._record('fetch', remote, ref=ref, auth=auth)

    def pull(self, remote, ref=None, auth=None, progress=None, author=None):
        self._record('pull', remote, ref=ref, auth=auth, author=author)

    def push(self, remote, ref=None, force=False, auth=None, progress=None):
        self._record('push', remote, ref=ref, force=force, auth=auth)

    def merge(self, theirs, message=None, author=None):
        self._record('merge', theirs, message=message, author=author)
        if self.merge_error is not None:
            raise self.merge_error
        return self.merge_report

    def is_merge_in_progress(self):
        return self.merge_in_progress

    def merge_message(self):
        return self.merge_msg if self.merge_in_progress else None

    def clear_merge_state(self):
        self._record('clear_merge_state')
        self.merge_in_progress = False

    def list_tags(self):
        return list(self.tags)

    def tag(self, name, ref=None, message=None, tagger=None):
        self._record('tag', name, ref=ref, message=message, tagger=tagger)

    def delete_tag(self, name):
        self._record('delete_tag', name)


def make_commit_info(oid, message, parents=None):
    author = Signature('Test User', 'test@example.com', 1700000000, 0)
    return CommitInfo(oid=oid, message=message, author=author, committer=author,
                      parents=parents or [], tree='f' * 40)


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / 'work'
    path.mkdir()
    return path


@pytest.fixture
def worktree(work_dir):
    return WorkingTree(work_dir)


@pytest.fixture
def facade(work_dir, fake_engine, memory_store):
    """Facade over a FakeEngine and an in-memory store."""
    return RepositoryFacade(work_dir, engine=fake_engine, store=memory_store)


@pytest.fixture
def git_repo(work_dir, memory_store):
    """Initialized dulwich-backed repository with a configured author."""
    repo = RepositoryFacade(work_dir, store=memory_store)
    repo.init()
    repo.set_config({'user.name': 'Test User', 'user.email': 'test@example.com'})
    return repo


def commit_file(repo, path, content, message=None):
    """Write, stage and commit one file; returns the commit id."""
    repo.write_file(path, content)
    repo.add(path)
    return repo.commit(message or f"Update {path}")


@pytest.fixture
def repo_with_commits(git_repo):
    """Repository with two commits on main."""
    commit_file(git_repo, 'file1.txt', 'Hello, World!\n', 'First commit')
    commit_file(git_repo, 'file2.txt', 'Second file\n', 'Second commit')
    return git_repo


@pytest.fixture
def working_files(work_dir):
    """Create sample file structure in the working directory."""
    (work_dir / 'subdir').mkdir()
    files = {
        'file1': work_dir / 'test1.txt',
        'file2': work_dir / 'test2.txt',
        'file3': work_dir / 'subdir' / 'test3.txt',
    }
    files['file1'].write_text('Content 1')
    files['file2'].write_text('Content 2')
    files['file3'].write_text('Content 3')
    return files


@pytest.fixture
def commit():
    """The commit_file helper, for tests that build history."""
    return commit_file


@pytest.fixture
def run_cli(work_dir):
    """Invoke the gitdesk CLI with -C pointing at work_dir."""
    from click.testing import CliRunner
    from gitdesk.cli.main import cli

    runner = CliRunner()

    def run(*args, **kwargs):
        return runner.invoke(cli, ['-C', str(work_dir), *args], **kwargs)
    return run
