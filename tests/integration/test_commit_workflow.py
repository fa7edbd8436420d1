"""Integration tests for staging and committing on a real repository."""

import pytest

from gitdesk.core.errors import NotFoundError, ValidationError
from gitdesk.core.status import Category


def _summary(repo):
    return [(e.path, e.category, e.staged) for e in repo.status()]


def test_fresh_repository_is_clean(git_repo):
    """Test a new repository has no status and no history."""
    assert git_repo.is_repository()
    assert git_repo.status() == []
    assert git_repo.log() == []
    assert git_repo.get_current_branch() == 'main'


def test_stage_and_commit_new_file(git_repo):
    """Test the untracked -> added -> committed path of a file."""
    git_repo.write_file('hello.txt', 'Hello\n')
    assert _summary(git_repo) == [('hello.txt', Category.UNTRACKED, False)]

    git_repo.add('hello.txt')
    assert _summary(git_repo) == [('hello.txt', Category.ADDED, True)]

    oid = git_repo.commit('Add hello')
    assert git_repo.status() == []
    commit = git_repo.get_commit(oid)
    assert commit.message == 'Add hello'
    assert commit.author.name == 'Test User'
    assert commit.author.email == 'test@example.com'
    assert commit.parents == []


def test_added_file_edited_after_staging(git_repo):
    """Test a new file whose working copy differs from the staged one."""
    git_repo.write_file('a.txt', 'one')
    git_repo.add('a.txt')
    git_repo.write_file('a.txt', 'two')
    assert _summary(git_repo) == [('a.txt', Category.ADDED, False)]


def test_history_order(repo_with_commits):
    """Test log lists commits newest first with parent links."""
    commits = repo_with_commits.log()
    assert [c.message for c in commits] == ['Second commit', 'First commit']
    assert commits[0].parents == [commits[1].oid]
    assert len(repo_with_commits.log(depth=1)) == 1


def test_modify_stage_and_unstage(repo_with_commits):
    """Test a tracked file through modified, staged and unstaged states."""
    repo = repo_with_commits
    repo.write_file('file1.txt', 'Changed\n')
    assert _summary(repo) == [('file1.txt', Category.MODIFIED, False)]

    repo.add('file1.txt')
    assert _summary(repo) == [('file1.txt', Category.MODIFIED, True)]

    repo.unstage('file1.txt')
    assert _summary(repo) == [('file1.txt', Category.MODIFIED, False)]
    assert repo.read_file('file1.txt') == 'Changed\n'


def test_unstage_new_file(git_repo, commit):
    """Test unstaging a file that is not in HEAD makes it untracked again."""
    commit(git_repo, 'base.txt', 'base')
    git_repo.write_file('new.txt', 'x')
    git_repo.add('new.txt')
    git_repo.unstage('new.txt')
    assert _summary(git_repo) == [('new.txt', Category.UNTRACKED, False)]


def test_delete_and_remove(repo_with_commits):
    """Test deleting a tracked file and staging the removal."""
    repo = repo_with_commits
    repo.delete_file('file2.txt')
    assert _summary(repo) == [('file2.txt', Category.DELETED, False)]

    repo.remove('file2.txt')
    assert _summary(repo) == [('file2.txt', Category.DELETED, True)]

    repo.commit('Remove file2')
    assert repo.status() == []
    with pytest.raises(NotFoundError):
        repo.read_file('file2.txt', ref='HEAD')


def test_add_all(repo_with_commits):
    """Test add_all stages new, modified and deleted files at once."""
    repo = repo_with_commits
    repo.write_file('file1.txt', 'Edited\n')
    repo.delete_file('file2.txt')
    repo.write_file('dir/new.txt', 'New\n')
    repo.add_all()
    assert all(entry.staged for entry in repo.status())
    repo.commit('Everything')
    assert repo.status() == []
    assert repo.read_file('dir/new.txt', ref='HEAD') == 'New\n'


def test_unstage_all(repo_with_commits):
    """Test unstage_all leaves the working tree alone."""
    repo = repo_with_commits
    repo.write_file('file1.txt', 'Edited\n')
    repo.write_file('file3.txt', 'Third\n')
    repo.add_all()
    repo.unstage_all()
    assert not any(entry.staged for entry in repo.status())


def test_add_directory(git_repo):
    """Test adding a directory stages every file below it."""
    git_repo.write_file('src/a.py', 'a = 1\n')
    git_repo.write_file('src/pkg/b.py', 'b = 2\n')
    git_repo.write_file('other.txt', 'x')
    git_repo.add('src')
    staged = {e.path for e in git_repo.status() if e.staged}
    assert staged == {'src/a.py', 'src/pkg/b.py'}


def test_add_missing_path(git_repo):
    """Test adding a path that does not exist."""
    with pytest.raises(NotFoundError):
        git_repo.add('nope.txt')


def test_ignored_files_not_reported(git_repo):
    """Test .gitignore hides untracked files and directories."""
    git_repo.write_file('.gitignore', '*.log\nbuild/\n')
    git_repo.write_file('debug.log', 'noise')
    git_repo.write_file('build/out.bin', 'bin')
    git_repo.write_file('keep.txt', 'keep')
    paths = {entry.path for entry in git_repo.status()}
    assert paths == {'.gitignore', 'keep.txt'}


def test_tracked_file_reported_even_if_ignored(git_repo, commit):
    """Test ignore rules do not hide changes to tracked files."""
    commit(git_repo, 'app.log', 'first')
    git_repo.write_file('.gitignore', '*.log\n')
    git_repo.write_file('app.log', 'second')
    categories = {e.path: e.category for e in git_repo.status()}
    assert categories['app.log'] is Category.MODIFIED


def test_autocrlf_normalises_line_endings(git_repo, commit):
    """Test CRLF-only changes are invisible when autocrlf is on."""
    git_repo.set_config({'core.autocrlf': 'true'})
    commit(git_repo, 'text.txt', 'a\nb\n')
    git_repo.write_file('text.txt', b'a\r\nb\r\n')
    assert git_repo.status() == []


def test_crlf_change_visible_without_autocrlf(git_repo, commit):
    """Test CRLF changes show up when autocrlf is off."""
    commit(git_repo, 'text.txt', 'a\nb\n')
    git_repo.write_file('text.txt', b'a\r\nb\r\n')
    assert _summary(git_repo) == [('text.txt', Category.MODIFIED, False)]


def test_commit_requires_message(git_repo):
    """Test a blank message is refused."""
    with pytest.raises(ValidationError):
        git_repo.commit('')


def test_explicit_author(git_repo):
    """Test an explicit author overrides the configured one."""
    from gitdesk.engine.base import Signature

    git_repo.write_file('a.txt', 'a')
    git_repo.add('a.txt')
    oid = git_repo.commit('By Ada', author=Signature('Ada', 'ada@example.com'))
    assert str(git_repo.get_commit(oid).author) == 'Ada <ada@example.com>'


def test_repository_info(repo_with_commits):
    """Test the repository summary."""
    repo_with_commits.write_file('dirty.txt', 'x')
    info = repo_with_commits.get_repository_info()
    assert info.is_initialized
    assert info.current_branch == 'main'
    assert info.has_uncommitted_changes


def test_plain_directory_is_not_a_repository(tmp_path, memory_store):
    """Test a directory without .git."""
    from gitdesk.core.repository import RepositoryFacade

    plain = tmp_path / 'plain'
    plain.mkdir()
    repo = RepositoryFacade(plain, store=memory_store)
    assert not repo.is_repository()
    assert repo.status() == []
    assert not repo.get_repository_info().is_initialized
