"""Integration tests for merging branches."""

import pytest

from gitdesk.core.errors import EngineError, NotFoundError


@pytest.fixture
def diverged(repo_with_commits, commit):
    """main and feature each with one commit on top of the shared history."""
    repo = repo_with_commits
    repo.create_branch('feature', checkout=True)
    commit(repo, 'feature.txt', 'From feature\n', 'Feature work')
    repo.checkout('main')
    commit(repo, 'main.txt', 'From main\n', 'Main work')
    return repo


def test_fast_forward(repo_with_commits, commit):
    """Test merging a descendant moves the branch forward."""
    repo = repo_with_commits
    repo.create_branch('feature', checkout=True)
    tip = commit(repo, 'feature.txt', 'New\n')
    repo.checkout('main')

    outcome = repo.merge('feature')
    assert outcome.succeeded
    assert outcome.fast_forward
    assert outcome.oid == tip
    assert repo.log()[0].oid == tip
    assert repo.read_file('feature.txt') == 'New\n'
    assert repo.get_current_branch() == 'main'
    assert repo.status() == []


def test_already_merged(repo_with_commits):
    """Test merging an ancestor changes nothing."""
    repo = repo_with_commits
    head = repo.log()[0].oid
    repo.create_branch('old', ref=repo.log()[1].oid)
    outcome = repo.merge('old')
    assert outcome.succeeded
    assert outcome.already_merged
    assert repo.log()[0].oid == head


def test_three_way_merge(diverged):
    """Test diverged branches touching different files merge cleanly."""
    repo = diverged
    main_tip = repo.log()[0].oid
    feature_tip = repo.log('feature')[0].oid

    outcome = repo.merge('feature')
    assert outcome.succeeded
    assert not outcome.fast_forward

    merge_commit = repo.log()[0]
    assert merge_commit.oid == outcome.oid
    assert merge_commit.parents == [main_tip, feature_tip]
    assert merge_commit.message == "Merge branch 'feature'"
    assert merge_commit.author.name == 'Test User'
    assert repo.read_file('feature.txt') == 'From feature\n'
    assert repo.read_file('main.txt') == 'From main\n'
    assert repo.status() == []


def test_merge_message(diverged):
    """Test a custom merge commit message."""
    diverged.merge('feature', message='Bring in feature')
    assert diverged.log()[0].message == 'Bring in feature'


def test_merge_unknown_branch(repo_with_commits):
    """Test merging something that does not exist."""
    with pytest.raises(NotFoundError):
        repo_with_commits.merge('nowhere')


def test_merge_unknown_branch_named_conflict(repo_with_commits):
    """Test a missing ref whose name mentions conflict is still an error."""
    with pytest.raises(NotFoundError):
        repo_with_commits.merge('conflict-fix')
    assert repo_with_commits.status() == []


def test_merge_blocked_by_local_changes(diverged):
    """Test local edits to a file the merge brings in block the merge."""
    diverged.write_file('feature.txt', 'Local\n')
    with pytest.raises(EngineError, match='would be overwritten by merge'):
        diverged.merge('feature')


def test_abort_without_history(git_repo):
    """Test aborting needs a commit to return to."""
    with pytest.raises(NotFoundError):
        git_repo.abort_merge()
