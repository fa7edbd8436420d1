"""Integration tests for the merge command."""

import pytest


@pytest.fixture
def diverged(repo_with_commits, commit):
    """main and feature both changed file1.txt."""
    repo = repo_with_commits
    repo.create_branch('feature', checkout=True)
    commit(repo, 'file1.txt', 'Feature side\n')
    repo.checkout('main')
    commit(repo, 'file1.txt', 'Main side\n')
    return repo


class TestMergeCommand:
    """Tests for gitdesk merge."""

    def test_merge_requires_branch(self, run_cli, repo_with_commits):
        """Test merge without a branch aborts."""
        result = run_cli('merge')
        assert result.exit_code == 1
        assert 'Specify a branch' in result.output

    def test_already_up_to_date(self, run_cli, repo_with_commits):
        """Test merging an ancestor does nothing."""
        repo_with_commits.create_branch('old')
        result = run_cli('merge', 'old')
        assert result.exit_code == 0
        assert 'Already up to date' in result.output

    def test_fast_forward(self, run_cli, repo_with_commits, commit):
        """Test a fast-forward merge moves main."""
        repo = repo_with_commits
        repo.create_branch('feature', checkout=True)
        tip = commit(repo, 'file3.txt', 'Three\n')
        repo.checkout('main')

        result = run_cli('merge', 'feature')
        assert result.exit_code == 0
        assert 'Fast-forward to feature' in result.output
        assert repo.log()[0].oid == tip

    def test_merge_commit(self, run_cli, repo_with_commits, commit):
        """Test diverged branches touching different files merge cleanly."""
        repo = repo_with_commits
        repo.create_branch('feature', checkout=True)
        commit(repo, 'feature.txt', 'Feature\n')
        repo.checkout('main')
        commit(repo, 'main.txt', 'Main\n')

        result = run_cli('merge', 'feature', '-m', 'Join feature')
        assert result.exit_code == 0
        assert 'Merged feature' in result.output
        head = repo.log()[0]
        assert head.message == 'Join feature'
        assert len(head.parents) == 2

    def test_conflict_then_commit(self, run_cli, diverged, work_dir):
        """Test a conflict exits non-zero and is finished with add and commit."""
        result = run_cli('merge', 'feature')
        assert result.exit_code == 1
        assert 'CONFLICT: file1.txt' in result.output
        assert 'Unmerged paths:' in run_cli('status').output

        result = run_cli('commit')
        assert result.exit_code == 1
        assert 'unmerged files' in result.output

        (work_dir / 'file1.txt').write_text('Resolved\n')
        run_cli('add', 'file1.txt')
        result = run_cli('commit')
        assert result.exit_code == 0
        assert 'Using merge message' in result.output
        assert len(diverged.log()[0].parents) == 2
        assert 'Nothing to commit, working tree clean' in run_cli('status').output

    def test_abort(self, run_cli, diverged, work_dir):
        """Test --abort restores the pre-merge tree."""
        run_cli('merge', 'feature')
        result = run_cli('merge', '--abort')
        assert result.exit_code == 0
        assert 'Merge aborted' in result.output
        assert (work_dir / 'file1.txt').read_text() == 'Main side\n'
        assert diverged.status() == []
