"""Tests for merge coordination."""

import pytest

from gitdesk.core.errors import EngineError, MergeConflictError, NotFoundError, ValidationError
from gitdesk.core.status import StatusSignal
from gitdesk.engine.base import MergeReport
from gitdesk.operations.merge import MergeCoordinator, MergeState


@pytest.fixture
def coordinator(fake_engine):
    return MergeCoordinator(fake_engine)


class TestMerge:
    """Tests for MergeCoordinator.merge."""

    def test_clean_merge(self, coordinator, fake_engine):
        """Test a merge commit is reported as success."""
        outcome = coordinator.merge('feature', message='Merge feature')
        assert outcome.succeeded
        assert outcome.oid == '2' * 40
        assert not outcome.fast_forward
        assert coordinator.state is MergeState.SUCCEEDED
        assert fake_engine.called('merge')[0][2]['message'] == 'Merge feature'

    def test_fast_forward(self, coordinator, fake_engine):
        """Test fast-forward results skip the status check."""
        fake_engine.merge_report = MergeReport(oid='3' * 40, fast_forward=True)
        outcome = coordinator.merge('feature')
        assert outcome.succeeded and outcome.fast_forward
        assert fake_engine.called('status_matrix') == []

    def test_already_merged(self, coordinator, fake_engine):
        """Test merging an ancestor."""
        fake_engine.merge_report = MergeReport(oid='1' * 40, already_merged=True)
        outcome = coordinator.merge('old')
        assert outcome.succeeded and outcome.already_merged
        assert repr(outcome) == 'MergeOutcome(already merged)'

    def test_conflict_reported_from_status(self, coordinator, fake_engine):
        """Test conflicting paths come from the status afterwards."""
        fake_engine.merge_error = MergeConflictError(['a.txt'])
        fake_engine.signals = [
            StatusSignal('a.txt', 1, 2, 1, conflicted=True),
            StatusSignal('b.txt', 0, 2, 0),
        ]
        outcome = coordinator.merge('feature')
        assert not outcome.succeeded
        assert outcome.conflicting_paths == ['a.txt']
        assert coordinator.state is MergeState.CONFLICTED

    def test_conflict_message_from_other_error(self, coordinator, fake_engine):
        """Test engines that signal conflicts through the message."""
        fake_engine.merge_error = EngineError("CONFLICT (content): merge conflict in a.txt")
        fake_engine.signals = [StatusSignal('a.txt', 1, 2, 1, conflicted=True)]
        assert coordinator.merge('feature').conflicting_paths == ['a.txt']

    def test_other_errors_propagate(self, coordinator, fake_engine):
        """Test failures that are not conflicts are raised."""
        fake_engine.merge_error = NotFoundError("Could not resolve ref 'nope'")
        with pytest.raises(NotFoundError):
            coordinator.merge('nope')
        assert coordinator.state is MergeState.IDLE

    def test_custom_status_source(self, fake_engine):
        """Test the status callable can be injected."""
        fake_engine.signals = [StatusSignal('a.txt', 1, 2, 1, conflicted=True)]
        coordinator = MergeCoordinator(fake_engine, status_fn=lambda: [])
        outcome = coordinator.merge('feature')
        assert outcome.succeeded
        assert fake_engine.called('status_matrix') == []

    def test_stopped_merge_never_succeeds(self, fake_engine):
        """Test a conflict failure is not a success when status shows no conflicts."""
        fake_engine.merge_error = MergeConflictError(['x'])
        coordinator = MergeCoordinator(fake_engine, status_fn=lambda: [])
        outcome = coordinator.merge('feature')
        assert not outcome.succeeded
        assert outcome.conflicting_paths == []
        assert coordinator.state is MergeState.CONFLICTED

    def test_missing_ref_named_like_conflict(self, coordinator, fake_engine):
        """Test a lookup error mentioning "conflict" still propagates."""
        fake_engine.merge_error = NotFoundError("Could not resolve ref 'conflict-fix'")
        with pytest.raises(NotFoundError):
            coordinator.merge('conflict-fix')
        assert coordinator.state is MergeState.IDLE

    def test_validation_error_propagates(self, coordinator, fake_engine):
        """Test argument errors are never read as conflicts."""
        fake_engine.merge_error = ValidationError("Invalid branch name 'conflict..x'")
        with pytest.raises(ValidationError):
            coordinator.merge('conflict..x')


class TestAbortMerge:
    """Tests for MergeCoordinator.abort_merge."""

    def test_abort_restores_branch(self, coordinator, fake_engine):
        """Test abort force-checks-out the current branch and clears state."""
        fake_engine.merge_in_progress = True
        coordinator.abort_merge()
        assert fake_engine.called('checkout')[0][1] == ('main',)
        assert fake_engine.called('checkout')[0][2]['force'] is True
        assert fake_engine.called('clear_merge_state')
        assert not fake_engine.merge_in_progress
        assert coordinator.state is MergeState.IDLE

    def test_abort_detached(self, coordinator, fake_engine):
        """Test a detached HEAD is restored by commit id."""
        fake_engine.branch = None
        coordinator.abort_merge()
        assert fake_engine.called('checkout')[0][1] == ('1' * 40,)

    def test_abort_without_commits(self, coordinator, fake_engine):
        """Test there must be a commit to go back to."""
        fake_engine.commits = []
        with pytest.raises(NotFoundError):
            coordinator.abort_merge()
