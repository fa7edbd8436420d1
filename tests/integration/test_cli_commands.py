"""Integration tests for branch, checkout, stash, tag, remote, reset and network commands."""

from dulwich.repo import Repo


class TestBranchCommand:
    """Tests for gitdesk branch."""

    def test_list_marks_current(self, run_cli, repo_with_commits):
        """Test the current branch is starred."""
        repo_with_commits.create_branch('feature')
        lines = run_cli('branch').output.splitlines()
        assert any(line.startswith('* ') and 'main' in line for line in lines)
        assert any(line.startswith('  feature') for line in lines)

    def test_create_rename_delete(self, run_cli, repo_with_commits):
        """Test the branch lifecycle."""
        assert 'Created branch topic' in run_cli('branch', 'topic').output
        assert 'Renamed branch topic to subject' in run_cli('branch', 'topic', '-m', 'subject').output
        assert 'Deleted branch subject' in run_cli('branch', '-d', 'subject').output
        assert [b.name for b in repo_with_commits.list_branches()] == ['main']

    def test_delete_current_branch_fails(self, run_cli, repo_with_commits):
        """Test the checked-out branch cannot be deleted."""
        result = run_cli('branch', '-d', 'main')
        assert result.exit_code == 1
        assert 'Branch operation failed' in result.output

    def test_no_branches_yet(self, run_cli, git_repo):
        """Test listing before the first commit."""
        assert 'No branches yet' in run_cli('branch').output


class TestCheckoutCommand:
    """Tests for gitdesk checkout."""

    def test_create_and_switch(self, run_cli, repo_with_commits):
        """Test -b creates a branch and switches to it."""
        result = run_cli('checkout', '-b', 'feature')
        assert "Switched to a new branch 'feature'" in result.output
        assert repo_with_commits.get_current_branch() == 'feature'

        result = run_cli('checkout', 'main')
        assert "Switched to branch 'main'" in result.output

    def test_detached(self, run_cli, repo_with_commits):
        """Test checking out a commit detaches HEAD."""
        first = repo_with_commits.log()[-1].oid
        result = run_cli('checkout', first)
        assert result.exit_code == 0
        assert 'HEAD is now detached' in result.output
        assert repo_with_commits.get_current_branch() is None

    def test_local_changes_block_checkout(self, run_cli, repo_with_commits, work_dir, commit):
        """Test dirty files stop a checkout unless -f is given."""
        repo = repo_with_commits
        repo.create_branch('feature', checkout=True)
        commit(repo, 'file1.txt', 'Feature\n')
        repo.checkout('main')
        (work_dir / 'file1.txt').write_text('Dirty\n')

        result = run_cli('checkout', 'feature')
        assert result.exit_code == 1
        assert 'would be overwritten' in result.output

        result = run_cli('checkout', '-f', 'feature')
        assert result.exit_code == 0
        assert (work_dir / 'file1.txt').read_text() == 'Feature\n'

    def test_unknown_ref(self, run_cli, repo_with_commits):
        """Test checking out something that does not exist."""
        result = run_cli('checkout', 'nope')
        assert result.exit_code == 1
        assert 'Checkout failed' in result.output


class TestStashCommand:
    """Tests for gitdesk stash."""

    def test_stash_cycle(self, run_cli, repo_with_commits, work_dir):
        """Test push, list, show and pop."""
        (work_dir / 'file1.txt').write_text('Work in progress\n')

        result = run_cli('stash', 'push', '-m', 'wip')
        assert result.exit_code == 0
        assert 'Saved working directory state' in result.output
        assert (work_dir / 'file1.txt').read_text() == 'Hello, World!\n'

        result = run_cli('stash', 'list')
        assert 'stash@{0}: On main: wip' in result.output
        assert 'file1.txt' in run_cli('stash', 'show').output

        result = run_cli('stash', 'pop')
        assert 'Restored: wip' in result.output
        assert (work_dir / 'file1.txt').read_text() == 'Work in progress\n'
        assert 'No stashed changes' in run_cli('stash', 'list').output

    def test_bare_stash_pushes(self, run_cli, repo_with_commits, work_dir):
        """Test 'stash' without a subcommand saves changes."""
        (work_dir / 'new.txt').write_text('untracked\n')
        assert 'Saved working directory state' in run_cli('stash').output
        assert not (work_dir / 'new.txt').exists()

    def test_nothing_to_stash(self, run_cli, repo_with_commits):
        """Test a clean tree is reported, not an error."""
        result = run_cli('stash')
        assert result.exit_code == 0
        assert 'No local changes to save' in result.output

    def test_drop_and_clear(self, run_cli, repo_with_commits, work_dir):
        """Test dropping by position and clearing the rest."""
        for text in ('one', 'two', 'three'):
            (work_dir / 'file1.txt').write_text(text)
            run_cli('stash', 'push', '-m', text)

        assert 'Dropped: one' in run_cli('stash', 'drop', 'stash@{0}').output
        assert 'Cleared 2 stash entries' in run_cli('stash', 'clear').output

    def test_list_reports_interrupted_stash(self, run_cli, repo_with_commits, work_dir):
        """Test list only flags an interrupted stash; recover finishes it."""
        from gitdesk.core.repository import RepositoryFacade

        (work_dir / 'file1.txt').write_text('Interrupted\n')
        run_cli('stash', 'push', '-m', 'half done')
        store = RepositoryFacade(work_dir).store
        entries = store.get('stash')
        entries[0]['complete'] = False
        store.set('stash', entries)

        result = run_cli('stash', 'list')
        assert 'half done' in result.output
        assert '[incomplete]' in result.output
        assert store.get('stash')[0]['complete'] is False

        result = run_cli('stash', 'recover')
        assert 'Recovered interrupted stash: half done' in result.output
        assert store.get('stash')[0]['complete'] is True
        assert '[incomplete]' not in run_cli('stash', 'list').output
        assert 'No interrupted stashes' in run_cli('stash', 'recover').output

    def test_pop_recovers_first(self, run_cli, repo_with_commits, work_dir):
        """Test pop finishes an interrupted stash before restoring it."""
        from gitdesk.core.repository import RepositoryFacade

        (work_dir / 'file1.txt').write_text('Interrupted\n')
        run_cli('stash', 'push', '-m', 'half done')
        store = RepositoryFacade(work_dir).store
        entries = store.get('stash')
        entries[0]['complete'] = False
        store.set('stash', entries)

        result = run_cli('stash', 'pop')
        assert 'Recovered interrupted stash: half done' in result.output
        assert 'Restored: half done' in result.output
        assert (work_dir / 'file1.txt').read_text() == 'Interrupted\n'

    def test_pop_empty(self, run_cli, repo_with_commits):
        """Test popping with nothing stashed fails."""
        result = run_cli('stash', 'pop')
        assert result.exit_code == 1
        assert 'Failed to pop stash' in result.output


class TestTagCommand:
    """Tests for gitdesk tag."""

    def test_tag_lifecycle(self, run_cli, repo_with_commits):
        """Test creating, listing and deleting tags."""
        assert 'No tags' in run_cli('tag').output
        assert "Created tag 'v1'" in run_cli('tag', 'v1').output
        assert "Created tag 'v2'" in run_cli('tag', 'v2', '-m', 'Release two').output

        output = run_cli('tag').output
        assert 'v1' in output and '(lightweight)' in output
        assert 'v2' in output and '(annotated)' in output

        assert "Deleted tag 'v1'" in run_cli('tag', '-d', 'v1').output
        assert [t.name for t in repo_with_commits.list_tags()] == ['v2']

    def test_duplicate_tag(self, run_cli, repo_with_commits):
        """Test creating a tag twice aborts."""
        run_cli('tag', 'v1')
        assert run_cli('tag', 'v1').exit_code == 1


class TestResetCommand:
    """Tests for gitdesk reset."""

    def test_reset_unstages(self, run_cli, repo_with_commits, work_dir):
        """Test a plain reset keeps edits but unstages them."""
        (work_dir / 'file1.txt').write_text('changed\n')
        run_cli('add', 'file1.txt')
        assert 'Unstaged all changes' in run_cli('reset').output
        assert ' M file1.txt' in run_cli('status', '-s').output.splitlines()

    def test_hard_reset(self, run_cli, repo_with_commits, work_dir):
        """Test --hard throws edits away."""
        (work_dir / 'file1.txt').write_text('changed\n')
        assert 'HEAD is now at HEAD' in run_cli('reset', '--hard').output
        assert (work_dir / 'file1.txt').read_text() == 'Hello, World!\n'


class TestRemoteCommands:
    """Tests for remote, clone, fetch, pull and push against a local bare repository."""

    def _bare(self, tmp_path):
        path = tmp_path / 'remote.git'
        repo = Repo.init_bare(str(path), mkdir=True)
        repo.refs.set_symbolic_ref(b'HEAD', b'refs/heads/main')
        repo.close()
        return path

    def test_remote_add_list_remove(self, run_cli, repo_with_commits):
        """Test managing remotes."""
        assert 'No remotes configured' in run_cli('remote').output
        result = run_cli('remote', 'add', 'origin', 'https://example.com/app.git')
        assert "Added remote 'origin': https://example.com/app.git" in result.output
        assert run_cli('remote', 'list').output.strip() == 'origin'
        assert 'origin\thttps://example.com/app.git' in run_cli('remote', 'list', '-v').output
        assert "Removed remote 'origin'" in run_cli('remote', 'remove', 'origin').output

    def test_push_clone_pull(self, run_cli, repo_with_commits, tmp_path, commit):
        """Test publishing with push and following along with clone and pull."""
        from click.testing import CliRunner
        from gitdesk.cli.main import cli

        bare = self._bare(tmp_path)
        run_cli('remote', 'add', 'origin', str(bare))
        result = run_cli('push')
        assert result.exit_code == 0
        assert 'Pushed to origin' in result.output

        clone_dir = tmp_path / 'clone'
        runner = CliRunner()
        result = runner.invoke(cli, ['-C', str(clone_dir), 'clone', str(bare)])
        assert result.exit_code == 0
        assert (clone_dir / 'file2.txt').read_text() == 'Second file\n'

        commit(repo_with_commits, 'file3.txt', 'Third\n')
        run_cli('push', 'origin')
        result = runner.invoke(cli, ['-C', str(clone_dir), 'pull'])
        assert result.exit_code == 0
        assert (clone_dir / 'file3.txt').read_text() == 'Third\n'

    def test_push_unknown_remote(self, run_cli, repo_with_commits):
        """Test pushing to an unconfigured remote aborts."""
        result = run_cli('push', 'nowhere')
        assert result.exit_code == 1
        assert 'Push failed' in result.output
