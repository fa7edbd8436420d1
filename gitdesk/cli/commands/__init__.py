"""CLI commands for gitdesk."""

from gitdesk.cli.commands.init import init_cmd
from gitdesk.cli.commands.clone import clone_cmd
from gitdesk.cli.commands.status import status_cmd
from gitdesk.cli.commands.add import add_cmd, unstage_cmd, rm_cmd
from gitdesk.cli.commands.commit import commit_cmd
from gitdesk.cli.commands.log import log_cmd
from gitdesk.cli.commands.branch import branch_cmd
from gitdesk.cli.commands.checkout import checkout_cmd
from gitdesk.cli.commands.diff import diff_cmd
from gitdesk.cli.commands.merge import merge_cmd
from gitdesk.cli.commands.stash import stash_cmd
from gitdesk.cli.commands.tag import tag_cmd
from gitdesk.cli.commands.remote import remote_cmd
from gitdesk.cli.commands.network import fetch_cmd, pull_cmd, push_cmd
from gitdesk.cli.commands.reset import reset_cmd
from gitdesk.cli.commands.config import config_cmd
from gitdesk.cli.commands.credential import credential_cmd

__all__ = ['init_cmd', 'clone_cmd', 'status_cmd', 'add_cmd', 'unstage_cmd', 'rm_cmd',
           'commit_cmd', 'log_cmd', 'branch_cmd', 'checkout_cmd', 'diff_cmd', 'merge_cmd',
           'stash_cmd', 'tag_cmd', 'remote_cmd', 'fetch_cmd', 'pull_cmd', 'push_cmd',
           'reset_cmd', 'config_cmd', 'credential_cmd']
