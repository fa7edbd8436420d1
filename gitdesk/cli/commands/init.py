"""Init command - create an empty repository."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import success


@click.command('init')
@click.option('-b', '--initial-branch', 'branch', help='Name of the initial branch')
@click.pass_context
def init_cmd(ctx, branch):
    """
    Create an empty repository in the working directory.

    Examples:
        gitdesk init
        gitdesk -C project init -b trunk
    """
    repo = get_repository(ctx, require=False)
    with command_errors("Failed to initialize repository"):
        repo.init(default_branch=branch)
    click.echo(success(f"Initialized empty repository in {repo.dir}"))
