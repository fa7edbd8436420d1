"""Reset command - reset the index or the whole working tree."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import success


@click.command('reset')
@click.argument('ref', required=False)
@click.option('--hard', is_flag=True, help='Also reset the working tree, discarding changes')
@click.pass_context
def reset_cmd(ctx, ref, hard):
    """
    Reset the index to HEAD, or with --hard check out REF discarding changes.

    Examples:
        gitdesk reset                  # Unstage everything
        gitdesk reset --hard           # Discard all local changes
        gitdesk reset --hard v1.0
    """
    repo = get_repository(ctx)
    with command_errors("Reset failed"):
        repo.reset(ref=ref, hard=hard)
    if hard:
        click.echo(success(f"HEAD is now at {ref or 'HEAD'}"))
    else:
        click.echo(success("Unstaged all changes"))
