"""Checkout command - switch branches or restore the working tree."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import success, warning


@click.command('checkout')
@click.argument('ref')
@click.option('-b', '--create', is_flag=True, help='Create REF as a new branch first')
@click.option('-f', '--force', is_flag=True, help='Discard local changes')
@click.option('--no-track', is_flag=True, help='Do not create a branch from a remote-tracking branch')
@click.pass_context
def checkout_cmd(ctx, ref, create, force, no_track):
    """
    Switch to a branch, tag or commit.

    Examples:
        gitdesk checkout main
        gitdesk checkout -b feature
        gitdesk checkout -f main       # Throw away local changes
        gitdesk checkout a1b2c3d       # Detached HEAD
    """
    repo = get_repository(ctx)
    with command_errors("Checkout failed"):
        if create:
            repo.create_branch(ref, checkout=True)
            click.echo(success(f"Switched to a new branch '{ref}'"))
            return
        repo.checkout(ref, force=force, track=not no_track)

    branch = repo.get_current_branch()
    if branch == ref:
        click.echo(success(f"Switched to branch '{ref}'"))
    else:
        click.echo(warning(f"HEAD is now detached at {ref}"))
