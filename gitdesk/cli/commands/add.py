"""Staging commands - add, unstage and rm."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import error, info, success


@click.command('add')
@click.argument('paths', nargs=-1)
@click.option('-A', '--all', 'add_all', is_flag=True, help='Stage every change, including deletions')
@click.pass_context
def add_cmd(ctx, paths, add_all):
    """
    Add file contents to the index.

    Examples:
        gitdesk add file.txt
        gitdesk add src/
        gitdesk add --all
    """
    repo = get_repository(ctx)
    if not paths and not add_all:
        click.echo(error("Nothing specified, nothing added"))
        click.echo(info("Maybe you wanted to say 'gitdesk add --all'?"))
        raise click.Abort()

    with command_errors("Failed to add"):
        if add_all:
            repo.add_all()
            click.echo(success("Staged all changes"))
            return
        for path in paths:
            repo.add(path)
            click.echo(success(f"Added {path}"))


@click.command('unstage')
@click.argument('paths', nargs=-1)
@click.pass_context
def unstage_cmd(ctx, paths):
    """
    Remove changes from the index, keeping the working tree.

    Without PATHS every staged change is unstaged.
    """
    repo = get_repository(ctx)
    with command_errors("Failed to unstage"):
        if not paths:
            repo.unstage_all()
            click.echo(success("Unstaged all changes"))
            return
        for path in paths:
            repo.unstage(path)
            click.echo(success(f"Unstaged {path}"))


@click.command('rm')
@click.argument('paths', nargs=-1, required=True)
@click.option('--cached', is_flag=True, help='Only remove from the index')
@click.pass_context
def rm_cmd(ctx, paths, cached):
    """
    Remove files from the index (and the working tree unless --cached).

    Examples:
        gitdesk rm old.txt
        gitdesk rm --cached secrets.env
    """
    repo = get_repository(ctx)
    with command_errors("Failed to remove"):
        for path in paths:
            repo.remove(path)
            if not cached and repo.worktree.exists(path):
                repo.delete_file(path)
            click.echo(success(f"Removed {path}"))
