"""Remote command - manage remote repositories."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, success


@click.group('remote', invoke_without_command=True)
@click.pass_context
def remote_cmd(ctx):
    """Manage remote repositories."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(remote_list)


@remote_cmd.command('add')
@click.argument('name')
@click.argument('url')
@click.pass_context
def remote_add(ctx, name, url):
    """
    Add a remote repository.

    Examples:
        gitdesk remote add origin https://example.com/repo.git
        gitdesk remote add upstream ../other-repo
    """
    repo = get_repository(ctx)
    with command_errors("Failed to add remote"):
        repo.add_remote(name, url)
    click.echo(success(f"Added remote '{name}': {url}"))


@remote_cmd.command('remove')
@click.argument('name')
@click.pass_context
def remote_remove(ctx, name):
    """Remove a remote and its remote-tracking branches."""
    repo = get_repository(ctx)
    with command_errors("Failed to remove remote"):
        repo.remove_remote(name)
    click.echo(success(f"Removed remote '{name}'"))


@remote_cmd.command('list')
@click.option('-v', '--verbose', is_flag=True, help='Show URLs')
@click.pass_context
def remote_list(ctx, verbose=False):
    """List remotes."""
    repo = get_repository(ctx)
    remotes = repo.list_remotes()
    if not remotes:
        click.echo(info("No remotes configured"))
        return
    for remote in remotes:
        click.echo(f"{remote.name}\t{remote.url}" if verbose else remote.name)
