"""Config command - manage gitdesk configuration."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import error, success


@click.group('config')
def config_cmd():
    """Get and set repository options."""
    pass


@config_cmd.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key, value):
    """
    Set a config value.

    Examples:
        gitdesk config set user.name "Your Name"
        gitdesk config set core.autocrlf input
    """
    repo = get_repository(ctx, require=False)
    with command_errors("Failed to set config"):
        repo.set_config({key: value})
    click.echo(success(f"Set {key} = {value}"))


@config_cmd.command('get')
@click.argument('key')
@click.pass_context
def config_get(ctx, key):
    """
    Get a config value (after environment, repository, global and defaults).

    Examples:
        gitdesk config get user.name
    """
    from gitdesk.core.config import split_key

    repo = get_repository(ctx, require=False)
    with command_errors("Invalid key"):
        section, option = split_key(key)
    value = repo.config.get(section, option)
    if value is None:
        click.echo(error(f"Config key not found: {key}"))
        raise click.Abort()
    click.echo(value)


@config_cmd.command('list')
@click.pass_context
def config_list(ctx):
    """List the effective configuration."""
    repo = get_repository(ctx, require=False)
    for key, value in sorted(repo.get_config().items()):
        click.echo(f"{key}={value}")
