"""Credential command - manage stored remote credentials."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, success, warning
from gitdesk.engine.base import Auth


@click.group('credential')
def credential_cmd():
    """Manage credentials used for HTTP remotes.

    A credential is stored under a key. Network commands use the first key
    that occurs in the remote URL, then the key 'default'.
    """
    pass


@credential_cmd.command('set')
@click.argument('key')
@click.argument('username')
@click.option('-p', '--password', prompt=True, hide_input=True, help='Password or token')
@click.pass_context
def credential_set(ctx, key, username, password):
    """
    Store a credential.

    Examples:
        gitdesk credential set github.com alice -p ghp_token
        gitdesk credential set default bob
    """
    repo = get_repository(ctx, require=False)
    with command_errors("Failed to store credential"):
        repo.set_credentials(key, Auth(username, password))
    click.echo(success(f"Stored credential '{key}' for {username}"))


@credential_cmd.command('remove')
@click.argument('key')
@click.pass_context
def credential_remove(ctx, key):
    """Forget a stored credential."""
    repo = get_repository(ctx, require=False)
    if repo.remove_credentials(key):
        click.echo(success(f"Removed credential '{key}'"))
    else:
        click.echo(warning(f"No credential stored under '{key}'"))


@credential_cmd.command('list')
@click.pass_context
def credential_list(ctx):
    """List stored credentials (secrets are not shown)."""
    repo = get_repository(ctx, require=False)
    credentials = repo.credentials.list()
    if not credentials:
        click.echo(info("No credentials stored"))
        return
    for credential in credentials:
        click.echo(f"{credential.remote_key}\t{credential.username}")
