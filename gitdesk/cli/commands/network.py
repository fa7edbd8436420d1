"""Network commands - fetch, pull and push."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, progress_printer, success
from gitdesk.engine.base import Auth


def credential_options(command):
    command = click.option('-p', '--password', help='Password or token for HTTP remotes')(command)
    command = click.option('-u', '--username', help='Username for HTTP remotes')(command)
    return command


def _credentials(username, password):
    return Auth(username, password) if username else None


@click.command('fetch')
@click.argument('remote', default='origin')
@click.argument('ref', required=False)
@credential_options
@click.pass_context
def fetch_cmd(ctx, remote, ref, username, password):
    """
    Download objects and refs from a remote.

    Examples:
        gitdesk fetch
        gitdesk fetch upstream
    """
    repo = get_repository(ctx)
    click.echo(info(f"Fetching from {remote}..."))
    with command_errors("Fetch failed"):
        repo.fetch(remote, ref=ref, credentials=_credentials(username, password),
                   on_progress=progress_printer(click.echo))
    click.echo()
    click.echo(success(f"Fetched {remote}"))


@click.command('pull')
@click.argument('remote', default='origin')
@click.argument('ref', required=False)
@credential_options
@click.pass_context
def pull_cmd(ctx, remote, ref, username, password):
    """
    Fetch from a remote and integrate it into the current branch.

    Examples:
        gitdesk pull
        gitdesk pull origin main
    """
    repo = get_repository(ctx)
    click.echo(info(f"Pulling from {remote}..."))
    with command_errors("Pull failed"):
        repo.pull(remote, ref=ref, credentials=_credentials(username, password),
                  on_progress=progress_printer(click.echo))
    click.echo()
    click.echo(success(f"Pulled {remote}"))


@click.command('push')
@click.argument('remote', default='origin')
@click.argument('ref', required=False)
@click.option('-f', '--force', is_flag=True, help='Force the update of remote refs')
@credential_options
@click.pass_context
def push_cmd(ctx, remote, ref, force, username, password):
    """
    Update remote refs with local commits.

    Examples:
        gitdesk push
        gitdesk push origin feature
        gitdesk push --force
    """
    repo = get_repository(ctx)
    click.echo(info(f"Pushing to {remote}..."))
    with command_errors("Push failed"):
        repo.push(remote, ref=ref, force=force,
                  credentials=_credentials(username, password),
                  on_progress=progress_printer(click.echo))
    click.echo()
    click.echo(success(f"Pushed to {remote}"))
