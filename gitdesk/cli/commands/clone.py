"""Clone command - copy a remote repository."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, progress_printer, success, warning
from gitdesk.engine.base import Auth


@click.command('clone')
@click.argument('url')
@click.option('-b', '--branch', help='Branch to check out')
@click.option('--depth', type=int, default=1, show_default=True,
              help='History depth (0 for full history)')
@click.option('-u', '--username', help='Username for HTTP remotes')
@click.option('-p', '--password', help='Password or token for HTTP remotes')
@click.pass_context
def clone_cmd(ctx, url, branch, depth, username, password):
    """
    Clone a repository into the working directory.

    Anything already in the working directory is removed first.

    Examples:
        gitdesk -C work clone https://example.com/repo.git
        gitdesk -C work clone ../origin --depth 0
    """
    repo = get_repository(ctx, require=False)
    if repo.dir.is_dir() and any(repo.dir.iterdir()):
        click.echo(warning(f"Replacing existing content of {repo.dir}"))

    credentials = Auth(username, password) if username else None
    click.echo(info(f"Cloning {url}..."))
    with command_errors("Clone failed"):
        repo.clone(url, branch=branch, depth=depth or None, credentials=credentials,
                   on_progress=progress_printer(click.echo))
    click.echo()
    click.echo(success(f"Cloned into {repo.dir}"))
