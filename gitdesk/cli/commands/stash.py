"""Stash command - park working tree changes."""

from datetime import datetime

import click
from colorama import Fore, Style

from gitdesk.cli.context import command_errors, get_repository, parse_stash_ref
from gitdesk.cli.output import info, success, warning
from gitdesk.core.errors import NoChangesError


@click.group('stash', invoke_without_command=True)
@click.pass_context
def stash_cmd(ctx):
    """Stash changes in the working directory.

    Use 'gitdesk stash' to save changes and clean the working directory.
    Use 'gitdesk stash pop' to restore the most recent stash.
    Use 'gitdesk stash list' to see all stashes.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(push)


@stash_cmd.command('push')
@click.option('-m', '--message', help='Stash message')
@click.pass_context
def push(ctx, message=None):
    """Save changes to the stash (default action)."""
    repo = get_repository(ctx)
    _recover(repo)
    with command_errors("Failed to stash changes"):
        try:
            entry = repo.stash(message)
        except NoChangesError as e:
            click.echo(info(str(e)))
            return
    click.echo(success("Saved working directory state"))
    click.echo(info(f"  {entry.message}"))


@stash_cmd.command('list')
@click.pass_context
def list_stashes(ctx):
    """List all stashed changes."""
    repo = get_repository(ctx)
    with command_errors("Failed to list stashes"):
        entries = repo.stash_list()

    if not entries:
        click.echo(info("No stashed changes"))
        return

    for position, entry in enumerate(entries):
        date_str = datetime.fromtimestamp(entry.timestamp).strftime("%b %d %H:%M")
        marker = '' if entry.complete else f" {Fore.RED}[incomplete]{Style.RESET_ALL}"
        click.echo(f"{Fore.YELLOW}stash@{{{position}}}{Style.RESET_ALL}: "
                   f"On {entry.source_branch}: {entry.message} "
                   f"({date_str}, {entry.archive_id[:8]}){marker}")


@stash_cmd.command('show')
@click.argument('stash_ref', required=False)
@click.pass_context
def show(ctx, stash_ref):
    """Show the paths captured by a stash entry (default: latest)."""
    repo = get_repository(ctx)
    ref = parse_stash_ref(stash_ref) if stash_ref else None
    with command_errors("Failed to show stash"):
        paths = repo.stash_show(ref)
    for path in paths:
        click.echo(f"  {path}")


@stash_cmd.command('pop')
@click.argument('stash_ref', required=False)
@click.pass_context
def pop(ctx, stash_ref):
    """Restore a stash entry and remove it (default: latest)."""
    repo = get_repository(ctx)
    _recover(repo)
    ref = parse_stash_ref(stash_ref) if stash_ref else None
    with command_errors("Failed to pop stash"):
        entry = repo.stash_pop(ref)
    click.echo(success(f"Restored: {entry.message}"))


@stash_cmd.command('drop')
@click.argument('stash_ref', default='0')
@click.pass_context
def drop(ctx, stash_ref):
    """Discard a stash entry."""
    repo = get_repository(ctx)
    with command_errors("Failed to drop stash"):
        entry = repo.stash_drop(parse_stash_ref(stash_ref))
    click.echo(success(f"Dropped: {entry.message}"))


@stash_cmd.command('clear')
@click.pass_context
def clear(ctx):
    """Discard every stash entry."""
    repo = get_repository(ctx)
    with command_errors("Failed to clear stashes"):
        count = repo.stash_clear()
    click.echo(success(f"Cleared {count} stash entr{'y' if count == 1 else 'ies'}"))


@stash_cmd.command('recover')
@click.pass_context
def recover(ctx):
    """Mark stashes left incomplete by an interrupted push as complete."""
    repo = get_repository(ctx)
    if not _recover(repo):
        click.echo(info("No interrupted stashes"))


def _recover(repo):
    with command_errors("Failed to recover stashes"):
        recovered = repo.recover_stashes()
    for entry in recovered:
        click.echo(warning(f"Recovered interrupted stash: {entry.message}"))
    return recovered
