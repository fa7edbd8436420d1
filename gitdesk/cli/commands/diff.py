"""Diff command - show changes."""

import click

from gitdesk.cli.context import get_repository
from gitdesk.cli.output import info
from gitdesk.operations.diff import format_diff, format_stat


@click.command('diff')
@click.argument('path', required=False)
@click.option('--commit-a', help='Old side (default: HEAD)')
@click.option('--commit-b', help='New side (default: working tree)')
@click.option('--stat', 'stat', is_flag=True, help='Show a diffstat only')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.pass_context
def diff_cmd(ctx, path, commit_a, commit_b, stat, no_color):
    """
    Show changes between a commit and the working tree, or two commits.

    Examples:
        gitdesk diff                           # Every changed file vs HEAD
        gitdesk diff src/app.py                # One file
        gitdesk diff --commit-a v1.0 --commit-b main
        gitdesk diff --stat
    """
    repo = get_repository(ctx)
    results = [r for r in repo.diff(path=path, commit_a=commit_a, commit_b=commit_b)
               if r.is_binary or r.additions or r.deletions]
    if not results:
        click.echo(info("No changes"))
        return
    if stat:
        click.echo(format_stat(results))
    else:
        click.echo(format_diff(results, color=not no_color))
