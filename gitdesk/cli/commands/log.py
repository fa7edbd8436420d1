"""Log command - show commit history."""

from datetime import datetime, timedelta, timezone

import click
from colorama import Fore, Style

from gitdesk.cli.context import get_repository
from gitdesk.cli.output import info


def format_date(timestamp: int, offset_minutes: int) -> str:
    tz = timezone(timedelta(minutes=offset_minutes))
    return datetime.fromtimestamp(timestamp, tz).strftime('%a %b %d %H:%M:%S %Y %z')


@click.command('log')
@click.argument('ref', required=False)
@click.option('-n', '--max-count', 'depth', type=int, default=50, show_default=True,
              help='Limit the number of commits')
@click.option('--oneline', is_flag=True, help='One commit per line')
@click.pass_context
def log_cmd(ctx, ref, depth, oneline):
    """
    Show commit history.

    Examples:
        gitdesk log
        gitdesk log -n 5 --oneline
        gitdesk log feature
    """
    repo = get_repository(ctx)
    commits = repo.log(ref=ref, depth=depth)
    if not commits:
        click.echo(info("No commits yet"))
        return

    for commit in commits:
        if oneline:
            click.echo(f"{Fore.YELLOW}{commit.short_oid}{Style.RESET_ALL} {commit.summary}")
            continue
        click.echo(f"{Fore.YELLOW}commit {commit.oid}{Style.RESET_ALL}")
        if len(commit.parents) > 1:
            click.echo(f"Merge: {' '.join(p[:7] for p in commit.parents)}")
        click.echo(f"Author: {commit.author}")
        click.echo(f"Date:   {format_date(commit.author.timestamp, commit.author.timezone_offset)}")
        click.echo()
        for line in commit.message.rstrip('\n').split('\n'):
            click.echo(f"    {line}")
        click.echo()
