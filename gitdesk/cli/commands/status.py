"""Status command - show working tree status."""

import click
from colorama import Fore, Style

from gitdesk.cli.context import get_repository
from gitdesk.cli.output import info, status_line, success
from gitdesk.core.status import Category


@click.command('status')
@click.option('-s', '--short', 'short', is_flag=True, help='Give the output in short format')
@click.pass_context
def status_cmd(ctx, short):
    """
    Show the working tree status.

    Displays:
    - Changes staged for commit
    - Changes not staged for commit
    - Unmerged paths of a conflicted merge
    - Untracked files

    Examples:
        gitdesk status
        gitdesk status -s
    """
    repo = get_repository(ctx)
    entries = repo.status()

    if short:
        codes = {
            Category.ADDED: 'A', Category.MODIFIED: 'M', Category.DELETED: 'D',
            Category.CONFLICT: 'U', Category.UNTRACKED: '?',
        }
        for entry in entries:
            code = codes[entry.category]
            column = f"{code} " if entry.staged else f" {code}"
            if entry.category is Category.UNTRACKED:
                column = '??'
            click.echo(f"{column} {entry.path}")
        return

    branch = repo.get_current_branch()
    if branch:
        click.echo(f"On branch {Fore.CYAN}{branch}{Style.RESET_ALL}")
    else:
        click.echo(f"{Fore.YELLOW}HEAD detached{Style.RESET_ALL}")
    click.echo()

    staged = [e for e in entries if e.staged]
    conflicts = [e for e in entries if e.category is Category.CONFLICT]
    unstaged = [e for e in entries if not e.staged
                and e.category not in (Category.UNTRACKED, Category.CONFLICT)]
    untracked = [e for e in entries if e.category is Category.UNTRACKED]

    if staged:
        click.echo(Fore.GREEN + "Changes to be committed:" + Style.RESET_ALL)
        click.echo(info("  (use \"gitdesk unstage <file>...\" to unstage)"))
        for entry in staged:
            click.echo(status_line(entry, Fore.GREEN))
        click.echo()

    if conflicts:
        click.echo(Fore.RED + "Unmerged paths:" + Style.RESET_ALL)
        click.echo(info("  (fix conflicts and run \"gitdesk add <file>...\")"))
        for entry in conflicts:
            click.echo(status_line(entry, Fore.RED))
        click.echo()

    if unstaged:
        click.echo(Fore.YELLOW + "Changes not staged for commit:" + Style.RESET_ALL)
        click.echo(info("  (use \"gitdesk add <file>...\" to update what will be committed)"))
        for entry in unstaged:
            click.echo(status_line(entry, Fore.YELLOW))
        click.echo()

    if untracked:
        click.echo(Fore.RED + "Untracked files:" + Style.RESET_ALL)
        click.echo(info("  (use \"gitdesk add <file>...\" to include in what will be committed)"))
        for entry in untracked:
            click.echo(f"  {Fore.RED}{entry.path}{Style.RESET_ALL}")
        click.echo()

    if not entries:
        click.echo(success("Nothing to commit, working tree clean"))
    elif not staged:
        click.echo(info("No changes added to commit (use \"gitdesk add\")"))
