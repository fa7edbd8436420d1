"""Branch command - list, create, delete and rename branches."""

import click
from colorama import Fore, Style

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, success


@click.command('branch')
@click.argument('name', required=False)
@click.argument('start_point', required=False)
@click.option('-d', '--delete', is_flag=True, help='Delete a branch')
@click.option('-m', '--move', 'new_name', help='Rename NAME to this name')
@click.option('-r', '--remote', help='List remote-tracking branches of this remote')
@click.pass_context
def branch_cmd(ctx, name, start_point, delete, new_name, remote):
    """
    List, create, delete or rename branches.

    Examples:
        gitdesk branch                 # List branches
        gitdesk branch feature         # Create branch at HEAD
        gitdesk branch fix v1.0        # Create branch at a tag or commit
        gitdesk branch -d feature      # Delete branch
        gitdesk branch old -m new      # Rename branch
        gitdesk branch -r origin       # List remote-tracking branches
    """
    repo = get_repository(ctx)

    if not name:
        branches = repo.list_branches(remote=remote)
        if not branches:
            click.echo(info("No branches yet"))
            return
        for branch in branches:
            tip = f" {Fore.YELLOW}{branch.last_commit}{Style.RESET_ALL}" if branch.last_commit else ''
            label = f"{remote}/{branch.name}" if remote else branch.name
            if branch.current:
                click.echo(f"* {Fore.GREEN}{label}{Style.RESET_ALL}{tip}")
            else:
                click.echo(f"  {label}{tip}")
        return

    with command_errors("Branch operation failed"):
        if delete:
            repo.delete_branch(name)
            click.echo(success(f"Deleted branch {name}"))
        elif new_name:
            repo.rename_branch(name, new_name)
            click.echo(success(f"Renamed branch {name} to {new_name}"))
        else:
            repo.create_branch(name, ref=start_point)
            click.echo(success(f"Created branch {name}"))
