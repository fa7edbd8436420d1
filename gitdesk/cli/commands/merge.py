"""Merge command - join histories."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import error, info, success, warning


@click.command('merge')
@click.argument('branch', required=False)
@click.option('-m', '--message', help='Merge commit message')
@click.option('--abort', is_flag=True, help='Abort the current merge')
@click.pass_context
def merge_cmd(ctx, branch, message, abort):
    """
    Merge a branch into the current branch.

    Examples:
        gitdesk merge feature
        gitdesk merge --abort
    """
    repo = get_repository(ctx)

    if abort:
        with command_errors("Failed to abort merge"):
            repo.abort_merge()
        click.echo(success("Merge aborted"))
        return

    if not branch:
        click.echo(error("Specify a branch to merge (or --abort)"))
        raise click.Abort()

    with command_errors("Merge failed"):
        outcome = repo.merge(branch, message=message)

    if outcome.already_merged:
        click.echo(info("Already up to date"))
    elif outcome.fast_forward:
        click.echo(success(f"Fast-forward to {branch}"))
    elif outcome.succeeded:
        click.echo(success(f"Merged {branch}"))
    else:
        click.echo(warning("Automatic merge failed; fix conflicts and then commit the result"))
        for path in outcome.conflicting_paths:
            click.echo(f"  CONFLICT: {path}")
        ctx.exit(1)
