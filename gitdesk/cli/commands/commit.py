"""Commit command - record staged changes."""

import click

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import error, info, success
from gitdesk.engine.base import Signature


def parse_author(value: str) -> Signature:
    """Parse 'Name <email>' into a Signature."""
    if '<' not in value or not value.rstrip().endswith('>'):
        raise click.BadParameter("expected 'Name <email>'", param_hint='--author')
    name, email = value.rsplit('<', 1)
    return Signature(name=name.strip(), email=email.rstrip()[:-1].strip())


@click.command('commit')
@click.option('-m', '--message', help='Commit message')
@click.option('--author', help='Author name and email (format: "Name <email>")')
@click.pass_context
def commit_cmd(ctx, message, author):
    """
    Record changes to the repository.

    During a merge the prepared merge message is used when -m is omitted.

    Examples:
        gitdesk commit -m "Initial commit"
        gitdesk commit -m "Fix" --author "Jane <jane@example.com>"
    """
    repo = get_repository(ctx)
    signature = parse_author(author) if author else repo.get_author()

    if not message:
        with command_errors("Failed to read merge state"):
            merge_message = repo.get_merge_message()
        if merge_message is None:
            click.echo(error("Commit message required. Use -m \"message\""))
            raise click.Abort()
        message = merge_message
        click.echo(info(f"Using merge message: {message}"))

    with command_errors("Failed to create commit"):
        oid = repo.commit(message, author=signature)
    click.echo(success(f"Created commit {oid[:7]}"))
    click.echo(info(f"Author: {signature}"))

