"""Tag command - create, list and delete tags."""

import click
from colorama import Fore, Style

from gitdesk.cli.context import command_errors, get_repository
from gitdesk.cli.output import info, success


@click.command('tag')
@click.argument('name', required=False)
@click.argument('ref', required=False)
@click.option('-m', '--message', help='Create an annotated tag with this message')
@click.option('-d', '--delete', is_flag=True, help='Delete the tag')
@click.pass_context
def tag_cmd(ctx, name, ref, message, delete):
    """
    Create, list or delete tags.

    Examples:
        gitdesk tag                    # List tags
        gitdesk tag v1.0               # Lightweight tag at HEAD
        gitdesk tag v1.0 -m "Release"  # Annotated tag
        gitdesk tag -d v1.0            # Delete tag
    """
    repo = get_repository(ctx)

    if not name:
        tags = repo.list_tags()
        if not tags:
            click.echo(info("No tags"))
        for tag in tags:
            kind = 'annotated' if tag.annotated else 'lightweight'
            click.echo(f"{tag.name} {Fore.YELLOW}{tag.oid[:7]}{Style.RESET_ALL} ({kind})")
        return

    with command_errors("Tag operation failed"):
        if delete:
            repo.delete_tag(name)
            click.echo(success(f"Deleted tag '{name}'"))
        else:
            repo.create_tag(name, ref=ref, message=message)
            click.echo(success(f"Created tag '{name}'"))
