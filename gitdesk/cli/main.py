"""Main CLI entry point for gitdesk."""

import logging

import click
from colorama import init

from gitdesk import __version__
from gitdesk.cli.output import BANNER
from gitdesk.cli.commands import (init_cmd, clone_cmd, status_cmd, add_cmd, unstage_cmd,
                                  rm_cmd, commit_cmd, log_cmd, branch_cmd, checkout_cmd,
                                  diff_cmd, merge_cmd, stash_cmd, tag_cmd, remote_cmd,
                                  fetch_cmd, pull_cmd, push_cmd, reset_cmd, config_cmd,
                                  credential_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class GitdeskGroup(click.Group):
    """Custom Group class to display banner before help."""

    def format_help(self, ctx, formatter):
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=GitdeskGroup)
@click.version_option(version=__version__)
@click.option('-C', '--directory', default='.', type=click.Path(file_okay=False),
              help='Run as if started in this directory')
@click.option('-v', '--verbose', is_flag=True, help='Log debug output to stderr')
@click.pass_context
def cli(ctx, directory, verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    ctx.ensure_object(dict)
    ctx.obj['directory'] = directory


for command in (init_cmd, clone_cmd, status_cmd, add_cmd, unstage_cmd, rm_cmd, commit_cmd,
                log_cmd, branch_cmd, checkout_cmd, diff_cmd, merge_cmd, stash_cmd, tag_cmd,
                remote_cmd, fetch_cmd, pull_cmd, push_cmd, reset_cmd, config_cmd,
                credential_cmd):
    cli.add_command(command)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
