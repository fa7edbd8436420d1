"""Shared helpers for CLI commands."""

import logging
import re
from contextlib import contextmanager
from typing import Union

import click
from dulwich.errors import GitProtocolError
from dulwich.porcelain import Error as PorcelainError

from gitdesk.cli.output import error
from gitdesk.core.errors import GitdeskError
from gitdesk.core.repository import RepositoryFacade

logger = logging.getLogger(__name__)

_STASH_REF = re.compile(r'^stash@\{(\d+)\}$')


def get_repository(ctx: click.Context, require: bool = True) -> RepositoryFacade:
    """
    Build the facade for the directory given with -C (default: cwd).

    Args:
        ctx: Click context
        require: Abort unless the directory is a repository
    """
    directory = (ctx.obj or {}).get('directory', '.')
    repo = RepositoryFacade(directory)
    if require and not repo.is_repository():
        click.echo(error(f"Not a git repository: {repo.dir}"))
        raise click.Abort()
    return repo


@contextmanager
def command_errors(action: str):
    """Report gitdesk and dulwich failures as '<action>: <reason>' and abort."""
    try:
        yield
    except (GitdeskError, PorcelainError, GitProtocolError, OSError) as e:
        logger.debug("%s failed", action, exc_info=True)
        click.echo(error(f"{action}: {e}"))
        raise click.Abort()


def parse_stash_ref(ref: str) -> Union[int, str]:
    """
    Parse a stash reference.

    Accepts 'stash@{N}', a bare position 'N' or an archive id.
    """
    match = _STASH_REF.match(ref)
    if match:
        return int(match.group(1))
    if ref.isdigit():
        return int(ref)
    return ref
