"""CLI output utilities and formatting."""

from colorama import Fore, Style

from gitdesk.core.status import Category

BANNER = f"""
{Fore.YELLOW}+--------------------------------------------+{Style.RESET_ALL}
{Fore.YELLOW}|{Style.RESET_ALL}  {Fore.CYAN}{Style.BRIGHT}gitdesk{Style.RESET_ALL}                                   {Fore.YELLOW}|{Style.RESET_ALL}
{Fore.YELLOW}|{Style.RESET_ALL}  {Fore.WHITE}status, diff, merge and stash for git{Style.RESET_ALL}     {Fore.YELLOW}|{Style.RESET_ALL}
{Fore.YELLOW}+--------------------------------------------+{Style.RESET_ALL}
"""

CATEGORY_LABELS = {
    Category.ADDED: 'new file:',
    Category.MODIFIED: 'modified:',
    Category.DELETED: 'deleted:',
    Category.CONFLICT: 'both modified:',
    Category.UNTRACKED: 'untracked:',
}


def success(message: str) -> str:
    """Format success message in green."""
    return f"{Fore.GREEN}✓ {message}{Style.RESET_ALL}"


def info(message: str) -> str:
    """Format info message in cyan."""
    return f"{Fore.CYAN}→ {message}{Style.RESET_ALL}"


def warning(message: str) -> str:
    """Format warning message in yellow."""
    return f"{Fore.YELLOW}⚠ {message}{Style.RESET_ALL}"


def error(message: str) -> str:
    """Format error message in red."""
    return f"{Fore.RED}✗ {message}{Style.RESET_ALL}"


def status_line(entry, colour: str) -> str:
    label = CATEGORY_LABELS.get(entry.category, '')
    return f"  {colour}{label:<14} {entry.path}{Style.RESET_ALL}"


def progress_printer(echo):
    """Build an on_progress callback that prints one line per phase update."""
    def report(event):
        if event.total:
            echo(f"\r{event.phase}: {event.percent}% ({event.loaded}/{event.total})", nl=False)
        else:
            echo(f"\r{event.phase}: {event.loaded}", nl=False)
    return report
