"""Progress reporting for long-running network operations.

dulwich writes the server's sideband progress text ("Counting objects:
 40% (2/5)\\r") to an error stream. ProgressStream is a file-like sink for
that stream which parses each line into a GitProgress and hands it to the
caller's callback.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_PROGRESS_LINE = re.compile(
    r'^(?:remote:\s*)?(?P<phase>[^:]+):\s+(?P<percent>\d+)%\s+\((?P<loaded>\d+)/(?P<total>\d+)\)'
)
_COUNT_LINE = re.compile(r'^(?:remote:\s*)?(?P<phase>[^:]+):\s+(?P<loaded>\d+)(?:,|\s|$)')


@dataclass
class GitProgress:
    """A progress event: how far a phase of the operation has got."""
    phase: str
    loaded: int = 0
    total: int = 0
    percent: int = 0

    @classmethod
    def of(cls, phase: str, loaded: int, total: int) -> 'GitProgress':
        percent = round(loaded / total * 100) if total else 0
        return cls(phase=phase, loaded=loaded, total=total, percent=percent)


def parse_progress_line(line: str) -> Optional[GitProgress]:
    """
    Parse one line of sideband progress text.

    Args:
        line: e.g. 'Receiving objects:  50% (3/6)' or 'Counting objects: 12'

    Returns:
        GitProgress, or None when the line carries no progress information
    """
    line = line.strip()
    match = _PROGRESS_LINE.match(line)
    if match:
        return GitProgress.of(
            match.group('phase').strip(),
            int(match.group('loaded')),
            int(match.group('total')),
        )
    match = _COUNT_LINE.match(line)
    if match:
        return GitProgress.of(match.group('phase').strip(), int(match.group('loaded')), 0)
    return None


class ProgressStream:
    """
    Writable binary stream that turns progress text into callbacks.

    Lines are terminated by either '\\n' or '\\r' (servers redraw the same
    line with carriage returns). Text without progress information is
    logged at DEBUG level.
    """

    def __init__(self, callback: Optional[Callable[[GitProgress], None]] = None):
        self.callback = callback
        self._buffer = ''

    def write(self, data) -> int:
        if isinstance(data, bytes):
            text = data.decode('utf-8', errors='replace')
        else:
            text = data
        self._buffer += text
        parts = re.split(r'[\r\n]', self._buffer)
        self._buffer = parts.pop()
        for part in parts:
            self._emit(part)
        return len(data)

    def _emit(self, line: str) -> None:
        if not line.strip():
            return
        event = parse_progress_line(line)
        if event is None:
            logger.debug("remote: %s", line.strip())
            return
        if self.callback is not None:
            self.callback(event)

    def flush(self) -> None:
        if self._buffer:
            self._emit(self._buffer)
            self._buffer = ''
