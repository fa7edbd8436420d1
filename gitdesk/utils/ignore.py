"""Ignore pattern matching for .gitignore files.

Used by the working-tree scan so that ignored paths never show up as
untracked. Paths already tracked in HEAD or the index are reported
regardless of ignore rules; that decision belongs to the caller.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

IGNORE_FILE = '.gitignore'
EXCLUDE_FILE = Path('info') / 'exclude'


def _glob_to_regex(glob: str) -> str:
    """Translate the body of a gitignore glob (no leading '/') to regex."""
    out = []
    i = 0
    while i < len(glob):
        c = glob[i]
        if c == '*':
            if glob[i:i + 3] == '**/':
                out.append('(?:.*/)?')
                i += 3
            elif glob[i:i + 2] == '**':
                out.append('.*')
                i += 2
            else:
                out.append('[^/]*')
                i += 1
        elif c == '?':
            out.append('[^/]')
            i += 1
        elif c == '[':
            j = i + 1
            if j < len(glob) and glob[j] == '!':
                j += 1
            if j < len(glob) and glob[j] == ']':
                j += 1
            while j < len(glob) and glob[j] != ']':
                j += 1
            if j >= len(glob):
                out.append(re.escape(c))
                i += 1
                continue
            body = glob[i + 1:j]
            if body.startswith('!'):
                body = '^' + body[1:]
            out.append('[' + body + ']')
            i = j + 1
        elif c == '\\' and i + 1 < len(glob):
            out.append(re.escape(glob[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    return ''.join(out)


class IgnoreRule:
    """
    One line of an ignore file.

    ``base`` is the directory (relative to the repository root, '' for the
    root) holding the ignore file; patterns only apply below it.
    """

    def __init__(self, line: str, base: str = ''):
        self.source = line
        self.base = base
        self.negation = line.startswith('!')
        pattern = line[1:] if self.negation else line
        self.directory_only = pattern.endswith('/')
        pattern = pattern.rstrip('/')

        # A slash anywhere but the end anchors the pattern to ``base``
        anchored = '/' in pattern
        pattern = pattern.lstrip('/')
        body = _glob_to_regex(pattern)
        if anchored:
            self._regex = re.compile('^' + body + '$')
        else:
            self._regex = re.compile('(?:^|/)' + body + '$')

    def matches(self, path: str, is_dir: bool) -> bool:
        """
        Check a path (relative to the repository root) against this rule.

        Args:
            path: '/'-separated path
            is_dir: Whether the path is a directory
        """
        if self.base:
            prefix = self.base + '/'
            if not path.startswith(prefix):
                return False
            path = path[len(prefix):]
        if self.directory_only and not is_dir:
            return False
        return bool(self._regex.search(path))

    def __repr__(self) -> str:
        return f"IgnoreRule({self.source!r}, base={self.base!r})"


class IgnoreMatcher:
    """
    Collection of ignore rules; the last matching rule wins.

    A directory that is ignored hides everything below it, as in git: a
    negated rule cannot re-include a file inside an excluded directory.
    """

    def __init__(self):
        self.rules: List[IgnoreRule] = []
        self._cache: Dict[Tuple[str, bool], bool] = {}

    def add_pattern(self, line: str, base: str = '') -> None:
        line = line.rstrip('\n').rstrip()
        if not line or line.startswith('#'):
            return
        self.rules.append(IgnoreRule(line, base))
        self._cache.clear()

    def add_patterns(self, lines, base: str = '') -> None:
        for line in lines:
            self.add_pattern(line, base)

    def load_file(self, path: Path, base: str = '') -> bool:
        """
        Load patterns from an ignore file.

        Returns:
            True if the file existed and was read
        """
        if not path.is_file():
            return False
        try:
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.warning("Could not read ignore file %s: %s", path, e)
            return False
        self.add_patterns(text.splitlines(), base)
        return True

    def _match_self(self, path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(path, is_dir):
                ignored = not rule.negation
        return ignored

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        """
        Check if a path should be ignored.

        Args:
            path: Path relative to the repository root
            is_dir: Whether the path is a directory

        Returns:
            True if the path or one of its parent directories is ignored
        """
        path = path.replace('\\', '/').strip('/')
        key = (path, is_dir)
        if key in self._cache:
            return self._cache[key]

        parts = path.split('/')
        result = False
        for i in range(1, len(parts)):
            if self._match_self('/'.join(parts[:i]), True):
                result = True
                break
        else:
            result = self._match_self(path, is_dir)

        self._cache[key] = result
        return result


def load_repository_ignores(work_tree: Path, git_dir: Path = None) -> IgnoreMatcher:
    """
    Build the matcher for a working tree.

    Loads, in order: the built-in '.git/' rule, ``info/exclude`` from the
    git directory, and every ``.gitignore`` in the tree (outside ignored
    directories), each scoped to its own directory.

    Args:
        work_tree: Repository working directory
        git_dir: Git directory (defaults to <work_tree>/.git)

    Returns:
        Configured IgnoreMatcher
    """
    matcher = IgnoreMatcher()
    matcher.add_pattern('.git/')
    git_dir = git_dir or (work_tree / '.git')
    matcher.load_file(git_dir / EXCLUDE_FILE)
    matcher.load_file(work_tree / IGNORE_FILE)

    pending = [work_tree]
    while pending:
        directory = pending.pop()
        for child in sorted(directory.iterdir()):
            if not child.is_dir() or child.is_symlink():
                continue
            rel = child.relative_to(work_tree).as_posix()
            if matcher.is_ignored(rel, is_dir=True):
                continue
            matcher.load_file(child / IGNORE_FILE, base=rel)
            pending.append(child)
    return matcher
