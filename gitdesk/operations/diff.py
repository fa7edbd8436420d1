"""Line-level diff by longest-common-subsequence alignment."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from gitdesk.core.errors import ValidationError


class LineKind(Enum):
    CONTEXT = 'context'
    ADD = 'add'
    DELETE = 'delete'


class ChangeType(Enum):
    ADD = 'add'
    MODIFY = 'modify'
    DELETE = 'delete'


@dataclass
class DiffLine:
    """One line of an edit script."""
    kind: LineKind
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None

    @property
    def prefix(self) -> str:
        if self.kind is LineKind.ADD:
            return '+'
        if self.kind is LineKind.DELETE:
            return '-'
        return ' '

    def __str__(self) -> str:
        return f"{self.prefix}{self.content}"


@dataclass
class DiffHunk:
    """Represents a continuous block of changes."""
    old_start: int
    old_line_count: int
    new_start: int
    new_line_count: int
    lines: List[DiffLine] = field(default_factory=list)

    def __str__(self) -> str:
        return (f"@@ -{self.old_start},{self.old_line_count} "
                f"+{self.new_start},{self.new_line_count} @@")


@dataclass
class DiffResult:
    """The diff of a single file."""
    path: str
    change_type: ChangeType
    additions: int = 0
    deletions: int = 0
    hunks: List[DiffHunk] = field(default_factory=list)
    is_binary: bool = False

    def to_dict(self) -> dict:
        return {
            'path': self.path,
            'change_type': self.change_type.value,
            'additions': self.additions,
            'deletions': self.deletions,
            'is_binary': self.is_binary,
            'hunks': [
                {
                    'old_start': h.old_start,
                    'old_line_count': h.old_line_count,
                    'new_start': h.new_start,
                    'new_line_count': h.new_line_count,
                    'lines': [
                        {
                            'kind': line.kind.value,
                            'content': line.content,
                            'old_line_number': line.old_line_number,
                            'new_line_number': line.new_line_number,
                        }
                        for line in h.lines
                    ],
                }
                for h in self.hunks
            ],
        }


def _split(text: Optional[str]) -> List[str]:
    # A missing side has no lines; an empty file has one empty line
    if text is None:
        return []
    return text.split('\n')


def _is_binary(text: Optional[str]) -> bool:
    return text is not None and '\x00' in text


class DiffEngine:
    """
    Computes line-level diffs between two texts.

    The alignment is a full (n+1) x (m+1) LCS table, so time and memory
    are O(n*m) in the line counts of the two sides. Very large files are
    slow to diff.
    """

    def lcs(self, old_lines: List[str], new_lines: List[str]) -> List[Tuple[int, int]]:
        """
        Longest common subsequence of two line lists.

        Args:
            old_lines: Lines of the old side
            new_lines: Lines of the new side

        Returns:
            Matched (old_index, new_index) pairs in increasing order
        """
        n, m = len(old_lines), len(new_lines)
        table = [[0] * (m + 1) for _ in range(n + 1)]
        for i in range(1, n + 1):
            for j in range(1, m + 1):
                if old_lines[i - 1] == new_lines[j - 1]:
                    table[i][j] = table[i - 1][j - 1] + 1
                else:
                    table[i][j] = max(table[i - 1][j], table[i][j - 1])

        matches = []
        i, j = n, m
        while i > 0 and j > 0:
            if old_lines[i - 1] == new_lines[j - 1]:
                matches.append((i - 1, j - 1))
                i -= 1
                j -= 1
            elif table[i - 1][j] > table[i][j - 1]:
                i -= 1
            else:
                j -= 1
        matches.reverse()
        return matches

    def diff(self, old_text: Optional[str], new_text: Optional[str], path: str = '') -> DiffResult:
        """
        Compute the edit script turning old_text into new_text.

        Args:
            old_text: Old content (None when the file did not exist)
            new_text: New content (None when the file was deleted)
            path: File path recorded on the result

        Returns:
            DiffResult with at most one hunk covering both files
        """
        if old_text is None and new_text is not None:
            change_type = ChangeType.ADD
        elif new_text is None and old_text is not None:
            change_type = ChangeType.DELETE
        else:
            change_type = ChangeType.MODIFY

        if _is_binary(old_text) or _is_binary(new_text):
            return DiffResult(path=path, change_type=change_type, is_binary=True)

        old_lines = _split(old_text)
        new_lines = _split(new_text)

        lines: List[DiffLine] = []
        old_idx = new_idx = 0
        for old_match, new_match in self.lcs(old_lines, new_lines):
            while old_idx < old_match:
                lines.append(DiffLine(LineKind.DELETE, old_lines[old_idx],
                                      old_line_number=old_idx + 1))
                old_idx += 1
            while new_idx < new_match:
                lines.append(DiffLine(LineKind.ADD, new_lines[new_idx],
                                      new_line_number=new_idx + 1))
                new_idx += 1
            lines.append(DiffLine(LineKind.CONTEXT, old_lines[old_idx],
                                  old_line_number=old_idx + 1,
                                  new_line_number=new_idx + 1))
            old_idx += 1
            new_idx += 1

        for idx in range(old_idx, len(old_lines)):
            lines.append(DiffLine(LineKind.DELETE, old_lines[idx], old_line_number=idx + 1))
        for idx in range(new_idx, len(new_lines)):
            lines.append(DiffLine(LineKind.ADD, new_lines[idx], new_line_number=idx + 1))

        hunks = []
        if lines:
            hunks.append(DiffHunk(1, len(old_lines), 1, len(new_lines), lines))

        return DiffResult(
            path=path,
            change_type=change_type,
            additions=sum(1 for line in lines if line.kind is LineKind.ADD),
            deletions=sum(1 for line in lines if line.kind is LineKind.DELETE),
            hunks=hunks,
        )

    def apply(self, old_text: Optional[str], result: DiffResult) -> Optional[str]:
        """
        Rebuild the new text from the old text and a diff result.

        Raises:
            ValidationError: If the result is binary or does not match old_text
        """
        if result.is_binary:
            raise ValidationError("Cannot apply a binary diff")
        if result.change_type is ChangeType.DELETE:
            return None
        if not result.hunks:
            return old_text

        old_lines = _split(old_text)
        new_lines = []
        for hunk in result.hunks:
            for line in hunk.lines:
                if line.kind is LineKind.ADD:
                    new_lines.append(line.content)
                    continue
                number = line.old_line_number
                if number is None or number > len(old_lines) or old_lines[number - 1] != line.content:
                    raise ValidationError(
                        f"Diff does not apply to {result.path or 'text'} at line {number}"
                    )
                if line.kind is LineKind.CONTEXT:
                    new_lines.append(line.content)
        return '\n'.join(new_lines)


def format_stat(results: List[DiffResult]) -> str:
    """Summarise results like 'git diff --stat'."""
    if not results:
        return ''
    width = max(len(r.path) for r in results)
    output = []
    for r in results:
        if r.is_binary:
            output.append(f" {r.path.ljust(width)} | Bin")
        else:
            changes = r.additions + r.deletions
            output.append(f" {r.path.ljust(width)} | {changes:>4} "
                          f"{'+' * min(r.additions, 40)}{'-' * min(r.deletions, 40)}")
    additions = sum(r.additions for r in results)
    deletions = sum(r.deletions for r in results)
    output.append(f" {len(results)} file(s) changed, {additions} insertion(s)(+), "
                  f"{deletions} deletion(s)(-)")
    return '\n'.join(output)


def format_diff(results: List[DiffResult], color: bool = True) -> str:
    """
    Format diff results as unified diff text.

    Args:
        results: Diff results to render
        color: Whether to use color output

    Returns:
        Formatted diff string
    """
    from colorama import Fore, Style

    def paint(text: str, colour: str) -> str:
        return f"{colour}{text}{Style.RESET_ALL}" if color else text

    output = []
    for result in results:
        output.append(paint(f"diff --git a/{result.path} b/{result.path}", Style.BRIGHT))
        if result.change_type is ChangeType.ADD:
            output.append("new file mode 100644")
            output.append("--- /dev/null")
            output.append(f"+++ b/{result.path}")
        elif result.change_type is ChangeType.DELETE:
            output.append("deleted file mode 100644")
            output.append(f"--- a/{result.path}")
            output.append("+++ /dev/null")
        else:
            output.append(f"--- a/{result.path}")
            output.append(f"+++ b/{result.path}")

        if result.is_binary:
            output.append("Binary files differ")
            continue

        for hunk in result.hunks:
            output.append(paint(str(hunk), Fore.CYAN))
            for line in hunk.lines:
                if line.kind is LineKind.ADD:
                    output.append(paint(str(line), Fore.GREEN))
                elif line.kind is LineKind.DELETE:
                    output.append(paint(str(line), Fore.RED))
                else:
                    output.append(str(line))

    return '\n'.join(output)
