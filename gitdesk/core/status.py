"""Working-tree status classification.

The engine describes every path of interest with a three-slot signal:
how HEAD, the working tree and the stage (index) relate to each other.
This module turns that signal into a semantic category.

Slot meanings:

    head     ABSENT  - path not in HEAD
             MATCHES - path present in HEAD
    workdir  ABSENT  - path not in the working tree
             MATCHES - working tree content equals HEAD
             DIFFERS - working tree content differs from HEAD
    stage    ABSENT  - path not in the index
             MATCHES - index content equals HEAD
             DIFFERS - index content equals the working tree (differs from HEAD)
             DIFFERS_FROM_BOTH - index differs from HEAD and working tree
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, List, Tuple


class Slot(IntEnum):
    """Presence/equality signal for one of head, workdir or stage."""
    ABSENT = 0
    MATCHES = 1
    DIFFERS = 2
    DIFFERS_FROM_BOTH = 3


class Category(Enum):
    """Semantic status of a path."""
    UNTRACKED = 'untracked'
    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'
    CONFLICT = 'conflict'
    UNMODIFIED = 'unmodified'


@dataclass(frozen=True)
class StatusSignal:
    """Raw per-path signal produced by the engine."""
    path: str
    head: Slot
    workdir: Slot
    stage: Slot
    conflicted: bool = False

    def __post_init__(self):
        # Accept raw 0..3 codes from callers and coerce them to Slot
        object.__setattr__(self, 'head', Slot(self.head))
        object.__setattr__(self, 'workdir', Slot(self.workdir))
        object.__setattr__(self, 'stage', Slot(self.stage))

    @property
    def triple(self) -> Tuple[Slot, Slot, Slot]:
        return (self.head, self.workdir, self.stage)


@dataclass(frozen=True)
class FileStatusEntry:
    """Classified status of one path."""
    path: str
    category: Category
    staged: bool
    raw_signal: Tuple[Slot, Slot, Slot]

    def to_dict(self) -> dict:
        return {
            'path': self.path,
            'category': self.category.value,
            'staged': self.staged,
            'raw_signal': [int(slot) for slot in self.raw_signal],
        }


A, M, D, B = Slot.ABSENT, Slot.MATCHES, Slot.DIFFERS, Slot.DIFFERS_FROM_BOTH

# (head, workdir, stage) -> (category, staged)
STATUS_TABLE = {
    (A, D, A): (Category.UNTRACKED, False),
    (A, D, D): (Category.ADDED, True),
    (A, D, B): (Category.ADDED, False),
    (M, D, M): (Category.MODIFIED, False),
    (M, D, D): (Category.MODIFIED, True),
    (M, D, B): (Category.MODIFIED, False),
    (M, A, A): (Category.DELETED, True),
    (M, A, M): (Category.DELETED, False),
    (M, M, M): (Category.UNMODIFIED, False),
}

del A, M, D, B


def classify(signal: StatusSignal) -> Tuple[Category, bool]:
    """
    Classify one signal.

    Total over every input: triples missing from the table are
    UNMODIFIED, and a conflicted path is always CONFLICT (unstaged).

    Args:
        signal: Engine signal for one path

    Returns:
        Tuple of (category, staged)
    """
    if signal.conflicted:
        return Category.CONFLICT, False
    return STATUS_TABLE.get(signal.triple, (Category.UNMODIFIED, False))


def classify_all(signals: Iterable[StatusSignal]) -> List[FileStatusEntry]:
    """
    Classify a status matrix, dropping unmodified paths.

    Args:
        signals: Engine signals, in the order the engine produced them

    Returns:
        FileStatusEntry list in input order
    """
    entries = []
    for signal in signals:
        category, staged = classify(signal)
        if category is Category.UNMODIFIED:
            continue
        entries.append(FileStatusEntry(
            path=signal.path,
            category=category,
            staged=staged,
            raw_signal=signal.triple,
        ))
    return entries
