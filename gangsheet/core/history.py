"""
Gang Sheet Undo History

Linear snapshot history over the object list. Each entry is a full,
immutable object-list snapshot; a cursor marks the current one.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .shapes import DesignObject

logger = logging.getLogger(__name__)

Snapshot = Tuple[DesignObject, ...]


@dataclass(frozen=True)
class History:
    """
    Cursor-addressed sequence of object-list snapshots.

    Invariant: ``0 <= cursor < len(entries)``. Entries after the cursor are
    the redo branch; the next commit discards them.
    """
    entries: Tuple[Snapshot, ...] = ((),)
    cursor: int = 0
    max_entries: Optional[int] = None

    def __post_init__(self):
        if not self.entries:
            raise ValueError("History needs at least one entry")
        if not 0 <= self.cursor < len(self.entries):
            raise ValueError(
                f"History cursor {self.cursor} out of range for {len(self.entries)} entries"
            )

    @classmethod
    def initial(cls, objects: Iterable[DesignObject] = (),
                max_entries: Optional[int] = None) -> 'History':
        """A history holding a single snapshot."""
        return cls(entries=(tuple(objects),), cursor=0, max_entries=max_entries)

    @property
    def current(self) -> Snapshot:
        """The snapshot under the cursor."""
        return self.entries[self.cursor]

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0

    @property
    def can_redo(self) -> bool:
        return self.cursor < len(self.entries) - 1

    def __len__(self) -> int:
        return len(self.entries)

    def commit(self, objects: Iterable[DesignObject]) -> 'History':
        """
        Record a new snapshot.

        Truncates everything after the cursor, appends the snapshot and moves
        the cursor to it. When ``max_entries`` is set the oldest entries are
        dropped.
        """
        entries = self.entries[:self.cursor + 1] + (tuple(objects),)
        dropped = len(self.entries) - self.cursor - 1
        if dropped:
            logger.debug(f"History commit discarded {dropped} redo entries")
        if self.max_entries is not None and len(entries) > self.max_entries:
            entries = entries[len(entries) - self.max_entries:]
        return History(entries=entries, cursor=len(entries) - 1,
                       max_entries=self.max_entries)

    def undo(self) -> 'History':
        """Step back one snapshot; no-op at the first entry."""
        if not self.can_undo:
            return self
        return History(entries=self.entries, cursor=self.cursor - 1,
                       max_entries=self.max_entries)

    def redo(self) -> 'History':
        """Step forward one snapshot; no-op at the last entry."""
        if not self.can_redo:
            return self
        return History(entries=self.entries, cursor=self.cursor + 1,
                       max_entries=self.max_entries)
