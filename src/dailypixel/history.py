from __future__ import annotations

from typing import List

from .grid import PixelGrid, Snapshot


MAX_HISTORY = 20


class HistoryStack:
    """
    Linear undo history of grid snapshots.

    `step` indexes the newest entry that has not been undone; -1 means
    there is nothing to undo. A push after undo discards the undone
    entries. There is no redo.
    """

    def __init__(self, limit: int = MAX_HISTORY) -> None:
        if limit < 1:
            raise ValueError("history limit must be >= 1")
        self.limit = limit
        self._entries: List[Snapshot] = []
        self.step = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return self.step >= 0

    def push(self, grid: PixelGrid) -> None:
        del self._entries[self.step + 1 :]
        self._entries.append(grid.snapshot())
        if len(self._entries) > self.limit:
            del self._entries[0]
        self.step = len(self._entries) - 1

    def undo(self, grid: PixelGrid) -> bool:
        """Restore the grid from the current entry; False if nothing to undo."""
        if self.step < 0:
            return False
        grid.restore(self._entries[self.step])
        self.step -= 1
        return True

    def clear(self) -> None:
        self._entries = []
        self.step = -1

    def entries(self) -> List[Snapshot]:
        return list(self._entries)
