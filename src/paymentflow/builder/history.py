"""
Linear undo/redo history over graph snapshots.

``entries[cursor]`` is always the graph on screen. Pushing after an undo drops
every entry past the cursor, so redo is not possible across a new edit. Undo
and redo only move the cursor; at either end they return None.
"""

from typing import List, Optional, Tuple

from paymentflow.builder.types import GraphSnapshot

class HistoryStack:
    """
    Snapshot history with a cursor.

    Args:
        max_entries: Optional cap. When exceeded, the oldest entries are
            dropped and the cursor shifts with them.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: List[GraphSnapshot] = []
        self._cursor: int = -1
        self._max_entries = max_entries

    @property
    def entries(self) -> Tuple[GraphSnapshot, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[GraphSnapshot]:
        if not self._entries:
            return None
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, snapshot: GraphSnapshot) -> None:
        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot)
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]
        self._cursor = len(self._entries) - 1

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(self) -> Optional[GraphSnapshot]:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[GraphSnapshot]:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = -1
