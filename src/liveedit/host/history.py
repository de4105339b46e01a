"""Linear undo history for committed style edits."""

from __future__ import annotations

from liveedit.model.change import HistoryEntry


class EditHistory:
    """Append-only entries with a cursor.

    ``index`` points at the most recent applied entry (-1 when nothing is
    applied). Pushing a new entry discards everything after the cursor.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self.index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def can_undo(self) -> bool:
        return self.index >= 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self._entries) - 1

    def push(self, entry: HistoryEntry) -> None:
        del self._entries[self.index + 1 :]
        self._entries.append(entry)
        self.index = len(self._entries) - 1

    def undo_entry(self) -> HistoryEntry | None:
        """The entry an undo would revert, without moving the cursor."""
        return self._entries[self.index] if self.can_undo else None

    def redo_entry(self) -> HistoryEntry | None:
        return self._entries[self.index + 1] if self.can_redo else None

    def step_back(self) -> None:
        if self.can_undo:
            self.index -= 1

    def step_forward(self) -> None:
        if self.can_redo:
            self.index += 1

    def find(self, entry_id: str) -> HistoryEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def discard(self, entry_id: str) -> HistoryEntry | None:
        """Drop an entry whose write never landed, keeping the cursor on the same predecessor."""
        for position, entry in enumerate(self._entries):
            if entry.id == entry_id:
                del self._entries[position]
                if position <= self.index:
                    self.index -= 1
                return entry
        return None
