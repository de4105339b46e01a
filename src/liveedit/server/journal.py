"""Remembers the exact tag text each committed edit replaced.

Undoing through the converter alone is lossy: reverting ``font-bold`` to a
computed ``400`` would add ``font-normal`` where the original tag had no
weight class at all. The journal lets undo and redo swap the recorded tag
text back instead.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from liveedit.config import LiveEditConfig
from liveedit.errors import LocateError
from liveedit.model.change import LocatorHints
from liveedit.patcher.locator import find_tag

logger = logging.getLogger(__name__)

MAX_ENTRIES = 500


@dataclass(frozen=True)
class JournalRecord:
    file_path: str
    before: str
    after: str


class EditJournal:
    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self.max_entries = max_entries
        self._records: OrderedDict[str, JournalRecord] = OrderedDict()

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def record(self, entry_id: str, file_path: str, before: str, after: str) -> None:
        self._records[entry_id] = JournalRecord(file_path, before, after)
        self._records.move_to_end(entry_id)
        while len(self._records) > self.max_entries:
            self._records.popitem(last=False)

    def get(self, entry_id: str) -> JournalRecord | None:
        return self._records.get(entry_id)

    def replay(
        self,
        entry_id: str,
        direction: str,
        file_path: str,
        source: str,
        hints: LocatorHints,
        config: LiveEditConfig | None = None,
    ) -> str | None:
        """Swap the recorded tag text for ``direction``; None if it cannot be done exactly."""
        record = self._records.get(entry_id)
        if record is None or record.file_path != file_path:
            return None
        current, wanted = (record.after, record.before) if direction == "undo" else (record.before, record.after)

        try:
            tag, _ = find_tag(source, hints, config)
        except LocateError:
            tag = None
        if tag is not None and tag.text(source) == current:
            return source[: tag.start] + wanted + source[tag.end + 1 :]

        if source.count(current) == 1:
            start = source.index(current)
            return source[:start] + wanted + source[start + len(current) :]

        logger.info("Journal entry %s no longer matches %s; falling back to conversion", entry_id, file_path)
        return None
