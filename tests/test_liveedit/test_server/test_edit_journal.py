"""Tests for exact undo/redo of recorded tag edits."""

from liveedit.model.change import LocatorHints
from liveedit.server import EditJournal

SOURCE = '<div>\n  <h1 className="text-xl font-bold">Hi there</h1>\n</div>\n'
BEFORE = '<h1 className="text-xl">'
AFTER = '<h1 className="text-xl font-bold">'
HINTS = LocatorHints(selector="h1", line_number=2)


class TestEditJournal:
    def test_undo_swaps_back(self):
        journal = EditJournal()
        journal.record("e1", "src/App.tsx", BEFORE, AFTER)
        restored = journal.replay("e1", "undo", "src/App.tsx", SOURCE, HINTS)
        assert restored == SOURCE.replace(AFTER, BEFORE)

    def test_redo_swaps_forward(self):
        journal = EditJournal()
        journal.record("e1", "src/App.tsx", BEFORE, AFTER)
        undone = SOURCE.replace(AFTER, BEFORE)
        assert journal.replay("e1", "redo", "src/App.tsx", undone, HINTS) == SOURCE

    def test_unique_text_without_hints(self):
        journal = EditJournal()
        journal.record("e1", "src/App.tsx", BEFORE, AFTER)
        restored = journal.replay("e1", "undo", "src/App.tsx", SOURCE, LocatorHints())
        assert restored == SOURCE.replace(AFTER, BEFORE)

    def test_unknown_entry_or_other_file(self):
        journal = EditJournal()
        journal.record("e1", "src/App.tsx", BEFORE, AFTER)
        assert journal.replay("e2", "undo", "src/App.tsx", SOURCE, HINTS) is None
        assert journal.replay("e1", "undo", "src/Other.tsx", SOURCE, HINTS) is None

    def test_stale_record(self):
        journal = EditJournal()
        journal.record("e1", "src/App.tsx", BEFORE, '<h1 className="text-xl italic">')
        assert journal.replay("e1", "undo", "src/App.tsx", SOURCE, HINTS) is None

    def test_bounded(self):
        journal = EditJournal(max_entries=2)
        for entry_id in ("a", "b", "c"):
            journal.record(entry_id, "f", "x", "y")
        assert len(journal) == 2
        assert "a" not in journal
        assert journal.get("c").after == "y"
