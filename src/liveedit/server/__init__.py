from liveedit.server.app import create_app
from liveedit.server.handler import DesignModeHandler
from liveedit.server.journal import EditJournal

__all__ = ["DesignModeHandler", "EditJournal", "create_app"]
