from liveedit.events.bus import EventBus
from liveedit.events.types import (
    HistoryChanged,
    HoverChanged,
    SelectionChanged,
    StylesPatched,
    SyncStateChanged,
    TextPatched,
    UploadCompleted,
)

__all__ = [
    "EventBus",
    "HistoryChanged",
    "HoverChanged",
    "SelectionChanged",
    "StylesPatched",
    "SyncStateChanged",
    "TextPatched",
    "UploadCompleted",
]
