from __future__ import annotations

from liveedit.model.change import HistoryEntry, LocatorHints, StyleChange
from liveedit.model.element import BoundingRect, ElementDescriptor, ElementType, SourceLocation
from liveedit.model.location import ElementLocation, LocationKind, TagSpan
from liveedit.model.upload import UploadBuffer, UploadState, UploadStatus

__all__ = [
    # element
    "BoundingRect",
    "ElementDescriptor",
    "ElementType",
    "SourceLocation",
    # change
    "HistoryEntry",
    "LocatorHints",
    "StyleChange",
    # location
    "ElementLocation",
    "LocationKind",
    "TagSpan",
    # upload
    "UploadBuffer",
    "UploadState",
    "UploadStatus",
]
