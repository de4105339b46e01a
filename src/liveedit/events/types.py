"""Events published by the host controller and the backend handler."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectionChanged:
    selector: str | None


@dataclass(frozen=True)
class HoverChanged:
    selector: str | None


@dataclass(frozen=True)
class SyncStateChanged:
    is_syncing: bool
    error: str | None = None
    has_pending_changes: bool = False


@dataclass(frozen=True)
class HistoryChanged:
    index: int
    length: int


@dataclass(frozen=True)
class StylesPatched:
    file_path: str
    selector: str
    applied: tuple[str, ...]
    failed: tuple[str, ...]


@dataclass(frozen=True)
class TextPatched:
    file_path: str
    selector: str


@dataclass(frozen=True)
class UploadCompleted:
    upload_id: str
    path: str
