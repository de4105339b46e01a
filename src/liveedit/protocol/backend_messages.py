"""Requests and responses on the durable host <-> backend connection.

These messages are not prefix-tagged: the durable connection carries nothing
else. ``parse_backend_message`` plays the role ``decode`` plays for the
cross-frame channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from liveedit.errors import ProtocolError
from liveedit.model.change import LocatorHints, StyleChange
from liveedit.model.element import SourceLocation

HISTORY_DIRECTIONS = ("undo", "redo")


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProtocolError(f"{key} must be a string", payload=data)
    return value or None


def _req_str(data: dict[str, Any], key: str, *, allow_empty: bool = False) -> str:
    value = data.get(key)
    if not isinstance(value, str) or (not allow_empty and not value):
        raise ProtocolError(f"{key} is required", payload=data)
    return value


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


# ---------------------------------------------------------------------------
# Requests (host -> backend)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StyleUpdateRequest:
    TYPE: ClassVar[str] = "style_update"

    selector: str
    changes: tuple[StyleChange, ...]
    file_path: str | None = None
    text_content: str | None = None
    class_name: str | None = None
    source_location: SourceLocation | None = None
    skip_deploy: bool = True
    entry_id: str | None = None
    direction: str | None = None

    @property
    def hints(self) -> LocatorHints:
        return LocatorHints.from_source_location(
            self.selector,
            self.source_location,
            text_content=self.text_content,
            class_name=self.class_name,
        )

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.TYPE,
            "selector": self.selector,
            "changes": [c.to_wire() for c in self.changes],
            "skipDeploy": self.skip_deploy,
        }
        _put(data, "filePath", self.file_path)
        _put(data, "textContent", self.text_content)
        _put(data, "className", self.class_name)
        if self.source_location is not None:
            data["sourceLocation"] = self.source_location.to_wire()
        _put(data, "entryId", self.entry_id)
        _put(data, "direction", self.direction)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> StyleUpdateRequest:
        changes = data.get("changes")
        if not isinstance(changes, list):
            raise ProtocolError("changes must be a list", payload=data)
        direction = _opt_str(data, "direction")
        if direction is not None and direction not in HISTORY_DIRECTIONS:
            raise ProtocolError(f"unknown history direction {direction!r}", payload=data)
        return cls(
            selector=_req_str(data, "selector"),
            changes=tuple(StyleChange.from_wire(c) for c in changes),
            file_path=_opt_str(data, "filePath"),
            text_content=_opt_str(data, "textContent"),
            class_name=_opt_str(data, "className"),
            source_location=SourceLocation.from_wire(data.get("sourceLocation")),
            skip_deploy=bool(data.get("skipDeploy", True)),
            entry_id=_opt_str(data, "entryId"),
            direction=direction,
        )


@dataclass(frozen=True)
class TextUpdateRequest:
    TYPE: ClassVar[str] = "text_update"

    selector: str
    old_text: str
    new_text: str
    file_path: str | None = None
    class_name: str | None = None
    source_location: SourceLocation | None = None
    skip_deploy: bool = True

    @property
    def hints(self) -> LocatorHints:
        return LocatorHints.from_source_location(
            self.selector,
            self.source_location,
            text_content=self.old_text,
            class_name=self.class_name,
        )

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.TYPE,
            "selector": self.selector,
            "oldText": self.old_text,
            "newText": self.new_text,
            "skipDeploy": self.skip_deploy,
        }
        _put(data, "filePath", self.file_path)
        _put(data, "className", self.class_name)
        if self.source_location is not None:
            data["sourceLocation"] = self.source_location.to_wire()
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> TextUpdateRequest:
        return cls(
            selector=_req_str(data, "selector"),
            old_text=_req_str(data, "oldText"),
            new_text=_req_str(data, "newText", allow_empty=True),
            file_path=_opt_str(data, "filePath"),
            class_name=_opt_str(data, "className"),
            source_location=SourceLocation.from_wire(data.get("sourceLocation")),
            skip_deploy=bool(data.get("skipDeploy", True)),
        )


@dataclass(frozen=True)
class ImageUploadChunk:
    """One transport-encoded slice of an uploaded asset."""

    TYPE: ClassVar[str] = "image_upload"

    upload_id: str
    chunk: str
    chunk_index: int
    total_chunks: int
    file_name: str
    mime_type: str
    file_size: int = 0
    is_background: bool = False
    element_context: dict[str, Any] = field(default_factory=dict, hash=False)

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.TYPE,
            "uploadId": self.upload_id,
            "chunk": self.chunk,
            "chunkIndex": self.chunk_index,
            "totalChunks": self.total_chunks,
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "fileSize": self.file_size,
            "isBackground": self.is_background,
            "elementContext": dict(self.element_context),
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> ImageUploadChunk:
        try:
            chunk_index = int(data["chunkIndex"])
            total_chunks = int(data["totalChunks"])
            file_size = int(data.get("fileSize") or 0)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProtocolError("chunkIndex and totalChunks must be integers", payload=data) from exc
        context = data.get("elementContext") or {}
        if not isinstance(context, dict):
            raise ProtocolError("elementContext must be an object", payload=data)
        return cls(
            upload_id=_req_str(data, "uploadId"),
            chunk=_req_str(data, "chunk", allow_empty=True),
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            file_name=_req_str(data, "fileName"),
            mime_type=_req_str(data, "mimeType"),
            file_size=file_size,
            is_background=bool(data.get("isBackground", False)),
            element_context=context,
        )


@dataclass(frozen=True)
class RefreshPreviewRequest:
    TYPE: ClassVar[str] = "refresh_preview"

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.TYPE}

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> RefreshPreviewRequest:
        return cls()


@dataclass(frozen=True)
class GoToCodeRequest:
    TYPE: ClassVar[str] = "go_to_code"

    selector: str
    file_path: str | None = None
    text_content: str | None = None
    class_name: str | None = None
    source_location: SourceLocation | None = None

    @property
    def hints(self) -> LocatorHints:
        return LocatorHints.from_source_location(
            self.selector,
            self.source_location,
            text_content=self.text_content,
            class_name=self.class_name,
        )

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "selector": self.selector}
        _put(data, "filePath", self.file_path)
        _put(data, "textContent", self.text_content)
        _put(data, "className", self.class_name)
        if self.source_location is not None:
            data["sourceLocation"] = self.source_location.to_wire()
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> GoToCodeRequest:
        return cls(
            selector=_req_str(data, "selector"),
            file_path=_opt_str(data, "filePath"),
            text_content=_opt_str(data, "textContent"),
            class_name=_opt_str(data, "className"),
            source_location=SourceLocation.from_wire(data.get("sourceLocation")),
        )


# ---------------------------------------------------------------------------
# Responses (backend -> host)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FailedChange:
    property: str
    error: str

    def to_wire(self) -> dict[str, str]:
        return {"property": self.property, "error": self.error}


@dataclass(frozen=True)
class StyleUpdated:
    TYPE: ClassVar[str] = "style_updated"

    success: bool
    selector: str
    file_path: str | None = None
    error: str | None = None
    applied: tuple[str, ...] = ()
    failed: tuple[FailedChange, ...] = ()
    attempted: tuple[str, ...] = ()
    entry_id: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.TYPE,
            "success": self.success,
            "selector": self.selector,
            "applied": list(self.applied),
            "failed": [f.to_wire() for f in self.failed],
        }
        _put(data, "filePath", self.file_path)
        _put(data, "error", self.error)
        if self.attempted:
            data["attempted"] = list(self.attempted)
        _put(data, "entryId", self.entry_id)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> StyleUpdated:
        failed = []
        for item in data.get("failed") or []:
            if not isinstance(item, dict):
                raise ProtocolError("failed entries must be objects", payload=data)
            failed.append(FailedChange(str(item.get("property", "")), str(item.get("error", ""))))
        return cls(
            success=bool(data.get("success", False)),
            selector=str(data.get("selector") or ""),
            file_path=_opt_str(data, "filePath"),
            error=_opt_str(data, "error"),
            applied=tuple(str(p) for p in data.get("applied") or []),
            failed=tuple(failed),
            attempted=tuple(str(s) for s in data.get("attempted") or []),
            entry_id=_opt_str(data, "entryId"),
        )


@dataclass(frozen=True)
class TextUpdated:
    TYPE: ClassVar[str] = "text_updated"

    success: bool
    selector: str
    file_path: str | None = None
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "success": self.success, "selector": self.selector}
        _put(data, "filePath", self.file_path)
        _put(data, "error", self.error)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> TextUpdated:
        return cls(
            success=bool(data.get("success", False)),
            selector=str(data.get("selector") or ""),
            file_path=_opt_str(data, "filePath"),
            error=_opt_str(data, "error"),
        )


@dataclass(frozen=True)
class ImageUploaded:
    TYPE: ClassVar[str] = "image_uploaded"

    success: bool
    upload_id: str
    image_path: str | None = None
    requires_manual_update: bool = False
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "success": self.success, "uploadId": self.upload_id}
        _put(data, "imagePath", self.image_path)
        if self.requires_manual_update:
            data["requiresManualUpdate"] = True
        _put(data, "error", self.error)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> ImageUploaded:
        return cls(
            success=bool(data.get("success", False)),
            upload_id=str(data.get("uploadId") or ""),
            image_path=_opt_str(data, "imagePath"),
            requires_manual_update=bool(data.get("requiresManualUpdate", False)),
            error=_opt_str(data, "error"),
        )


@dataclass(frozen=True)
class UploadProgress:
    """Non-terminal status while an upload is still missing chunks."""

    TYPE: ClassVar[str] = "upload_progress"

    upload_id: str
    received: int
    total: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.TYPE,
            "uploadId": self.upload_id,
            "received": self.received,
            "total": self.total,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> UploadProgress:
        return cls(
            upload_id=str(data.get("uploadId") or ""),
            received=int(data.get("received") or 0),
            total=int(data.get("total") or 0),
        )


@dataclass(frozen=True)
class PreviewRefreshed:
    TYPE: ClassVar[str] = "preview_refreshed"

    success: bool
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "success": self.success}
        _put(data, "error", self.error)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> PreviewRefreshed:
        return cls(success=bool(data.get("success", False)), error=_opt_str(data, "error"))


@dataclass(frozen=True)
class CodeLocation:
    TYPE: ClassVar[str] = "code_location"

    success: bool
    selector: str
    file_path: str | None = None
    line_number: int | None = None
    column_number: int | None = None
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "success": self.success, "selector": self.selector}
        _put(data, "filePath", self.file_path)
        _put(data, "lineNumber", self.line_number)
        _put(data, "columnNumber", self.column_number)
        _put(data, "error", self.error)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> CodeLocation:
        line = data.get("lineNumber")
        column = data.get("columnNumber")
        return cls(
            success=bool(data.get("success", False)),
            selector=str(data.get("selector") or ""),
            file_path=_opt_str(data, "filePath"),
            line_number=int(line) if line is not None else None,
            column_number=int(column) if column is not None else None,
            error=_opt_str(data, "error"),
        )


@dataclass(frozen=True)
class BackendError:
    TYPE: ClassVar[str] = "error"

    message: str
    context: str | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.TYPE, "message": self.message}
        _put(data, "context", self.context)
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> BackendError:
        return cls(message=str(data.get("message") or "unknown error"), context=_opt_str(data, "context"))


REQUESTS: dict[str, type] = {
    cls.TYPE: cls
    for cls in (StyleUpdateRequest, TextUpdateRequest, ImageUploadChunk, RefreshPreviewRequest, GoToCodeRequest)
}

RESPONSES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (StyleUpdated, TextUpdated, ImageUploaded, UploadProgress, PreviewRefreshed, CodeLocation, BackendError)
}


def parse_backend_message(data: Any, catalogue: dict[str, type]) -> Any | None:
    """Build a typed message from ``data`` or return None for an unknown type."""
    if not isinstance(data, dict):
        raise ProtocolError("backend message must be an object", payload=data)
    message_type = data.get("type")
    message_cls = catalogue.get(message_type) if isinstance(message_type, str) else None
    if message_cls is None:
        return None
    try:
        return message_cls.from_wire(data)
    except ProtocolError:
        raise
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Malformed {message_type} message: {exc}", payload=data) from exc
