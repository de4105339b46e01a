"""Host-side edit controller.

Owns selection, the preview/committed style layers and undo history, talks
to the preview frame over a message port and to the backend over a durable
``Connection``.

Committed styles are what the backend has been asked to write. Preview
styles are visual only: they are shown in the frame on top of the committed
layer and never reach the backend until applied.
"""

from __future__ import annotations

import base64
import dataclasses
import logging
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from liveedit.errors import ProtocolError, SyncError
from liveedit.events import (
    EventBus,
    HistoryChanged,
    HoverChanged,
    SelectionChanged,
    SyncStateChanged,
    UploadCompleted,
)
from liveedit.host.connection import Connection
from liveedit.host.history import EditHistory
from liveedit.model.change import HistoryEntry, StyleChange
from liveedit.model.element import ElementDescriptor, SourceLocation
from liveedit.protocol.backend_messages import (
    RESPONSES,
    BackendError,
    CodeLocation,
    GoToCodeRequest,
    ImageUploadChunk,
    ImageUploaded,
    PreviewRefreshed,
    RefreshPreviewRequest,
    StyleUpdated,
    StyleUpdateRequest,
    TextUpdated,
    TextUpdateRequest,
    UploadProgress,
    parse_backend_message,
)
from liveedit.protocol.channel import MessagePort
from liveedit.protocol.envelope import DEFAULT_PREFIX, decode, encode
from liveedit.protocol.frame_messages import (
    FRAME_TO_HOST,
    ClearPreview,
    Disable,
    ElementDeselected,
    ElementHovered,
    ElementSelected,
    Enable,
    FrameError,
    PreviewStyle,
    Ready,
    SelectElement,
    TextEdit,
    TextEdited,
    UpdateText,
)

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 64 * 1024

GoToCodeCallback = Callable[[str, int], None]

# the backend answers every request, upload chunks included, with exactly one of these
_REPLIES = (
    StyleUpdated,
    TextUpdated,
    UploadProgress,
    ImageUploaded,
    PreviewRefreshed,
    CodeLocation,
    BackendError,
)


class HostEditController:
    def __init__(
        self,
        frame_port: MessagePort,
        connection: Connection | None = None,
        *,
        prefix: str = DEFAULT_PREFIX,
        bus: EventBus | None = None,
        on_go_to_code: GoToCodeCallback | None = None,
    ) -> None:
        self.frame_port = frame_port
        self.connection = connection
        self.prefix = prefix
        self.bus = bus or EventBus()
        self.on_go_to_code = on_go_to_code
        self.history = EditHistory()

        self.enabled = False
        self.selected: ElementDescriptor | None = None
        self.hovered: ElementDescriptor | None = None
        self.sync_error: str | None = None
        self.has_pending_changes = False
        self.uploads: dict[str, tuple[int, int]] = {}
        self._committed: dict[str, dict[str, str]] = {}
        self._preview: dict[str, dict[str, str]] = {}
        self._in_flight = 0
        self._awaiting: dict[str, tuple[str, dict[str, str]]] = {}

        frame_port.add_listener(self.handle_frame_message)
        if connection is not None:
            connection.set_receiver(self.handle_backend_message)

    @property
    def is_syncing(self) -> bool:
        return self._in_flight > 0

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def committed_styles(self, selector: str) -> dict[str, str]:
        return dict(self._committed.get(selector, {}))

    def preview_styles(self, selector: str) -> dict[str, str]:
        return dict(self._preview.get(selector, {}))

    def effective_style(self, selector: str) -> dict[str, str]:
        """Committed styles with any preview values layered on top."""
        merged = dict(self._committed.get(selector, {}))
        merged.update(self._preview.get(selector, {}))
        return merged

    # -- frame side ---------------------------------------------------------------

    def _to_frame(self, message: Any) -> None:
        self.frame_port.post_message(encode(message, self.prefix), "*")

    def _show(self, selector: str) -> None:
        """Make the frame display exactly the effective map for ``selector``."""
        styles = self.effective_style(selector)
        if styles:
            self._to_frame(PreviewStyle(selector=selector, styles=styles))
        else:
            self._to_frame(ClearPreview(selector=selector))

    def enable(self) -> None:
        self.enabled = True
        self._to_frame(Enable())

    def disable(self) -> None:
        self.enabled = False
        self._set_selected(None)
        self._set_hovered(None)
        self._to_frame(Disable())

    def toggle(self) -> None:
        if self.enabled:
            self.disable()
        else:
            self.enable()

    def select(self, selector: str) -> None:
        self._to_frame(SelectElement(selector=selector))

    def _set_selected(self, element: ElementDescriptor | None) -> None:
        self.selected = element
        self.bus.emit(SelectionChanged(selector=element.selector if element else None))

    def _set_hovered(self, element: ElementDescriptor | None) -> None:
        self.hovered = element
        self.bus.emit(HoverChanged(selector=element.selector if element else None))

    def handle_frame_message(self, data: Any) -> None:
        try:
            message = decode(data, FRAME_TO_HOST, self.prefix)
        except ProtocolError as exc:
            logger.warning("Malformed frame message: %s", exc)
            self._set_sync_error(str(exc))
            return
        if message is None:
            return

        if isinstance(message, Ready):
            self._on_ready()
        elif isinstance(message, ElementHovered):
            self._set_hovered(message.element)
        elif isinstance(message, ElementSelected):
            self.hovered = None
            self._set_selected(self._with_committed(message.element))
        elif isinstance(message, ElementDeselected):
            self._set_selected(None)
        elif isinstance(message, TextEdit):
            self._send_text_update(message.selector, message.old_text, message.new_text, message.source_location)
        elif isinstance(message, TextEdited):
            self._send_text_update(message.selector, message.old_text, message.new_text)
        elif isinstance(message, FrameError):
            logger.error("Preview frame error: %s (%s)", message.message, message.context)
            self._set_sync_error(message.message)

    def _on_ready(self) -> None:
        if not self.enabled:
            return
        self._to_frame(Enable())
        for selector in sorted(set(self._committed) | set(self._preview)):
            if self.effective_style(selector):
                self._show(selector)

    def _with_committed(self, element: ElementDescriptor) -> ElementDescriptor:
        committed = self._committed.get(element.selector)
        return element.with_computed_styles(committed) if committed else element

    # -- previews -----------------------------------------------------------------

    def preview_style(self, prop: str, value: str) -> None:
        if self.selected is None:
            logger.debug("preview_style(%s) without a selection", prop)
            return
        selector = self.selected.selector
        preview = self._preview.get(selector)
        if not preview:
            preview = dict(self._committed.get(selector, {}))
            self._preview[selector] = preview
        preview[prop] = value
        self._to_frame(PreviewStyle(selector=selector, styles=self.effective_style(selector)))

    def clear_preview(self) -> None:
        if self.selected is None:
            return
        selector = self.selected.selector
        self._preview.pop(selector, None)
        self._show(selector)

    # -- durable edits ------------------------------------------------------------

    def _send(self, request: Any) -> bool:
        if self.connection is None:
            self._set_sync_error("No backend connection; changes are visual only")
            return False
        self._in_flight += 1
        self._publish_sync_state()
        try:
            self.connection.send(request.to_wire())
        except SyncError as exc:
            self._in_flight = max(0, self._in_flight - 1)
            logger.warning("Sync failed: %s", exc)
            self._set_sync_error(str(exc))
            return False
        return True

    def apply_style(self, prop: str, value: str, *, use_inline_style: bool = False) -> bool:
        return self.apply_styles({prop: value}, use_inline_style=use_inline_style)

    def apply_styles(
        self, changes: Mapping[str, str] | Iterable[tuple[str, str]], *, use_inline_style: bool = False
    ) -> bool:
        """Commit ``changes`` on the selected element as one undoable edit.

        The frame shows the new values immediately. If the request cannot be
        sent, or the backend reports that nothing was written, the committed
        layer and history are rolled back to where they were.
        """
        element = self.selected
        if element is None:
            logger.debug("apply_styles without a selection")
            return False
        items = list(changes.items() if isinstance(changes, Mapping) else changes)
        if not items:
            return False

        selector = element.selector
        committed = self._committed.get(selector, {})
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            selector=selector,
            changes=tuple(
                StyleChange(
                    property=prop,
                    old_value=committed.get(prop, element.computed_styles.get(prop, "")),
                    new_value=value,
                    use_inline_style=use_inline_style,
                )
                for prop, value in items
            ),
            timestamp=time.time(),
            file_path=element.source_location.file_path if element.source_location else None,
            source_location=element.source_location,
            text_content=element.text_content,
            class_name=element.class_attribute or None,
        )
        self.sync_error = None
        self._awaiting[entry.id] = ("apply", self.committed_styles(selector))
        self.history.push(entry)
        self._replay(entry)
        return self._send_style(self._style_request(entry))

    def _style_request(self, entry: HistoryEntry, direction: str | None = None) -> StyleUpdateRequest:
        return StyleUpdateRequest(
            selector=entry.selector,
            changes=entry.changes,
            file_path=entry.file_path,
            text_content=entry.text_content,
            class_name=entry.class_name,
            source_location=entry.source_location,
            skip_deploy=True,
            entry_id=entry.id,
            direction=direction,
        )

    def _send_style(self, request: StyleUpdateRequest) -> bool:
        if self._send(request):
            return True
        if request.entry_id is not None:
            self._roll_back(request.entry_id)
        return False

    def _commit(self, entry: HistoryEntry) -> None:
        committed = self._committed.setdefault(entry.selector, {})
        for change in entry.changes:
            if change.new_value:
                committed[change.property] = change.new_value
            else:
                committed.pop(change.property, None)
        if not committed:
            del self._committed[entry.selector]

    def undo(self) -> bool:
        """Send the inverse of the current entry through the durable path."""
        entry = self.history.undo_entry()
        if entry is None:
            return False
        self._awaiting[entry.id] = ("undo", self.committed_styles(entry.selector))
        self.history.step_back()
        inverse = entry.inverted()
        self._replay(inverse)
        return self._send_style(self._style_request(inverse, "undo"))

    def redo(self) -> bool:
        entry = self.history.redo_entry()
        if entry is None:
            return False
        self._awaiting[entry.id] = ("redo", self.committed_styles(entry.selector))
        self.history.step_forward()
        self._replay(entry)
        return self._send_style(self._style_request(entry, "redo"))

    def _replay(self, entry: HistoryEntry) -> None:
        self._commit(entry)
        preview = self._preview.get(entry.selector)
        if preview:
            for change in entry.changes:
                preview.pop(change.property, None)
        self._show(entry.selector)
        if self.selected is not None and self.selected.selector == entry.selector:
            self.selected = self.selected.with_computed_styles(
                {c.property: c.new_value for c in entry.changes}
            )
        self.bus.emit(HistoryChanged(index=self.history.index, length=len(self.history)))

    def _roll_back(self, entry_id: str) -> None:
        pending = self._awaiting.pop(entry_id, None)
        if pending is None:
            return
        direction, committed = pending
        entry = self.history.find(entry_id)
        if entry is None:
            return
        if direction == "apply":
            self.history.discard(entry_id)
        elif direction == "undo":
            self.history.step_forward()
        else:
            self.history.step_back()
        if committed:
            self._committed[entry.selector] = committed
        else:
            self._committed.pop(entry.selector, None)
        self._show(entry.selector)
        logger.info("Rolled back %s of %s", direction, entry.selector)
        self.bus.emit(HistoryChanged(index=self.history.index, length=len(self.history)))

    def clear_selection(self) -> None:
        self.clear_preview()
        self._set_selected(None)

    # -- text -----------------------------------------------------------------------

    def update_text(self, text: str) -> None:
        if self.selected is None:
            return
        self._to_frame(UpdateText(selector=self.selected.selector, text=text))

    def _send_text_update(
        self, selector: str, old_text: str, new_text: str, source_location: SourceLocation | None = None
    ) -> None:
        element = self.selected if self.selected and self.selected.selector == selector else None
        if source_location is None and element is not None:
            source_location = element.source_location
        request = TextUpdateRequest(
            selector=selector,
            old_text=old_text,
            new_text=new_text,
            file_path=source_location.file_path if source_location else None,
            class_name=(element.class_attribute or None) if element else None,
            source_location=source_location,
        )
        if self._send(request) and element is not None:
            self.selected = dataclasses.replace(element, text_content=new_text)

    # -- assets -----------------------------------------------------------------------

    def upload_image(
        self,
        data: bytes,
        file_name: str,
        mime_type: str,
        *,
        is_background: bool = False,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ) -> str | None:
        """Send ``data`` to the backend as base64 chunks. Returns the upload id."""
        element = self.selected
        if element is None:
            return None
        encoded = base64.b64encode(data).decode("ascii")
        pieces = [encoded[i : i + chunk_size] for i in range(0, len(encoded), chunk_size)] or [""]
        upload_id = str(uuid.uuid4())
        context: dict[str, Any] = {"selector": element.selector, "tagName": element.tag_name}
        if element.source_location is not None:
            context["sourceLocation"] = element.source_location.to_wire()
            context["filePath"] = element.source_location.file_path
        if element.class_attribute:
            context["className"] = element.class_attribute
        if element.text_content:
            context["textContent"] = element.text_content

        self.uploads[upload_id] = (0, len(pieces))
        for index, piece in enumerate(pieces):
            chunk = ImageUploadChunk(
                upload_id=upload_id,
                chunk=piece,
                chunk_index=index,
                total_chunks=len(pieces),
                file_name=file_name,
                mime_type=mime_type,
                file_size=len(data),
                is_background=is_background,
                element_context=context,
            )
            if not self._send(chunk):
                self.uploads.pop(upload_id, None)
                return None
        return upload_id

    # -- deploy / navigation ------------------------------------------------------------

    def refresh_preview(self) -> bool:
        self.sync_error = None
        return self._send(RefreshPreviewRequest())

    def go_to_code(self) -> bool:
        element = self.selected
        if element is None:
            return False
        location = element.source_location
        if location is not None and location.line_number > 0:
            if self.on_go_to_code is not None:
                self.on_go_to_code(location.file_path, location.line_number)
            return True
        return self._send(
            GoToCodeRequest(
                selector=element.selector,
                file_path=location.file_path if location else None,
                text_content=element.text_content,
                class_name=element.class_attribute or None,
                source_location=location,
            )
        )

    # -- backend side -------------------------------------------------------------------

    def handle_backend_message(self, data: dict[str, Any]) -> None:
        try:
            message = parse_backend_message(data, RESPONSES)
        except ProtocolError as exc:
            logger.warning("Malformed backend message: %s", exc)
            self._set_sync_error(str(exc))
            return
        if message is None:
            logger.debug("Ignoring backend message %r", data.get("type"))
            return

        if isinstance(message, _REPLIES):
            self._in_flight = max(0, self._in_flight - 1)

        if isinstance(message, StyleUpdated):
            if message.success:
                self._awaiting.pop(message.entry_id or "", None)
                self.has_pending_changes = True
                if message.failed:
                    failed = ", ".join(f.property for f in message.failed)
                    self.sync_error = f"Some properties could not be saved: {failed}"
            else:
                self.sync_error = message.error or "Style update failed"
                if message.entry_id:
                    self._roll_back(message.entry_id)
        elif isinstance(message, TextUpdated):
            if message.success:
                self.has_pending_changes = True
            else:
                self.sync_error = message.error or "Text update failed"
        elif isinstance(message, UploadProgress):
            self.uploads[message.upload_id] = (message.received, message.total)
        elif isinstance(message, ImageUploaded):
            self.uploads.pop(message.upload_id, None)
            if message.success and message.image_path:
                self.has_pending_changes = True
                self.bus.emit(UploadCompleted(upload_id=message.upload_id, path=message.image_path))
            elif not message.success:
                self.sync_error = message.error or "Upload failed"
        elif isinstance(message, PreviewRefreshed):
            if message.success:
                self.has_pending_changes = False
            else:
                self.sync_error = message.error or "Preview refresh failed"
        elif isinstance(message, CodeLocation):
            if message.success and message.file_path and self.on_go_to_code is not None:
                self.on_go_to_code(message.file_path, message.line_number or 0)
            elif not message.success:
                self.sync_error = message.error or "Element not found in source"
        elif isinstance(message, BackendError):
            logger.error("Backend error: %s", message.message)
            self.sync_error = message.message
        self._publish_sync_state()

    def _set_sync_error(self, error: str | None) -> None:
        self.sync_error = error
        self._publish_sync_state()

    def _publish_sync_state(self) -> None:
        self.bus.emit(
            SyncStateChanged(
                is_syncing=self.is_syncing,
                error=self.sync_error,
                has_pending_changes=self.has_pending_changes,
            )
        )

    # -- keyboard -------------------------------------------------------------------------

    def handle_shortcut(
        self,
        key: str,
        *,
        alt: bool = False,
        ctrl: bool = False,
        meta: bool = False,
        shift: bool = False,
    ) -> bool:
        """Handle a host keyboard shortcut. Returns True when it was consumed."""
        key = key.lower()
        if alt and key == "d":
            self.toggle()
            return True
        if not self.enabled:
            return False
        if (ctrl or meta) and key == "z":
            return self.redo() if shift else self.undo()
        if key == "escape" and self.selected is not None:
            self.clear_selection()
            return True
        return False
