"""Backend side of design mode: turns edit requests into source writes."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import PurePosixPath
from typing import Any

from liveedit.config import LiveEditConfig
from liveedit.errors import (
    ConversionError,
    FileCollaboratorError,
    LiveEditError,
    LocateError,
    ProtocolError,
    UnsafeTextMatchError,
)
from liveedit.events import EventBus, StylesPatched, TextPatched, UploadCompleted
from liveedit.files import FileManager, read_file, save_or_raise
from liveedit.model.change import LocatorHints, StyleChange
from liveedit.model.element import SourceLocation
from liveedit.model.upload import UploadState
from liveedit.paths import normalize_file_path
from liveedit.patcher.locator import find_tag, id_attribute_re, rank_class_tokens, selector_id, text_snippet
from liveedit.patcher.styles import apply_style_changes_to_source, set_literal_attribute
from liveedit.patcher.text import replace_text_safely
from liveedit.protocol.backend_messages import (
    REQUESTS,
    BackendError,
    CodeLocation,
    FailedChange,
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
from liveedit.server.journal import EditJournal
from liveedit.uploads.reassembler import UploadReassembler

logger = logging.getLogger(__name__)

Deployer = Callable[[], None]

MARKUP_SUFFIXES = (".html", ".vue", ".svelte")
_PREFERRED_SUFFIXES = (".tsx", ".jsx")
_IMAGE_TAGS = frozenset({"img", "image", "Image"})


def is_markup_file(path: str) -> bool:
    return PurePosixPath(path).suffix in MARKUP_SUFFIXES


def public_url(path: str) -> str:
    """``public/images/a.png`` is served as ``/images/a.png``."""
    parts = PurePosixPath(path).parts
    if parts and parts[0] == "public":
        parts = parts[1:]
    return "/" + "/".join(parts)


class DesignModeHandler:
    """Dispatches backend requests and produces the responses for each.

    ``handle`` never raises for a bad request: malformed payloads produce an
    ``error`` response and unknown types produce nothing.
    """

    def __init__(
        self,
        file_manager: FileManager,
        config: LiveEditConfig | None = None,
        bus: EventBus | None = None,
        deployer: Deployer | None = None,
    ) -> None:
        self.file_manager = file_manager
        self.config = config or LiveEditConfig()
        self.bus = bus or EventBus()
        self.deployer = deployer
        self.journal = EditJournal()
        self.reassembler = UploadReassembler(file_manager, self.config)
        self._handlers: dict[type, Callable[[Any], list[Any]]] = {
            StyleUpdateRequest: self.handle_style_update,
            TextUpdateRequest: self.handle_text_update,
            ImageUploadChunk: self.handle_image_upload,
            RefreshPreviewRequest: self.handle_refresh_preview,
            GoToCodeRequest: self.handle_go_to_code,
        }

    def handle(self, data: Any) -> list[dict[str, Any]]:
        try:
            message = parse_backend_message(data, REQUESTS)
        except ProtocolError as exc:
            logger.warning("Rejected malformed request: %s", exc)
            context = data.get("type") if isinstance(data, dict) else None
            return [BackendError(message=str(exc), context=str(context) if context else None).to_wire()]
        if message is None:
            logger.debug("Ignoring request type %r", data.get("type"))
            return []
        return [response.to_wire() for response in self._handlers[type(message)](message)]

    # -- file resolution ------------------------------------------------------------

    def _source_files(self) -> list[tuple[str, str]]:
        files = [
            (f.file_path, f.file_contents)
            for f in self.file_manager.list_files()
            if PurePosixPath(f.file_path).suffix in self.config.source_extensions
        ]
        return sorted(files, key=lambda f: PurePosixPath(f[0]).suffix not in _PREFERRED_SUFFIXES)

    def resolve_file(
        self,
        selector: str,
        file_path: str | None,
        source_location: SourceLocation | None,
        hints: LocatorHints,
    ) -> tuple[str, str]:
        """Find the file that rendered ``selector``. Returns ``(path, source)``.

        The explicit path wins, then the debug source location, then a search
        of the project by text, by id and by the most specific class token.
        """
        for candidate in (file_path, source_location.file_path if source_location else None):
            if not candidate:
                continue
            path = normalize_file_path(candidate)
            source = read_file(self.file_manager, path)
            if source is not None:
                return path, source
            logger.info("File %s not in project; searching instead", path)

        files = self._source_files()
        snippet = text_snippet(hints.text_content, self.config)
        if snippet:
            pattern = re.compile(r"\s+".join(re.escape(w) for w in snippet.split()))
            for path, source in files:
                if pattern.search(source):
                    logger.info("Found %s by text", path)
                    return path, source

        element_id = selector_id(selector)
        if element_id:
            id_re = id_attribute_re(element_id)
            for path, source in files:
                if id_re.search(source):
                    logger.info("Found %s by id", path)
                    return path, source

        for token in rank_class_tokens(hints.class_name or "")[:3]:
            token_re = re.compile(r"(?<![\w-])" + re.escape(token) + r"(?![\w-])")
            for path, source in files:
                if token_re.search(source):
                    logger.info("Found %s by class %s", path, token)
                    return path, source

        raise LocateError(
            "Could not determine file path for element",
            selector=selector,
            attempted=("file_path", "source_location", "text_content", "selector_id", "class_attribute"),
        )

    # -- styles ---------------------------------------------------------------------

    def handle_style_update(self, request: StyleUpdateRequest) -> list[Any]:
        def failure(error: str, attempted: tuple[str, ...] = (), failed: tuple[FailedChange, ...] = ()) -> list[Any]:
            return [
                StyleUpdated(
                    success=False,
                    selector=request.selector,
                    error=error,
                    failed=failed,
                    attempted=attempted,
                    entry_id=request.entry_id,
                )
            ]

        hints = request.hints
        try:
            path, source = self.resolve_file(request.selector, request.file_path, request.source_location, hints)
        except LocateError as exc:
            logger.warning("Style update for %s: %s", request.selector, exc)
            return failure(str(exc), exc.attempted)

        modified = None
        if request.entry_id and request.direction:
            modified = self.journal.replay(request.entry_id, request.direction, path, source, hints, self.config)

        if modified is not None:
            applied = tuple(f"{c.property}: {c.new_value or '(removed)'}" for c in request.changes)
            failed: tuple[FailedChange, ...] = ()
        else:
            try:
                result = apply_style_changes_to_source(
                    source, request.changes, hints, config=self.config, html=is_markup_file(path)
                )
            except LocateError as exc:
                logger.warning("Style update for %s: %s", request.selector, exc)
                return failure(str(exc), exc.attempted)
            modified = result.modified
            applied = result.applied
            failed = tuple(FailedChange(prop, reason) for prop, reason in result.failed)
            if not applied:
                return failure("No style change could be applied", (result.strategy,), failed)
            if request.entry_id and request.direction is None and result.changed:
                self.journal.record(request.entry_id, path, result.tag_before, result.tag_after)

        verb = f"{request.direction} style change" if request.direction else "update styles"
        try:
            if modified != source:
                save_or_raise(self.file_manager, path, modified, f"design mode: {verb} for {request.selector}")
        except FileCollaboratorError as exc:
            return failure(str(exc))

        self.bus.emit(
            StylesPatched(
                file_path=path,
                selector=request.selector,
                applied=applied,
                failed=tuple(f"{f.property}: {f.error}" for f in failed),
            )
        )
        if not request.skip_deploy:
            self._deploy()
        return [
            StyleUpdated(
                success=True,
                selector=request.selector,
                file_path=path,
                applied=applied,
                failed=failed,
                entry_id=request.entry_id,
            )
        ]

    # -- text -----------------------------------------------------------------------

    def handle_text_update(self, request: TextUpdateRequest) -> list[Any]:
        hints = request.hints
        try:
            path, source = self.resolve_file(request.selector, request.file_path, request.source_location, hints)
            try:
                anchor: int | None = find_tag(source, hints, self.config)[0].start
            except LocateError:
                anchor = None
            replacement = replace_text_safely(
                source, request.old_text, request.new_text, anchor, html=is_markup_file(path)
            )
            save_or_raise(
                self.file_manager, path, replacement.modified, f"design mode: update text for {request.selector}"
            )
        except (LocateError, UnsafeTextMatchError, FileCollaboratorError) as exc:
            logger.warning("Text update for %s: %s", request.selector, exc)
            return [TextUpdated(success=False, selector=request.selector, error=str(exc))]

        self.bus.emit(TextPatched(file_path=path, selector=request.selector))
        if not request.skip_deploy:
            self._deploy()
        return [TextUpdated(success=True, selector=request.selector, file_path=path)]

    # -- uploads --------------------------------------------------------------------

    def handle_image_upload(self, chunk: ImageUploadChunk) -> list[Any]:
        status = self.reassembler.receive(chunk)
        if status.state is UploadState.IN_PROGRESS:
            return [UploadProgress(upload_id=status.upload_id, received=status.received, total=status.total)]
        if status.state is UploadState.FAILED or status.path is None:
            return [ImageUploaded(success=False, upload_id=status.upload_id, error=status.error)]

        url = public_url(status.path)
        self.bus.emit(UploadCompleted(upload_id=status.upload_id, path=status.path))
        updated = self._point_element_at(chunk.element_context, url, chunk.is_background)
        return [
            ImageUploaded(
                success=True,
                upload_id=status.upload_id,
                image_path=url,
                requires_manual_update=not updated,
            )
        ]

    def _point_element_at(self, context: dict[str, Any], url: str, is_background: bool) -> bool:
        selector = context.get("selector")
        if not isinstance(selector, str) or not selector:
            return False
        try:
            location = SourceLocation.from_wire(context.get("sourceLocation"))
            hints = LocatorHints.from_source_location(
                selector,
                location,
                text_content=context.get("textContent"),
                class_name=context.get("className"),
            )
            path, source = self.resolve_file(selector, context.get("filePath"), location, hints)
            if is_background:
                change = StyleChange(property="backgroundImage", old_value="", new_value=f"url({url})")
                result = apply_style_changes_to_source(
                    source, [change], hints, config=self.config, html=is_markup_file(path)
                )
                if result.failed:
                    return False
                modified = result.modified
            else:
                tag, _ = find_tag(source, hints, self.config)
                if tag.name not in _IMAGE_TAGS:
                    logger.info("Upload target <%s> is not an image", tag.name)
                    return False
                modified = set_literal_attribute(source, tag, "src", url)
            save_or_raise(self.file_manager, path, modified, f"design mode: use uploaded image for {selector}")
        except (LocateError, ConversionError, FileCollaboratorError, ProtocolError) as exc:
            logger.info("Uploaded image needs a manual update: %s", exc)
            return False
        return True

    # -- deploy / navigation ------------------------------------------------------

    def _deploy(self) -> str | None:
        if self.deployer is None:
            logger.debug("No deployer configured")
            return None
        try:
            self.deployer()
        except LiveEditError as exc:
            logger.error("Deploy failed: %s", exc)
            return str(exc)
        return None

    def handle_refresh_preview(self, request: RefreshPreviewRequest) -> list[Any]:
        error = self._deploy()
        return [PreviewRefreshed(success=error is None, error=error)]

    def handle_go_to_code(self, request: GoToCodeRequest) -> list[Any]:
        hints = request.hints
        try:
            path, source = self.resolve_file(request.selector, request.file_path, request.source_location, hints)
        except LocateError as exc:
            return [CodeLocation(success=False, selector=request.selector, error=str(exc))]
        try:
            tag, _ = find_tag(source, hints, self.config)
        except LocateError:
            return [CodeLocation(success=True, selector=request.selector, file_path=path, line_number=1)]
        line_start = source.rfind("\n", 0, tag.start) + 1
        return [
            CodeLocation(
                success=True,
                selector=request.selector,
                file_path=path,
                line_number=source.count("\n", 0, tag.start) + 1,
                column_number=tag.start - line_start + 1,
            )
        ]
