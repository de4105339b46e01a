"""The preview-frame side of the messaging protocol."""

from __future__ import annotations

import logging
from typing import Any

from liveedit.errors import ProtocolError
from liveedit.overlay.dom import Document
from liveedit.overlay.registry import ElementRegistry
from liveedit.overlay.session import OverlaySession
from liveedit.overlay.source_location import SourceLocationResolver
from liveedit.protocol.channel import MessagePort
from liveedit.protocol.envelope import DEFAULT_PREFIX, decode, encode
from liveedit.protocol.frame_messages import (
    HOST_TO_FRAME,
    ClearPreview,
    Disable,
    Enable,
    FrameError,
    PreviewStyle,
    Ready,
    SelectElement,
    TextEdited,
    UpdateText,
)

logger = logging.getLogger(__name__)


class PreviewFrameClient:
    """Listens for host commands and drives an ``OverlaySession``.

    Selectors come from one registry that outlives individual sessions, so an
    element keeps its selector across disable/enable cycles.
    """

    def __init__(
        self,
        document: Document,
        port: MessagePort,
        *,
        prefix: str = DEFAULT_PREFIX,
        resolver: SourceLocationResolver | None = None,
    ) -> None:
        self.document = document
        self.port = port
        self.prefix = prefix
        self.resolver = resolver
        self.registry = ElementRegistry(document)
        self.session: OverlaySession | None = None
        self._remove_listener = None

    @property
    def active(self) -> bool:
        return self.session is not None

    def start(self) -> None:
        if self._remove_listener is None:
            self._remove_listener = self.port.add_listener(self.handle_message)
        self.send(Ready())

    def stop(self) -> None:
        self.disable()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def send(self, message: Any) -> None:
        self.port.post_message(encode(message, self.prefix), "*")

    def enable(self) -> None:
        if self.session is not None:
            return
        self.session = OverlaySession(self.document, self.registry, self.send, self.resolver)
        self.session.install()
        logger.info("Design mode enabled")

    def disable(self) -> None:
        if self.session is None:
            return
        self.session.teardown()
        self.session = None
        logger.info("Design mode disabled")

    def handle_message(self, data: Any) -> None:
        try:
            message = decode(data, HOST_TO_FRAME, self.prefix)
        except ProtocolError as exc:
            logger.warning("Malformed host message: %s", exc)
            self.send(FrameError(message=str(exc), context=str(data.get("type"))))
            return
        if message is None:
            return

        if isinstance(message, Enable):
            self.enable()
        elif isinstance(message, Disable):
            self.disable()
        elif self.session is None:
            logger.debug("Ignoring %s while design mode is off", message.TYPE)
        elif isinstance(message, PreviewStyle):
            self.session.apply_preview(message.selector, message.styles)
        elif isinstance(message, ClearPreview):
            self.session.clear_preview(message.selector)
        elif isinstance(message, SelectElement):
            element = self.registry.resolve(message.selector)
            if element is not None:
                self.session.select(element, notify=False)
        elif isinstance(message, UpdateText):
            result = self.session.update_text(message.selector, message.text)
            if result is not None:
                old_text, new_text = result
                self.send(TextEdited(selector=message.selector, old_text=old_text, new_text=new_text))
