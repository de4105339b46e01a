"""In-process model of the cross-origin postable-message channel.

Each side of the channel is a ``MessagePort``. Posting enqueues a structured
clone on the peer's inbox; nothing is delivered until the receiving side
pumps. Delivery is FIFO per direction and there is no ordering guarantee
between directions.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], None]


class MessagePort:
    def __init__(self, name: str) -> None:
        self.name = name
        self._peer: MessagePort | None = None
        self._inbox: deque[Any] = deque()
        self._handlers: list[MessageHandler] = []
        self.closed = False

    def _entangle(self, peer: MessagePort) -> None:
        self._peer = peer

    def post_message(self, data: Any, target_origin: str = "*") -> None:
        """Queue ``data`` for the peer. The wildcard origin is always accepted."""
        if self.closed or self._peer is None or self._peer.closed:
            logger.debug("Dropping message on closed port %s", self.name)
            return
        self._peer._inbox.append(copy.deepcopy(data))

    def add_listener(self, handler: MessageHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def remove() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return remove

    @property
    def pending(self) -> int:
        return len(self._inbox)

    def pump(self) -> int:
        """Deliver everything queued so far, in arrival order. Returns the count."""
        delivered = 0
        while self._inbox and not self.closed:
            data = self._inbox.popleft()
            for handler in list(self._handlers):
                handler(data)
            delivered += 1
        return delivered

    def close(self) -> None:
        self.closed = True
        self._inbox.clear()


class MessageChannel:
    """Two entangled ports: ``host`` (parent window) and ``frame`` (preview)."""

    def __init__(self) -> None:
        self.host = MessagePort("host")
        self.frame = MessagePort("frame")
        self.host._entangle(self.frame)
        self.frame._entangle(self.host)

    def pump(self, max_rounds: int = 100) -> int:
        """Alternate delivery until both inboxes are empty."""
        total = 0
        for _ in range(max_rounds):
            delivered = self.frame.pump() + self.host.pump()
            total += delivered
            if not delivered:
                break
        return total
