"""The durable host <-> backend connection.

Requests go out as wire dicts; every response the backend produces for a
request is handed to the receiver in the order the backend emitted it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from liveedit.errors import SyncError

if TYPE_CHECKING:
    from liveedit.server.handler import DesignModeHandler

logger = logging.getLogger(__name__)

Receiver = Callable[[dict[str, Any]], None]

MESSAGES_PATH = "/api/design-mode/messages"


@runtime_checkable
class Connection(Protocol):
    def set_receiver(self, receiver: Receiver) -> None: ...

    def send(self, message: dict[str, Any]) -> None: ...


class _ReceiverMixin:
    _receiver: Receiver | None = None

    def set_receiver(self, receiver: Receiver) -> None:
        self._receiver = receiver

    def _deliver(self, messages: list[dict[str, Any]]) -> None:
        if self._receiver is None:
            logger.debug("No receiver; dropping %d backend messages", len(messages))
            return
        for message in messages:
            self._receiver(message)


class LocalConnection(_ReceiverMixin):
    """Calls an in-process ``DesignModeHandler`` directly."""

    def __init__(self, handler: DesignModeHandler) -> None:
        self.handler = handler
        self.closed = False

    def send(self, message: dict[str, Any]) -> None:
        if self.closed:
            raise SyncError("Connection is closed")
        self._deliver(self.handler.handle(message))

    def close(self) -> None:
        self.closed = True


class HttpConnection(_ReceiverMixin):
    """POSTs each request to the backend's design-mode endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def send(self, message: dict[str, Any]) -> None:
        try:
            resp = self._client.post(MESSAGES_PATH, json=message)
        except httpx.TimeoutException as exc:
            raise SyncError(f"Backend timed out: {exc}", cause=exc) from exc
        except httpx.HTTPError as exc:
            raise SyncError(f"Backend unreachable: {exc}", cause=exc) from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 300:
            error = body.get("error") if isinstance(body, dict) else None
            raise SyncError(f"Backend returned {resp.status_code}: {error or resp.text}")

        messages = body.get("messages") if isinstance(body, dict) else None
        if not isinstance(messages, list):
            raise SyncError("Backend response has no messages list")
        self._deliver([m for m in messages if isinstance(m, dict)])

    def close(self) -> None:
        self._client.close()
