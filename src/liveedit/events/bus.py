"""Synchronous event bus used by the host controller and backend handler."""

from typing import Any, Callable


class EventBus:
    """Publish-subscribe hub for edit-session notifications.

    Typed listeners receive events whose exact class they subscribed to;
    catch-all listeners receive everything. Dispatch is synchronous: ``emit``
    returns only after every listener ran.
    """

    def __init__(self) -> None:
        self._by_type: dict[type, list[Callable[[Any], None]]] = {}
        self._catch_all: list[Callable[[Any], None]] = []

    def subscribe(self, event_type: type, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Register *callback* for *event_type* and return a function that removes it."""
        self._by_type.setdefault(event_type, []).append(callback)

        def _unsubscribe() -> None:
            callbacks = self._by_type.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def on_all(self, callback: Callable[[Any], None]) -> None:
        self._catch_all.append(callback)

    def emit(self, event: Any) -> None:
        """Dispatch *event*; catch-all listeners run first."""
        for callback in list(self._catch_all):
            callback(event)
        for callback in list(self._by_type.get(type(event), [])):
            callback(event)
