"""Prefix-tagged message envelopes for the cross-frame channel."""

from __future__ import annotations

import logging
from typing import Any

from liveedit.config import LiveEditConfig
from liveedit.errors import ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = LiveEditConfig.message_prefix


def encode(message: Any, prefix: str = DEFAULT_PREFIX) -> dict[str, Any]:
    """Wrap a catalogue message in ``{prefix, type, ...payload}``."""
    envelope: dict[str, Any] = {"prefix": prefix, "type": message.TYPE}
    envelope.update(message.payload())
    return envelope


def decode(data: Any, catalogue: dict[str, type], prefix: str = DEFAULT_PREFIX) -> Any | None:
    """Validate an incoming envelope and build its message.

    Returns None for foreign traffic (not a dict, wrong prefix) and for unknown
    message types. Raises ProtocolError when a known type carries a malformed
    payload.
    """
    if not isinstance(data, dict) or data.get("prefix") != prefix:
        return None

    message_type = data.get("type")
    message_cls = catalogue.get(message_type) if isinstance(message_type, str) else None
    if message_cls is None:
        logger.debug("Ignoring unknown message type %r", message_type)
        return None

    payload = {k: v for k, v in data.items() if k not in ("prefix", "type")}
    try:
        return message_cls.from_payload(payload)
    except ProtocolError:
        raise
    except (TypeError, ValueError, KeyError) as exc:
        raise ProtocolError(f"Malformed {message_type} message: {exc}", payload=data) from exc
