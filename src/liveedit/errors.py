"""Error hierarchy for the live-edit engine."""
from __future__ import annotations

from typing import Any


class LiveEditError(Exception):
    """Base error for all liveedit errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


# ---------------------------------------------------------------------------
# Source patching
# ---------------------------------------------------------------------------


class LocateError(LiveEditError):
    """No locator strategy resolved the element (or its file)."""

    def __init__(
        self,
        message: str,
        *,
        selector: str = "",
        attempted: tuple[str, ...] = (),
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.selector = selector
        self.attempted = attempted


class TextNotFoundError(LocateError):
    """The old text does not occur in the source at all."""


class ConversionError(LiveEditError):
    """A CSS property/value has no utility token and no safe arbitrary form."""

    def __init__(self, message: str, *, property: str = "", value: str = "") -> None:
        super().__init__(message)
        self.property = property
        self.value = value


class UnsafeTextMatchError(LiveEditError):
    """Every occurrence of the old text looked like code rather than content."""

    def __init__(self, message: str, *, old_text: str = "", occurrences: int = 0) -> None:
        super().__init__(message)
        self.old_text = old_text
        self.occurrences = occurrences


# ---------------------------------------------------------------------------
# Messaging / transport
# ---------------------------------------------------------------------------


class ProtocolError(LiveEditError):
    """A correctly tagged message carried a malformed payload."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class SyncError(LiveEditError):
    """The durable host-backend connection failed or is unavailable."""


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class FileCollaboratorError(LiveEditError):
    """The file collaborator refused or failed a read/save."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class UploadError(LiveEditError):
    """An upload could not be reassembled or stored."""

    def __init__(self, message: str, *, upload_id: str = "") -> None:
        super().__init__(message)
        self.upload_id = upload_id
