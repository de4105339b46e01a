from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class UploadState(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class UploadBuffer:
    """Chunks of one upload, addressed by index. Lives until complete or failed."""

    upload_id: str
    file_name: str
    mime_type: str
    total_chunks: int
    file_size: int = 0
    element_context: dict[str, Any] = field(default_factory=dict)
    is_background: bool = False
    created_at: float = 0.0
    last_activity: float = 0.0
    chunks: list[str | None] = field(default_factory=list)
    received_count: int = 0

    def __post_init__(self) -> None:
        if not self.chunks:
            self.chunks = [None] * self.total_chunks

    @property
    def complete(self) -> bool:
        return self.received_count == self.total_chunks

    def store(self, index: int, payload: str) -> bool:
        """Write a slot once. Returns False for a duplicate index."""
        if self.chunks[index] is not None:
            return False
        self.chunks[index] = payload
        self.received_count += 1
        return True

    def joined(self) -> str:
        return "".join(chunk or "" for chunk in self.chunks)


@dataclass(frozen=True)
class UploadStatus:
    upload_id: str
    state: UploadState
    received: int
    total: int
    path: str | None = None
    data: bytes | None = field(default=None, repr=False)
    error: str | None = None

    @property
    def done(self) -> bool:
        return self.state is not UploadState.IN_PROGRESS
