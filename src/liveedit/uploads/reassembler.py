"""Reassembly of chunked asset uploads."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import time
from collections.abc import Callable
from pathlib import PurePosixPath

from werkzeug.utils import secure_filename

from liveedit.config import LiveEditConfig
from liveedit.errors import UploadError
from liveedit.files import FileManager
from liveedit.model.upload import UploadBuffer, UploadState, UploadStatus
from liveedit.protocol.backend_messages import ImageUploadChunk

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,")
# room for a `data:<mime>;base64,` prefix on top of the encoded bytes
_DATA_URL_ALLOWANCE = 128


def decode_payload(payload: str, upload_id: str = "") -> bytes:
    """Strip an optional ``data:<mime>;base64,`` prefix and decode."""
    body = _DATA_URL_RE.sub("", payload.strip(), count=1)
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UploadError(f"Upload {upload_id} is not valid base64", upload_id=upload_id) from exc


def max_chunks_for(file_size: int) -> int:
    """Most chunks a declared size can need: one base64 character per chunk."""
    return 4 * -(-file_size // 3) + _DATA_URL_ALLOWANCE


def asset_name(upload_id: str, file_name: str, mime_type: str) -> str:
    name = secure_filename(file_name) or "image"
    if not PurePosixPath(name).suffix:
        name += mimetypes.guess_extension(mime_type) or ""
    return f"{upload_id[:8]}-{name}"


class UploadReassembler:
    """Buffers index-addressed chunks per upload id until every slot is filled.

    The first chunk to arrive for an index is authoritative; later duplicates
    are ignored. A buffer is dropped as soon as its upload completes or
    fails, and buffers idle for longer than ``upload_ttl_seconds`` are
    evicted.
    """

    def __init__(
        self,
        file_manager: FileManager,
        config: LiveEditConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.file_manager = file_manager
        self.config = config or LiveEditConfig()
        self._clock = clock
        self._buffers: dict[str, UploadBuffer] = {}

    @property
    def pending_uploads(self) -> list[str]:
        return list(self._buffers)

    def receive(self, chunk: ImageUploadChunk) -> UploadStatus:
        self._evict_stale()
        try:
            buffer = self._buffer_for(chunk)
            buffer.last_activity = self._clock()
            if not buffer.store(chunk.chunk_index, chunk.chunk):
                logger.debug("Ignoring duplicate chunk %d of %s", chunk.chunk_index, chunk.upload_id)
            if not buffer.complete:
                return UploadStatus(
                    upload_id=chunk.upload_id,
                    state=UploadState.IN_PROGRESS,
                    received=buffer.received_count,
                    total=buffer.total_chunks,
                )
            self._buffers.pop(chunk.upload_id, None)
            return self._finish(buffer)
        except UploadError as exc:
            self._buffers.pop(chunk.upload_id, None)
            logger.warning("Upload %s failed: %s", chunk.upload_id, exc)
            return UploadStatus(
                upload_id=chunk.upload_id,
                state=UploadState.FAILED,
                received=0,
                total=chunk.total_chunks,
                error=str(exc),
            )

    def _buffer_for(self, chunk: ImageUploadChunk) -> UploadBuffer:
        if chunk.total_chunks < 1:
            raise UploadError("totalChunks must be at least 1", upload_id=chunk.upload_id)
        if chunk.total_chunks > self.config.max_upload_chunks:
            raise UploadError(
                f"totalChunks {chunk.total_chunks} exceeds the limit of {self.config.max_upload_chunks}",
                upload_id=chunk.upload_id,
            )
        if chunk.file_size > 0 and chunk.total_chunks > max_chunks_for(chunk.file_size):
            raise UploadError(
                f"totalChunks {chunk.total_chunks} is too many for {chunk.file_size} bytes",
                upload_id=chunk.upload_id,
            )
        if not 0 <= chunk.chunk_index < chunk.total_chunks:
            raise UploadError(
                f"chunkIndex {chunk.chunk_index} outside 0..{chunk.total_chunks - 1}",
                upload_id=chunk.upload_id,
            )

        buffer = self._buffers.get(chunk.upload_id)
        if buffer is None:
            if chunk.mime_type not in self.config.allowed_upload_types:
                raise UploadError(f"Unsupported file type {chunk.mime_type}", upload_id=chunk.upload_id)
            if chunk.file_size > self.config.max_upload_bytes:
                raise UploadError(
                    f"File is {chunk.file_size} bytes; the limit is {self.config.max_upload_bytes}",
                    upload_id=chunk.upload_id,
                )
            buffer = UploadBuffer(
                upload_id=chunk.upload_id,
                file_name=chunk.file_name,
                mime_type=chunk.mime_type,
                total_chunks=chunk.total_chunks,
                file_size=chunk.file_size,
                element_context=dict(chunk.element_context),
                is_background=chunk.is_background,
                created_at=self._clock(),
                last_activity=self._clock(),
            )
            self._buffers[chunk.upload_id] = buffer
            logger.info("Started upload %s (%d chunks)", chunk.upload_id, chunk.total_chunks)
        elif buffer.total_chunks != chunk.total_chunks:
            raise UploadError(
                f"totalChunks changed from {buffer.total_chunks} to {chunk.total_chunks}",
                upload_id=chunk.upload_id,
            )
        return buffer

    def _finish(self, buffer: UploadBuffer) -> UploadStatus:
        data = decode_payload(buffer.joined(), buffer.upload_id)
        if len(data) > self.config.max_upload_bytes:
            raise UploadError(f"Decoded upload exceeds {self.config.max_upload_bytes} bytes", upload_id=buffer.upload_id)

        path = f"{self.config.upload_dir.strip('/')}/{asset_name(buffer.upload_id, buffer.file_name, buffer.mime_type)}"
        result = self.file_manager.save_file(path, data, f"design mode: upload {buffer.file_name}")
        if not result.success:
            raise UploadError(result.error or f"Failed to save {path}", upload_id=buffer.upload_id)

        logger.info("Upload %s saved to %s (%d bytes)", buffer.upload_id, path, len(data))
        return UploadStatus(
            upload_id=buffer.upload_id,
            state=UploadState.COMPLETE,
            received=buffer.received_count,
            total=buffer.total_chunks,
            path=path,
            data=data,
        )

    def _evict_stale(self) -> None:
        now = self._clock()
        stale = [
            upload_id
            for upload_id, buffer in self._buffers.items()
            if now - buffer.last_activity > self.config.upload_ttl_seconds
        ]
        for upload_id in stale:
            logger.warning("Evicting idle upload %s", upload_id)
            del self._buffers[upload_id]
