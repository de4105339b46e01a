from __future__ import annotations

from liveedit.protocol.backend_messages import (
    REQUESTS,
    RESPONSES,
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
from liveedit.protocol.channel import MessageChannel, MessagePort
from liveedit.protocol.envelope import DEFAULT_PREFIX, decode, encode
from liveedit.protocol.frame_messages import (
    FRAME_TO_HOST,
    HOST_TO_FRAME,
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

__all__ = [
    # envelope
    "DEFAULT_PREFIX",
    "decode",
    "encode",
    # channel
    "MessageChannel",
    "MessagePort",
    # host -> frame
    "HOST_TO_FRAME",
    "ClearPreview",
    "Disable",
    "Enable",
    "PreviewStyle",
    "SelectElement",
    "UpdateText",
    # frame -> host
    "FRAME_TO_HOST",
    "ElementDeselected",
    "ElementHovered",
    "ElementSelected",
    "FrameError",
    "Ready",
    "TextEdit",
    "TextEdited",
    # backend
    "REQUESTS",
    "RESPONSES",
    "BackendError",
    "CodeLocation",
    "FailedChange",
    "GoToCodeRequest",
    "ImageUploadChunk",
    "ImageUploaded",
    "PreviewRefreshed",
    "RefreshPreviewRequest",
    "StyleUpdated",
    "StyleUpdateRequest",
    "TextUpdated",
    "TextUpdateRequest",
    "UploadProgress",
    "parse_backend_message",
]
