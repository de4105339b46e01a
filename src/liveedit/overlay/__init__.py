from liveedit.overlay.client import PreviewFrameClient
from liveedit.overlay.descriptors import extract_descriptor, is_text_editable, should_ignore
from liveedit.overlay.dom import DebugFiber, Document, DomEvent, Element
from liveedit.overlay.registry import ElementRegistry
from liveedit.overlay.session import OverlaySession, OverlayState
from liveedit.overlay.source_location import (
    CallableResolver,
    ChainResolver,
    DebugMetadataResolver,
    default_resolver,
)

__all__ = [
    "CallableResolver",
    "ChainResolver",
    "DebugFiber",
    "DebugMetadataResolver",
    "Document",
    "DomEvent",
    "Element",
    "ElementRegistry",
    "OverlaySession",
    "OverlayState",
    "PreviewFrameClient",
    "default_resolver",
    "extract_descriptor",
    "is_text_editable",
    "should_ignore",
]
