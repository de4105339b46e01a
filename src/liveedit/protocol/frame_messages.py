"""Message catalogue exchanged between the host and the preview frame.

Each tag has exactly one payload shape. Payloads are validated by
``from_payload`` before anything is dispatched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from liveedit.errors import ProtocolError
from liveedit.model.element import ElementDescriptor, SourceLocation


def _require_str(data: dict[str, Any], key: str, *, allow_empty: bool = False) -> str:
    value = data.get(key)
    if not isinstance(value, str) or (not allow_empty and not value):
        raise ProtocolError(f"{key} must be a non-empty string", payload=data)
    return value


# ---------------------------------------------------------------------------
# Host -> frame
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Enable:
    TYPE: ClassVar[str] = "enable"

    def payload(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Enable:
        return cls()


@dataclass(frozen=True)
class Disable:
    TYPE: ClassVar[str] = "disable"

    def payload(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Disable:
        return cls()


@dataclass(frozen=True)
class PreviewStyle:
    TYPE: ClassVar[str] = "preview_style"

    selector: str
    styles: dict[str, str] = field(default_factory=dict, hash=False)

    def payload(self) -> dict[str, Any]:
        return {"selector": self.selector, "styles": dict(self.styles)}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> PreviewStyle:
        styles = data.get("styles")
        if not isinstance(styles, dict):
            raise ProtocolError("styles must be an object", payload=data)
        return cls(
            selector=_require_str(data, "selector"),
            styles={str(k): str(v) for k, v in styles.items()},
        )


@dataclass(frozen=True)
class ClearPreview:
    TYPE: ClassVar[str] = "clear_preview"

    selector: str | None = None

    def payload(self) -> dict[str, Any]:
        return {"selector": self.selector} if self.selector else {}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ClearPreview:
        selector = data.get("selector")
        if selector is not None and not isinstance(selector, str):
            raise ProtocolError("selector must be a string", payload=data)
        return cls(selector=selector or None)


@dataclass(frozen=True)
class SelectElement:
    TYPE: ClassVar[str] = "select_element"

    selector: str

    def payload(self) -> dict[str, Any]:
        return {"selector": self.selector}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SelectElement:
        return cls(selector=_require_str(data, "selector"))


@dataclass(frozen=True)
class UpdateText:
    TYPE: ClassVar[str] = "update_text"

    selector: str
    text: str

    def payload(self) -> dict[str, Any]:
        return {"selector": self.selector, "text": self.text}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> UpdateText:
        return cls(
            selector=_require_str(data, "selector"),
            text=_require_str(data, "text", allow_empty=True),
        )


HostMessage = Union[Enable, Disable, PreviewStyle, ClearPreview, SelectElement, UpdateText]


# ---------------------------------------------------------------------------
# Frame -> host
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ready:
    TYPE: ClassVar[str] = "ready"

    def payload(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Ready:
        return cls()


@dataclass(frozen=True)
class ElementHovered:
    TYPE: ClassVar[str] = "element_hovered"

    element: ElementDescriptor | None

    def payload(self) -> dict[str, Any]:
        return {"element": self.element.to_wire() if self.element else None}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ElementHovered:
        if "element" not in data:
            raise ProtocolError("element is required (may be null)", payload=data)
        element = data["element"]
        return cls(element=ElementDescriptor.from_wire(element) if element is not None else None)


@dataclass(frozen=True)
class ElementSelected:
    TYPE: ClassVar[str] = "element_selected"

    element: ElementDescriptor

    def payload(self) -> dict[str, Any]:
        return {"element": self.element.to_wire()}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ElementSelected:
        return cls(element=ElementDescriptor.from_wire(data.get("element")))


@dataclass(frozen=True)
class ElementDeselected:
    TYPE: ClassVar[str] = "element_deselected"

    def payload(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> ElementDeselected:
        return cls()


@dataclass(frozen=True)
class TextEdit:
    """Inline edit committed by the user inside the frame."""

    TYPE: ClassVar[str] = "text_edit"

    selector: str
    old_text: str
    new_text: str
    source_location: SourceLocation | None = None

    def payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "selector": self.selector,
            "oldText": self.old_text,
            "newText": self.new_text,
        }
        if self.source_location is not None:
            data["sourceLocation"] = self.source_location.to_wire()
        return data

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> TextEdit:
        return cls(
            selector=_require_str(data, "selector"),
            old_text=_require_str(data, "oldText", allow_empty=True),
            new_text=_require_str(data, "newText", allow_empty=True),
            source_location=SourceLocation.from_wire(data.get("sourceLocation")),
        )


@dataclass(frozen=True)
class TextEdited:
    """Acknowledges a host-driven ``update_text``."""

    TYPE: ClassVar[str] = "text_edited"

    selector: str
    old_text: str
    new_text: str

    def payload(self) -> dict[str, Any]:
        return {"selector": self.selector, "oldText": self.old_text, "newText": self.new_text}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> TextEdited:
        return cls(
            selector=_require_str(data, "selector"),
            old_text=_require_str(data, "oldText", allow_empty=True),
            new_text=_require_str(data, "newText", allow_empty=True),
        )


@dataclass(frozen=True)
class FrameError:
    TYPE: ClassVar[str] = "error"

    message: str
    context: str | None = None

    def payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message}
        if self.context is not None:
            data["context"] = self.context
        return data

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> FrameError:
        context = data.get("context")
        return cls(
            message=_require_str(data, "message"),
            context=str(context) if context is not None else None,
        )


FrameMessage = Union[
    Ready, ElementHovered, ElementSelected, ElementDeselected, TextEdit, TextEdited, FrameError
]

HOST_TO_FRAME: dict[str, type] = {
    cls.TYPE: cls
    for cls in (Enable, Disable, PreviewStyle, ClearPreview, SelectElement, UpdateText)
}

FRAME_TO_HOST: dict[str, type] = {
    cls.TYPE: cls
    for cls in (Ready, ElementHovered, ElementSelected, ElementDeselected, TextEdit, TextEdited, FrameError)
}
