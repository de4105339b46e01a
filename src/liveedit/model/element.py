"""Element snapshots exchanged between the preview frame and the host."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from liveedit.errors import ProtocolError


class ElementType(StrEnum):
    TEXT = "text"
    BUTTON = "button"
    INPUT = "input"
    IMAGE = "image"
    CONTAINER = "container"
    LIST = "list"
    GENERIC = "generic"


@dataclass(frozen=True)
class SourceLocation:
    file_path: str
    line_number: int
    column_number: int | None = None

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"filePath": self.file_path, "lineNumber": self.line_number}
        if self.column_number is not None:
            data["columnNumber"] = self.column_number
        return data

    @classmethod
    def from_wire(cls, data: Any) -> SourceLocation | None:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ProtocolError("sourceLocation must be an object", payload=data)
        file_path = data.get("filePath")
        if not isinstance(file_path, str):
            raise ProtocolError("sourceLocation.filePath must be a string", payload=data)
        line = data.get("lineNumber", 0)
        column = data.get("columnNumber")
        try:
            return cls(
                file_path=file_path,
                line_number=int(line or 0),
                column_number=int(column) if column is not None else None,
            )
        except (TypeError, ValueError) as exc:
            raise ProtocolError("sourceLocation has non-numeric positions", payload=data) from exc


@dataclass(frozen=True)
class BoundingRect:
    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    def to_wire(self) -> dict[str, float]:
        return {
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
            "bottom": self.bottom,
            "right": self.right,
        }

    @classmethod
    def from_wire(cls, data: Any) -> BoundingRect:
        if not isinstance(data, dict):
            return cls()
        return cls(
            top=float(data.get("top", 0)),
            left=float(data.get("left", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
        )


@dataclass(frozen=True)
class ElementDescriptor:
    """Immutable snapshot of one live element.

    A new descriptor is produced every time an element is hovered or selected;
    descriptors are replaced, never mutated.
    """

    selector: str
    tag_name: str
    class_attribute: str = ""
    computed_styles: dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    inline_styles: dict[str, str] = field(default_factory=dict, hash=False, compare=False)
    bounding_rect: BoundingRect = field(default_factory=BoundingRect)
    text_content: str | None = None
    is_text_editable: bool = False
    source_location: SourceLocation | None = None
    parent_selector: str | None = None
    child_count: int = 0
    element_type: ElementType = ElementType.GENERIC

    def with_source_location(self, location: SourceLocation | None) -> ElementDescriptor:
        return dataclasses.replace(self, source_location=location)

    def with_computed_styles(self, updates: dict[str, str]) -> ElementDescriptor:
        merged = dict(self.computed_styles)
        merged.update(updates)
        return dataclasses.replace(self, computed_styles=merged)

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "selector": self.selector,
            "tagName": self.tag_name,
            "className": self.class_attribute,
            "computedStyles": dict(self.computed_styles),
            "inlineStyles": dict(self.inline_styles),
            "boundingRect": self.bounding_rect.to_wire(),
            "isTextEditable": self.is_text_editable,
            "childCount": self.child_count,
            "elementType": self.element_type.value,
        }
        if self.text_content is not None:
            data["textContent"] = self.text_content
        if self.source_location is not None:
            data["sourceLocation"] = self.source_location.to_wire()
        if self.parent_selector is not None:
            data["parentSelector"] = self.parent_selector
        return data

    @classmethod
    def from_wire(cls, data: Any) -> ElementDescriptor:
        if not isinstance(data, dict):
            raise ProtocolError("element must be an object", payload=data)
        selector = data.get("selector")
        tag_name = data.get("tagName")
        if not isinstance(selector, str) or not selector:
            raise ProtocolError("element.selector is required", payload=data)
        if not isinstance(tag_name, str):
            raise ProtocolError("element.tagName is required", payload=data)
        try:
            element_type = ElementType(data.get("elementType", "generic"))
        except ValueError:
            element_type = ElementType.GENERIC
        text = data.get("textContent")
        return cls(
            selector=selector,
            tag_name=tag_name,
            class_attribute=str(data.get("className") or ""),
            computed_styles=_string_map(data.get("computedStyles")),
            inline_styles=_string_map(data.get("inlineStyles")),
            bounding_rect=BoundingRect.from_wire(data.get("boundingRect")),
            text_content=str(text) if text is not None else None,
            is_text_editable=bool(data.get("isTextEditable", False)),
            source_location=SourceLocation.from_wire(data.get("sourceLocation")),
            parent_selector=data.get("parentSelector"),
            child_count=int(data.get("childCount", 0) or 0),
            element_type=element_type,
        )


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): "" if v is None else str(v) for k, v in value.items()}
