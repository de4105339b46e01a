"""Style edits, undo history entries and locator hints."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from liveedit.errors import ProtocolError
from liveedit.model.element import SourceLocation


@dataclass(frozen=True)
class StyleChange:
    """One property edit. A batch of changes forms one logical edit."""

    property: str
    old_value: str
    new_value: str
    use_inline_style: bool = False

    def inverted(self) -> StyleChange:
        return dataclasses.replace(self, old_value=self.new_value, new_value=self.old_value)

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "property": self.property,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }
        if self.use_inline_style:
            data["useInlineStyle"] = True
        return data

    @classmethod
    def from_wire(cls, data: Any) -> StyleChange:
        if not isinstance(data, dict):
            raise ProtocolError("change must be an object", payload=data)
        prop = data.get("property")
        if not isinstance(prop, str) or not prop:
            raise ProtocolError("change.property is required", payload=data)
        new_value = data.get("newValue")
        if new_value is None:
            raise ProtocolError("change.newValue is required", payload=data)
        return cls(
            property=prop,
            old_value=str(data.get("oldValue") or ""),
            new_value=str(new_value),
            use_inline_style=bool(data.get("useInlineStyle", False)),
        )


@dataclass(frozen=True)
class LocatorHints:
    """Everything the backend may use to find an element's originating markup."""

    selector: str = ""
    line_number: int | None = None
    column_number: int | None = None
    text_content: str | None = None
    class_name: str | None = None

    @classmethod
    def from_source_location(
        cls,
        selector: str,
        location: SourceLocation | None,
        *,
        text_content: str | None = None,
        class_name: str | None = None,
    ) -> LocatorHints:
        return cls(
            selector=selector,
            line_number=location.line_number if location and location.line_number > 0 else None,
            column_number=location.column_number if location else None,
            text_content=text_content,
            class_name=class_name,
        )

    def describe(self) -> str:
        parts = [f"selector={self.selector or '-'}"]
        if self.line_number:
            parts.append(f"line={self.line_number}")
        if self.text_content:
            parts.append(f"text={self.text_content[:30]!r}")
        if self.class_name:
            parts.append(f"class={self.class_name[:50]!r}")
        return ", ".join(parts)


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    selector: str
    changes: tuple[StyleChange, ...]
    timestamp: float
    file_path: str | None = None
    source_location: SourceLocation | None = None
    text_content: str | None = None
    class_name: str | None = None

    def inverted(self) -> HistoryEntry:
        """Structural inverse: every change with old and new values swapped."""
        return dataclasses.replace(self, changes=tuple(c.inverted() for c in self.changes))
