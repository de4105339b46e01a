"""Tests for element snapshots, locations and style changes on the wire."""

import pytest

from liveedit.errors import ProtocolError
from liveedit.model import (
    BoundingRect,
    ElementDescriptor,
    ElementType,
    LocatorHints,
    SourceLocation,
    StyleChange,
    UploadBuffer,
)


class TestSourceLocation:
    def test_column_is_optional(self):
        assert SourceLocation("a.tsx", 3).to_wire() == {"filePath": "a.tsx", "lineNumber": 3}

    def test_from_wire(self):
        location = SourceLocation.from_wire({"filePath": "a.tsx", "lineNumber": "4", "columnNumber": 2})
        assert location == SourceLocation("a.tsx", 4, 2)

    def test_none(self):
        assert SourceLocation.from_wire(None) is None

    def test_missing_path(self):
        with pytest.raises(ProtocolError):
            SourceLocation.from_wire({"lineNumber": 4})


class TestBoundingRect:
    def test_derived_edges(self):
        rect = BoundingRect(top=10, left=20, width=30, height=40)
        assert rect.bottom == 50
        assert rect.right == 50
        assert rect.to_wire()["bottom"] == 50

    def test_garbage_is_empty(self):
        assert BoundingRect.from_wire("nope") == BoundingRect()


class TestElementDescriptor:
    def test_from_wire_defaults(self):
        element = ElementDescriptor.from_wire({"selector": "#a", "tagName": "div", "elementType": "bogus"})
        assert element.class_attribute == ""
        assert element.computed_styles == {}
        assert element.element_type is ElementType.GENERIC
        assert element.source_location is None

    def test_null_styles_become_empty_strings(self):
        element = ElementDescriptor.from_wire(
            {"selector": "#a", "tagName": "div", "computedStyles": {"color": None, "opacity": 1}}
        )
        assert element.computed_styles == {"color": "", "opacity": "1"}

    def test_selector_required(self):
        with pytest.raises(ProtocolError):
            ElementDescriptor.from_wire({"tagName": "div"})

    def test_with_computed_styles_is_a_copy(self):
        element = ElementDescriptor("#a", "div", computed_styles={"color": "black", "opacity": "1"})
        updated = element.with_computed_styles({"color": "red"})
        assert updated.computed_styles == {"color": "red", "opacity": "1"}
        assert element.computed_styles["color"] == "black"


class TestStyleChange:
    def test_inverted(self):
        change = StyleChange("color", "black", "red", use_inline_style=True)
        assert change.inverted() == StyleChange("color", "red", "black", use_inline_style=True)

    def test_from_wire_requires_property(self):
        with pytest.raises(ProtocolError):
            StyleChange.from_wire({"newValue": "red"})

    def test_empty_new_value_is_a_removal(self):
        assert StyleChange.from_wire({"property": "color", "newValue": ""}).new_value == ""


class TestLocatorHints:
    def test_zero_line_is_unknown(self):
        hints = LocatorHints.from_source_location("#a", SourceLocation("a.tsx", 0))
        assert hints.line_number is None

    def test_describe(self):
        hints = LocatorHints(selector="#a", line_number=3, text_content="Hello")
        assert hints.describe() == "selector=#a, line=3, text='Hello'"


class TestUploadBuffer:
    def test_store_once(self):
        buffer = UploadBuffer("u1", "a.png", "image/png", total_chunks=2)
        assert buffer.store(1, "b")
        assert not buffer.store(1, "x")
        assert not buffer.complete
        assert buffer.store(0, "a")
        assert buffer.complete
        assert buffer.joined() == "ab"
