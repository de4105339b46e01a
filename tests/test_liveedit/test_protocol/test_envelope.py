"""Tests for the prefix-tagged cross-frame envelope and message catalogue."""

import pytest

from liveedit.config import LiveEditConfig
from liveedit.errors import ProtocolError
from liveedit.model.element import ElementDescriptor, ElementType, SourceLocation
from liveedit.protocol import (
    DEFAULT_PREFIX,
    FRAME_TO_HOST,
    HOST_TO_FRAME,
    ClearPreview,
    ElementHovered,
    ElementSelected,
    PreviewStyle,
    TextEdit,
    decode,
    encode,
)


def _descriptor() -> ElementDescriptor:
    return ElementDescriptor(
        selector='#hero[data-liveedit-id="el-1-abc123"]',
        tag_name="h1",
        class_attribute="text-2xl font-bold",
        computed_styles={"fontWeight": "700"},
        text_content="Welcome home",
        is_text_editable=True,
        source_location=SourceLocation("src/App.tsx", 5, 7),
        element_type=ElementType.TEXT,
    )


class TestEncode:
    def test_envelope_shape(self):
        message = encode(PreviewStyle(selector="#a", styles={"color": "red"}))
        assert message == {
            "prefix": DEFAULT_PREFIX,
            "type": "preview_style",
            "selector": "#a",
            "styles": {"color": "red"},
        }

    def test_default_prefix_comes_from_config(self):
        assert DEFAULT_PREFIX == LiveEditConfig().message_prefix == "liveedit_design_mode"

    def test_custom_prefix(self):
        assert encode(ClearPreview(), prefix="other")["prefix"] == "other"

    def test_clear_all_omits_selector(self):
        assert encode(ClearPreview()) == {"prefix": DEFAULT_PREFIX, "type": "clear_preview"}


class TestDecode:
    def test_foreign_prefix_is_ignored(self):
        data = {"prefix": "someone_else", "type": "preview_style", "selector": "#a", "styles": {}}
        assert decode(data, HOST_TO_FRAME) is None

    def test_non_dict_is_ignored(self):
        assert decode("hello", HOST_TO_FRAME) is None
        assert decode(None, HOST_TO_FRAME) is None

    def test_unknown_type_is_ignored(self):
        assert decode({"prefix": DEFAULT_PREFIX, "type": "teleport"}, HOST_TO_FRAME) is None

    def test_direction_matters(self):
        """A frame -> host tag is not accepted on the host -> frame catalogue."""
        assert decode(encode(ElementHovered(element=None)), HOST_TO_FRAME) is None

    def test_missing_styles_is_malformed(self):
        with pytest.raises(ProtocolError):
            decode({"prefix": DEFAULT_PREFIX, "type": "preview_style", "selector": "#a"}, HOST_TO_FRAME)

    def test_empty_selector_is_malformed(self):
        with pytest.raises(ProtocolError):
            decode({"prefix": DEFAULT_PREFIX, "type": "select_element", "selector": ""}, HOST_TO_FRAME)

    def test_selected_without_element_is_malformed(self):
        with pytest.raises(ProtocolError):
            decode({"prefix": DEFAULT_PREFIX, "type": "element_selected"}, FRAME_TO_HOST)

    def test_hover_may_be_null(self):
        message = decode({"prefix": DEFAULT_PREFIX, "type": "element_hovered", "element": None}, FRAME_TO_HOST)
        assert message == ElementHovered(element=None)

    def test_selected_descriptor_survives_the_wire(self):
        message = decode(encode(ElementSelected(element=_descriptor())), FRAME_TO_HOST)
        element = message.element
        assert element.selector == _descriptor().selector
        assert element.computed_styles == {"fontWeight": "700"}
        assert element.source_location == SourceLocation("src/App.tsx", 5, 7)
        assert element.element_type is ElementType.TEXT

    def test_text_edit_carries_source_location(self):
        data = encode(TextEdit(selector="#a", old_text="Old", new_text="", source_location=SourceLocation("a.tsx", 3)))
        assert data["sourceLocation"] == {"filePath": "a.tsx", "lineNumber": 3}
        message = decode(data, FRAME_TO_HOST)
        assert message.new_text == ""
        assert message.source_location.line_number == 3

    def test_bad_source_location_is_malformed(self):
        data = {
            "prefix": DEFAULT_PREFIX,
            "type": "text_edit",
            "selector": "#a",
            "oldText": "a",
            "newText": "b",
            "sourceLocation": {"filePath": "a.tsx", "lineNumber": "five"},
        }
        with pytest.raises(ProtocolError):
            decode(data, FRAME_TO_HOST)
