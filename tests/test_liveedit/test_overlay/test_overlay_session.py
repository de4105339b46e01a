"""Tests for the in-frame overlay state machine."""

from __future__ import annotations

from liveedit.model.element import BoundingRect, SourceLocation
from liveedit.overlay import (
    CallableResolver,
    DebugFiber,
    Document,
    DomEvent,
    ElementRegistry,
    OverlaySession,
    OverlayState,
)
from liveedit.overlay.session import HIGHLIGHT_ID, SELECTION_ID, STYLE_SHEET_ID, TEXT_EDIT_ID, TEXT_INPUT_ID
from liveedit.protocol import ElementDeselected, ElementHovered, ElementSelected, TextEdit


def _page():
    doc = Document()
    card = doc.create_element(
        "div",
        {"id": "card", "class": "p-4 text-gray-700"},
        rect=BoundingRect(10, 20, 300, 100),
        computed={"color": "#374151", "paddingTop": "16px"},
    )
    title = doc.create_element(
        "h1",
        {"class": "text-2xl font-bold"},
        debug_fiber=DebugFiber(source={"fileName": "/app/src/App.tsx", "lineNumber": 5, "columnNumber": 7}),
    )
    title.append_text("Welcome home")
    card.append(title)
    field = doc.create_element("input", {"name": "q"})
    card.append(field)
    doc.body.append(card)
    return doc, card, title, field


def _session():
    doc, card, title, field = _page()
    sent = []
    session = OverlaySession(doc, ElementRegistry(doc), sent.append)
    session.install()
    return session, sent, doc, card, title, field


def _fire(doc, event_type, target, **kwargs):
    return doc.dispatch_event(DomEvent(event_type, target=target, **kwargs))


# ---------------------------------------------------------------------------
# Install / teardown
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_install_adds_chrome(self):
        session, _, doc, *_ = _session()
        assert session.installed
        assert doc.get_element_by_id(STYLE_SHEET_ID).parent is doc.head
        assert doc.get_element_by_id(HIGHLIGHT_ID).style["display"] == "none"
        assert doc.get_element_by_id(SELECTION_ID) is not None
        assert doc.body.style["cursor"] == "crosshair"

    def test_teardown_removes_everything(self):
        session, _, doc, card, title, _ = _session()
        _fire(doc, "click", title)
        session.apply_preview(session.registry.selector_for(card), {"color": "red"})
        session.teardown()

        assert doc.listener_count() == 0
        assert doc.get_element_by_id(HIGHLIGHT_ID) is None
        assert doc.get_element_by_id(SELECTION_ID) is None
        assert doc.get_element_by_id(STYLE_SHEET_ID) is None
        assert "cursor" not in doc.body.style
        assert "color" not in card.style
        assert session.state is OverlayState.IDLE

    def test_install_twice_is_harmless(self):
        session, _, doc, *_ = _session()
        before = doc.listener_count()
        session.install()
        assert doc.listener_count() == before


# ---------------------------------------------------------------------------
# Hover and selection
# ---------------------------------------------------------------------------


class TestHoverAndSelect:
    def test_hover_reports_descriptor(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "mousemove", title)
        assert session.state is OverlayState.HOVERING
        assert isinstance(sent[-1], ElementHovered)
        assert sent[-1].element.tag_name == "h1"
        assert doc.get_element_by_id(HIGHLIGHT_ID).style["display"] == "block"

    def test_hover_same_element_once(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "mousemove", title)
        _fire(doc, "mousemove", title)
        assert len(sent) == 1

    def test_hover_on_overlay_chrome_clears(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "mousemove", title)
        _fire(doc, "mousemove", doc.get_element_by_id(HIGHLIGHT_ID))
        assert sent[-1] == ElementHovered(element=None)
        assert session.hovered is None

    def test_mouse_leave_clears_hover(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "mousemove", title)
        _fire(doc, "mouseleave", None)
        assert sent[-1] == ElementHovered(element=None)

    def test_click_selects(self):
        session, sent, doc, card, title, _ = _session()
        event = _fire(doc, "click", title)
        assert event.default_prevented
        assert event.propagation_stopped
        assert session.state is OverlayState.SELECTED
        selected = sent[-1]
        assert isinstance(selected, ElementSelected)
        assert selected.element.text_content == "Welcome home"
        assert selected.element.is_text_editable
        assert selected.element.source_location == SourceLocation("src/App.tsx", 5, 7)
        assert selected.element.parent_selector == session.registry.selector_for(card)

    def test_failing_resolver_still_selects(self):
        def offline(element):
            raise ConnectionError("devtools bridge offline")

        doc, card, title, _ = _page()
        sent = []
        session = OverlaySession(doc, ElementRegistry(doc), sent.append, resolver=CallableResolver(offline))
        session.install()

        _fire(doc, "click", card)
        assert session.selected is card
        assert isinstance(sent[-1], ElementSelected)
        assert sent[-1].element.source_location is None

        _fire(doc, "click", title)
        assert sent[-1].element.source_location == SourceLocation("src/App.tsx", 5, 7)

    def test_click_does_not_reach_page_handlers(self):
        session, _, doc, card, title, _ = _session()
        clicks = []
        title.add_event_listener("click", clicks.append)
        _fire(doc, "click", title)
        assert clicks == []

    def test_click_selected_again_deselects(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "click", title)
        _fire(doc, "click", title)
        assert isinstance(sent[-1], ElementDeselected)
        assert session.state is OverlayState.IDLE

    def test_escape_deselects(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "click", title)
        _fire(doc, "keydown", doc.body, key="Escape")
        assert session.selected is None
        assert isinstance(sent[-1], ElementDeselected)

    def test_hovering_selected_element_hides_highlight(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "click", title)
        _fire(doc, "mousemove", title)
        assert doc.get_element_by_id(HIGHLIGHT_ID).style["display"] == "none"
        assert isinstance(sent[-1], ElementSelected)

    def test_scroll_repositions_selection(self):
        session, _, doc, card, title, _ = _session()
        _fire(doc, "click", card)
        card.rect = BoundingRect(50, 20, 300, 100)
        _fire(doc, "scroll", None)
        assert doc.get_element_by_id(SELECTION_ID).style["top"] == "50px"


# ---------------------------------------------------------------------------
# Form controls
# ---------------------------------------------------------------------------


class TestFormControls:
    def test_typing_is_blocked(self):
        session, _, doc, card, title, field = _session()
        assert _fire(doc, "keydown", field, key="a").default_prevented

    def test_escape_is_not_blocked(self):
        session, _, doc, card, title, field = _session()
        assert not _fire(doc, "keydown", field, key="Escape").default_prevented

    def test_focus_is_undone(self):
        session, _, doc, card, title, field = _session()
        field.focus()
        assert doc.active_element is None


# ---------------------------------------------------------------------------
# Inline text editing
# ---------------------------------------------------------------------------


class TestTextEditing:
    def test_double_click_starts_editing(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        assert session.state is OverlayState.EDITING_TEXT
        assert isinstance(sent[-1], ElementSelected)
        assert editor.text_content == "Welcome home"
        assert editor.content_editable
        assert doc.active_element is editor

    def test_double_click_on_container_does_nothing(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", card)
        assert session.state is OverlayState.IDLE
        assert sent == []

    def test_enter_commits(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        editor.text_content = "Hello there"
        _fire(doc, "keydown", editor, key="Enter")

        assert title.text_content == "Hello there"
        edit = sent[-1]
        assert isinstance(edit, TextEdit)
        assert (edit.old_text, edit.new_text) == ("Welcome home", "Hello there")
        assert edit.source_location == SourceLocation("src/App.tsx", 5, 7)
        assert session.state is OverlayState.SELECTED
        assert doc.get_element_by_id(TEXT_EDIT_ID) is None

    def test_shift_enter_does_not_commit(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        _fire(doc, "keydown", editor, key="Enter", shift_key=True)
        assert session.state is OverlayState.EDITING_TEXT

    def test_escape_cancels(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        editor.text_content = "Discard me"
        _fire(doc, "keydown", editor, key="Escape")
        assert title.text_content == "Welcome home"
        assert not any(isinstance(m, TextEdit) for m in sent)
        assert session.state is OverlayState.SELECTED

    def test_blur_commits(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        editor.text_content = "Blurred"
        editor.blur()
        assert isinstance(sent[-1], TextEdit)
        assert title.text_content == "Blurred"

    def test_unchanged_text_sends_nothing(self):
        session, sent, doc, card, title, _ = _session()
        _fire(doc, "dblclick", title)
        editor = doc.get_element_by_id(TEXT_INPUT_ID)
        _fire(doc, "keydown", editor, key="Enter")
        assert not any(isinstance(m, TextEdit) for m in sent)

    def test_child_elements_survive_text_edit(self):
        session, sent, doc, card, title, _ = _session()
        badge = doc.create_element("span")
        badge.append_text("new")
        title.append(badge)
        session.select(title)
        session.start_text_edit(title)
        doc.get_element_by_id(TEXT_INPUT_ID).text_content = "Hi"
        session.commit_text_edit()
        assert badge.parent is title
        assert title.text_content == "Hinew"


# ---------------------------------------------------------------------------
# Style previews
# ---------------------------------------------------------------------------


class TestPreviews:
    def test_preview_overrides_and_strips_classes(self):
        session, _, doc, card, title, _ = _session()
        selector = session.registry.selector_for(card)
        assert session.apply_preview(selector, {"color": "red", "paddingTop": "8px"})
        assert card.style["color"] == "red"
        assert card.style["padding-top"] == "8px"
        assert "color" in card.important
        assert card.class_name == "p-4"

    def test_clear_restores_original(self):
        session, _, doc, card, title, _ = _session()
        card.set_style("color", "blue")
        selector = session.registry.selector_for(card)
        session.apply_preview(selector, {"color": "red"})
        session.apply_preview(selector, {"color": "green", "backgroundColor": "#fff"})
        session.clear_preview(selector)
        assert card.style == {"color": "blue"}
        assert card.class_name == "p-4 text-gray-700"
        assert session.previewed == []

    def test_element_without_class_attribute_keeps_none(self):
        session, _, doc, card, title, field = _session()
        selector = session.registry.selector_for(field)
        session.apply_preview(selector, {"color": "red"})
        session.clear_preview()
        assert field.get_attribute("class") is None

    def test_unknown_selector(self):
        session, *_ = _session()
        assert not session.apply_preview('[data-liveedit-id="nope"]', {"color": "red"})

    def test_update_text(self):
        session, _, doc, card, title, _ = _session()
        result = session.update_text(session.registry.selector_for(title), "Changed")
        assert result == ("Welcome home", "Changed")
        assert title.text_content == "Changed"

    def test_update_text_refuses_containers(self):
        session, _, doc, card, title, _ = _session()
        assert session.update_text(session.registry.selector_for(card), "Nope") is None
