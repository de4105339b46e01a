"""The in-frame overlay: hover highlight, selection, inline text editing and
temporary style previews.

An ``OverlaySession`` exists only while design mode is enabled. ``install``
arms it; ``teardown`` removes every listener, overlay node and preview
override it created, leaving the page as it found it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from liveedit.model.element import ElementDescriptor
from liveedit.overlay.descriptors import direct_text, extract_descriptor, is_text_editable, should_ignore
from liveedit.overlay.dom import Document, DomEvent, Element
from liveedit.overlay.registry import NAMESPACE, ElementRegistry
from liveedit.overlay.source_location import DebugMetadataResolver, SourceLocationResolver
from liveedit.patcher.tailwind import remove_property
from liveedit.protocol.frame_messages import (
    ElementDeselected,
    ElementHovered,
    ElementSelected,
    TextEdit,
)

logger = logging.getLogger(__name__)

HIGHLIGHT_ID = f"{NAMESPACE}_highlight_overlay"
SELECTION_ID = f"{NAMESPACE}_selection_overlay"
TEXT_EDIT_ID = f"{NAMESPACE}_text_edit_overlay"
TEXT_INPUT_ID = f"{NAMESPACE}_text_edit_input"
STYLE_SHEET_ID = f"{NAMESPACE}_design_mode_styles"

FORM_ELEMENTS = frozenset({"input", "textarea", "select"})

DESIGN_MODE_CSS = f"""
*:not([id^="{NAMESPACE}"]):not([id^="{NAMESPACE}"] *) {{
  transition: none !important;
  animation: none !important;
}}
*:not([id^="{NAMESPACE}"]):hover {{ transform: none !important; }}
input, textarea, select {{ pointer-events: none !important; }}
[contenteditable="true"]:not([id^="{NAMESPACE}"]) {{ -webkit-user-modify: read-only !important; }}
"""


class OverlayState(StrEnum):
    IDLE = "idle"
    HOVERING = "hovering"
    SELECTED = "selected"
    EDITING_TEXT = "editing_text"


def kebab_case(prop: str) -> str:
    return re.sub(r"[A-Z]", lambda m: "-" + m.group(0).lower(), prop)


@dataclass
class _OriginalState:
    class_name: str | None
    styles: dict[str, str | None] = field(default_factory=dict)


@dataclass
class _TextEdit:
    element: Element
    overlay: Element
    input: Element
    original_text: str


class OverlaySession:
    def __init__(
        self,
        document: Document,
        registry: ElementRegistry,
        send: Callable[[Any], None],
        resolver: SourceLocationResolver | None = None,
    ) -> None:
        self.document = document
        self.registry = registry
        self.send = send
        self.resolver = resolver
        self._fallback = DebugMetadataResolver()
        self.hovered: Element | None = None
        self.selected: Element | None = None
        self._text_edit: _TextEdit | None = None
        self._originals: dict[Element, _OriginalState] = {}
        self._highlight: Element | None = None
        self._selection: Element | None = None
        self._sheet: Element | None = None
        self._installed = False
        self._capture_listeners = (
            ("mousemove", self._on_mouse_move),
            ("click", self._on_click),
            ("dblclick", self._on_double_click),
            ("keydown", self._on_key_down),
            ("keydown", self._on_form_key_down),
            ("focus", self._on_form_focus),
        )

    @property
    def state(self) -> OverlayState:
        if self._text_edit is not None:
            return OverlayState.EDITING_TEXT
        if self.selected is not None:
            return OverlayState.SELECTED
        if self.hovered is not None:
            return OverlayState.HOVERING
        return OverlayState.IDLE

    @property
    def installed(self) -> bool:
        return self._installed

    # -- lifecycle ----------------------------------------------------------------

    def install(self) -> None:
        if self._installed:
            return
        self._sheet = self.document.create_element("style", {"id": STYLE_SHEET_ID})
        self._sheet.text_content = DESIGN_MODE_CSS
        self.document.head.append(self._sheet)
        self._highlight = self._make_overlay(HIGHLIGHT_ID, "2px dashed #3b82f6")
        self._selection = self._make_overlay(SELECTION_ID, "2px solid #3b82f6")

        for event_type, listener in self._capture_listeners:
            self.document.add_event_listener(event_type, listener, capture=True)
        self.document.add_event_listener("mouseleave", self._on_mouse_leave)
        self.document.add_event_listener("scroll", self._on_scroll)
        self.document.body.set_style("cursor", "crosshair")
        self._installed = True
        logger.debug("Overlay installed")

    def teardown(self) -> None:
        if not self._installed:
            return
        for event_type, listener in self._capture_listeners:
            self.document.remove_event_listener(event_type, listener, capture=True)
        self.document.remove_event_listener("mouseleave", self._on_mouse_leave)
        self.document.remove_event_listener("scroll", self._on_scroll)

        self._close_text_edit()
        self.clear_preview()
        for node in (self._highlight, self._selection, self._sheet):
            if node is not None:
                node.remove()
        self._highlight = self._selection = self._sheet = None
        self.hovered = self.selected = None
        self.document.body.remove_style("cursor")
        self._installed = False
        logger.debug("Overlay removed")

    def _make_overlay(self, element_id: str, border: str) -> Element:
        overlay = self.document.create_element("div", {"id": element_id})
        for prop, value in (
            ("position", "fixed"),
            ("pointer-events", "none"),
            ("border", border),
            ("z-index", "2147483646"),
            ("display", "none"),
        ):
            overlay.set_style(prop, value)
        self.document.body.append(overlay)
        return overlay

    @staticmethod
    def _position(overlay: Element | None, element: Element | None) -> None:
        if overlay is None:
            return
        if element is None:
            overlay.set_style("display", "none")
            return
        rect = element.get_bounding_client_rect()
        overlay.set_style("top", f"{rect.top}px")
        overlay.set_style("left", f"{rect.left}px")
        overlay.set_style("width", f"{rect.width}px")
        overlay.set_style("height", f"{rect.height}px")
        overlay.set_style("display", "block")

    # -- descriptors --------------------------------------------------------------

    def describe(self, element: Element, *, precise: bool = False) -> ElementDescriptor:
        descriptor = extract_descriptor(element, self.registry, self._fallback.resolve(element))
        if precise and self.resolver is not None:
            try:
                location = self.resolver.resolve(element)
            except Exception as exc:
                logger.warning("Source lookup failed for <%s>: %s", element.tag_name, exc)
                location = None
            if location is not None:
                descriptor = descriptor.with_source_location(location)
        return descriptor

    # -- pointer handlers ---------------------------------------------------------

    def _on_mouse_move(self, event: DomEvent) -> None:
        target = event.target
        if target is None or should_ignore(target):
            if self.hovered is not None:
                self.hovered = None
                self._position(self._highlight, None)
                self.send(ElementHovered(element=None))
            return
        if target is self.selected:
            self._position(self._highlight, None)
            return
        if target is not self.hovered:
            self.hovered = target
            self._position(self._highlight, target)
            self.send(ElementHovered(element=self.describe(target)))

    def _on_mouse_leave(self, event: DomEvent) -> None:
        if self.hovered is not None:
            self.hovered = None
            self._position(self._highlight, None)
            self.send(ElementHovered(element=None))

    def _on_click(self, event: DomEvent) -> None:
        event.prevent_default()
        event.stop_propagation()
        target = event.target
        if target is None or should_ignore(target):
            return
        if target is self.selected:
            self.deselect()
        else:
            self.select(target)

    def _on_double_click(self, event: DomEvent) -> None:
        event.prevent_default()
        event.stop_propagation()
        target = event.target
        if target is None or should_ignore(target) or not is_text_editable(target):
            return
        if target is not self.selected:
            self.select(target)
        self.start_text_edit(target)

    def _on_key_down(self, event: DomEvent) -> None:
        if event.key != "Escape":
            return
        if self._text_edit is not None:
            self.cancel_text_edit()
        elif self.selected is not None:
            self.deselect()

    def _on_form_key_down(self, event: DomEvent) -> None:
        target = event.target
        if target is not None and target.tag_name in FORM_ELEMENTS and event.key != "Escape":
            event.prevent_default()
            event.stop_propagation()

    def _on_form_focus(self, event: DomEvent) -> None:
        target = event.target
        if target is not None and target.tag_name in FORM_ELEMENTS:
            event.prevent_default()
            target.blur()

    def _on_scroll(self, event: DomEvent) -> None:
        self._position(self._highlight, self.hovered)
        self._position(self._selection, self.selected)

    # -- selection ----------------------------------------------------------------

    def select(self, element: Element, *, notify: bool = True) -> None:
        if self._text_edit is not None and self._text_edit.element is not element:
            self.commit_text_edit()
        self.selected = element
        self.hovered = None
        self._position(self._highlight, None)
        self._position(self._selection, element)
        if notify:
            self.send(ElementSelected(element=self.describe(element, precise=True)))

    def deselect(self) -> None:
        if self.selected is None:
            return
        self._close_text_edit()
        self.selected = None
        self._position(self._selection, None)
        self.send(ElementDeselected())

    # -- inline text editing ------------------------------------------------------

    def start_text_edit(self, element: Element) -> bool:
        if not is_text_editable(element):
            return False
        if self._text_edit is not None:
            self.commit_text_edit()

        original = direct_text(element)
        overlay = self.document.create_element("div", {"id": TEXT_EDIT_ID})
        self._position(overlay, element)
        editor = self.document.create_element("div", {"id": TEXT_INPUT_ID})
        editor.content_editable = True
        editor.text_content = original
        overlay.append(editor)
        self.document.body.append(overlay)

        editor.add_event_listener("keydown", self._on_editor_key_down)
        editor.add_event_listener("blur", self._on_editor_blur)
        self._text_edit = _TextEdit(element=element, overlay=overlay, input=editor, original_text=original)
        editor.focus()
        return True

    def _on_editor_key_down(self, event: DomEvent) -> None:
        if event.key == "Enter" and not event.shift_key:
            event.prevent_default()
            self.commit_text_edit()
        elif event.key == "Escape":
            event.prevent_default()
            self.cancel_text_edit()

    def _on_editor_blur(self, event: DomEvent) -> None:
        self.commit_text_edit()

    def commit_text_edit(self) -> None:
        edit = self._close_text_edit()
        if edit is None:
            return
        new_text = edit.input.text_content.strip()
        if new_text == edit.original_text:
            return
        replace_direct_text(edit.element, new_text)
        descriptor = self.describe(edit.element, precise=True)
        self._position(self._selection, self.selected)
        self.send(
            TextEdit(
                selector=descriptor.selector,
                old_text=edit.original_text,
                new_text=new_text,
                source_location=descriptor.source_location,
            )
        )

    def cancel_text_edit(self) -> None:
        self._close_text_edit()

    def _close_text_edit(self) -> _TextEdit | None:
        edit, self._text_edit = self._text_edit, None
        if edit is None:
            return None
        edit.input.remove_event_listener("keydown", self._on_editor_key_down)
        edit.input.remove_event_listener("blur", self._on_editor_blur)
        edit.overlay.remove()
        return edit

    # -- style previews -----------------------------------------------------------

    def apply_preview(self, selector: str, styles: dict[str, str]) -> bool:
        """Override ``styles`` on the element until cleared.

        Utility classes that set the same properties are stripped while the
        preview is shown so the override is what the user sees.
        """
        element = self.registry.resolve(selector)
        if element is None:
            logger.debug("Preview target %s not found", selector)
            return False
        original = self._originals.get(element)
        if original is None:
            original = _OriginalState(class_name=element.get_attribute("class"))
            self._originals[element] = original

        classes = element.class_name
        for prop, value in styles.items():
            css_prop = kebab_case(prop)
            if css_prop not in original.styles:
                original.styles[css_prop] = element.style.get(css_prop)
            element.set_style(css_prop, value, important=True)
            classes = remove_property(classes, prop)
        if original.class_name is not None:
            element.class_name = classes

        if element is self.selected:
            self._position(self._selection, element)
        return True

    def clear_preview(self, selector: str | None = None) -> None:
        if selector is None:
            targets = list(self._originals)
        else:
            element = self.registry.resolve(selector)
            targets = [element] if element in self._originals else []

        for element in targets:
            original = self._originals.pop(element)
            for css_prop, value in original.styles.items():
                if value is None:
                    element.remove_style(css_prop)
                else:
                    element.set_style(css_prop, value)
            if original.class_name is None:
                element.remove_attribute("class")
            else:
                element.class_name = original.class_name

    @property
    def previewed(self) -> list[Element]:
        return list(self._originals)

    # -- host-driven edits --------------------------------------------------------

    def update_text(self, selector: str, text: str) -> tuple[str, str] | None:
        element = self.registry.resolve(selector)
        if element is None or not is_text_editable(element):
            return None
        old_text = direct_text(element)
        replace_direct_text(element, text)
        return old_text, text


def replace_direct_text(element: Element, text: str) -> None:
    """Swap the first non-blank direct text node, keeping child elements."""
    for node in element.text_nodes:
        if node.data.strip():
            node.data = text
            return
    element.append_text(text)
