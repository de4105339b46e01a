"""A minimal document model the overlay state machine runs against.

It covers what the overlay touches in a real preview page: attributes,
inline style, a computed style snapshot, layout rectangles, focus and
capturing/bubbling event listeners. A browser integration adapts its own
nodes to this surface.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from liveedit.model.element import BoundingRect

Listener = Callable[["DomEvent"], None]

_NON_BUBBLING = frozenset({"focus", "blur", "mouseleave", "scroll"})
_ID_SELECTOR_RE = re.compile(r"#([\w-]+)")
_ATTR_SELECTOR_RE = re.compile(r"\[([\w-]+)=\"([^\"]*)\"\]")


@dataclass
class DomEvent:
    type: str
    target: Element | None = None
    key: str = ""
    shift_key: bool = False
    ctrl_key: bool = False
    meta_key: bool = False
    alt_key: bool = False
    default_prevented: bool = False
    propagation_stopped: bool = False

    @property
    def bubbles(self) -> bool:
        return self.type not in _NON_BUBBLING

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class DebugFiber:
    """Framework debug metadata attached to a rendered node.

    ``source`` is a ``{"fileName", "lineNumber", "columnNumber"}`` mapping
    when the framework recorded one. ``parent`` and ``owner`` link to the
    enclosing and the owning component.
    """

    source: dict[str, Any] | None = None
    parent: DebugFiber | None = None
    owner: DebugFiber | None = None


class _EventTarget:
    def __init__(self) -> None:
        self._listeners: dict[tuple[str, bool], list[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None:
        bucket = self._listeners.setdefault((event_type, capture), [])
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener, capture: bool = False) -> None:
        bucket = self._listeners.get((event_type, capture), [])
        if listener in bucket:
            bucket.remove(listener)

    def listener_count(self, event_type: str | None = None) -> int:
        return sum(len(v) for (t, _), v in self._listeners.items() if event_type in (None, t))

    def _fire(self, event: DomEvent, capture: bool) -> None:
        for listener in list(self._listeners.get((event.type, capture), [])):
            listener(event)


class TextNode:
    def __init__(self, data: str) -> None:
        self.data = data
        self.parent: Element | None = None


class Element(_EventTarget):
    def __init__(
        self,
        tag_name: str,
        attributes: dict[str, str] | None = None,
        *,
        rect: BoundingRect | None = None,
        computed: dict[str, str] | None = None,
        debug_fiber: DebugFiber | None = None,
    ) -> None:
        super().__init__()
        self.tag_name = tag_name.lower()
        self.attributes: dict[str, str] = dict(attributes or {})
        self.style: dict[str, str] = {}
        self.important: set[str] = set()
        self.computed = dict(computed or {})
        self.rect = rect or BoundingRect()
        self.debug_fiber = debug_fiber
        self.content_editable = False
        self.children: list[Element | TextNode] = []
        self.parent: Element | None = None
        self.document: Document | None = None

    def __repr__(self) -> str:
        return f"<Element {self.tag_name} id={self.id!r}>"

    # -- attributes ---------------------------------------------------------

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")

    @class_name.setter
    def class_name(self, value: str) -> None:
        self.attributes["class"] = value

    # -- inline style ---------------------------------------------------------

    def set_style(self, prop: str, value: str, important: bool = False) -> None:
        self.style[prop] = value
        if important:
            self.important.add(prop)
        else:
            self.important.discard(prop)

    def remove_style(self, prop: str) -> None:
        self.style.pop(prop, None)
        self.important.discard(prop)

    def get_computed_style(self) -> dict[str, str]:
        merged = dict(self.computed)
        for prop, value in self.style.items():
            camel = re.sub(r"-([a-z])", lambda m: m.group(1).upper(), prop)
            merged[camel] = value
        return merged

    def get_bounding_client_rect(self) -> BoundingRect:
        return self.rect

    # -- tree -----------------------------------------------------------------

    def append(self, child: Element | TextNode) -> Element | TextNode:
        if child.parent is not None and isinstance(child.parent, Element):
            child.parent.remove_child(child)
        child.parent = self
        if isinstance(child, Element):
            child._adopt(self.document)
        self.children.append(child)
        return child

    def append_text(self, data: str) -> TextNode:
        node = TextNode(data)
        self.append(node)
        return node

    def remove_child(self, child: Element | TextNode) -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None
            if isinstance(child, Element) and self.document is not None:
                self.document._forget(child)

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def _adopt(self, document: Document | None) -> None:
        self.document = document
        for child in self.element_children:
            child._adopt(document)

    @property
    def element_children(self) -> list[Element]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def text_nodes(self) -> list[TextNode]:
        return [c for c in self.children if isinstance(c, TextNode)]

    @property
    def text_content(self) -> str:
        return "".join(c.data if isinstance(c, TextNode) else c.text_content for c in self.children)

    @text_content.setter
    def text_content(self, value: str) -> None:
        for child in list(self.children):
            if isinstance(child, Element):
                self.remove_child(child)
        self.children = []
        self.append_text(value)

    def ancestors(self) -> Iterator[Element]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator[Element]:
        for child in self.element_children:
            yield child
            yield from child.iter_descendants()

    @property
    def is_connected(self) -> bool:
        root = self
        for root in self.ancestors():
            pass
        return self.document is not None and root is self.document.document_element

    # -- focus ------------------------------------------------------------------

    def focus(self) -> None:
        if self.document is None:
            return
        previous = self.document.active_element
        if previous is self:
            return
        if previous is not None:
            previous.blur()
        self.document.active_element = self
        self.document.dispatch_event(DomEvent("focus", target=self))

    def blur(self) -> None:
        if self.document is None or self.document.active_element is not self:
            return
        self.document.active_element = None
        self.document.dispatch_event(DomEvent("blur", target=self))


class Document(_EventTarget):
    def __init__(self) -> None:
        super().__init__()
        self.document_element = Element("html")
        self.document_element.document = self
        self.head = self.document_element.append(Element("head"))
        self.body = self.document_element.append(Element("body"))
        self.active_element: Element | None = None

    def create_element(self, tag_name: str, attributes: dict[str, str] | None = None, **kwargs: Any) -> Element:
        element = Element(tag_name, attributes, **kwargs)
        element.document = self
        return element

    def _forget(self, element: Element) -> None:
        if self.active_element is element or (
            self.active_element is not None and element in self.active_element.ancestors()
        ):
            self.active_element = None

    def all_elements(self) -> Iterator[Element]:
        yield self.document_element
        yield from self.document_element.iter_descendants()

    def get_element_by_id(self, element_id: str) -> Element | None:
        return next((e for e in self.all_elements() if e.id == element_id), None)

    def query_selector(self, selector: str) -> Element | None:
        """Supports ``#id``, ``[attr="value"]`` and their concatenation."""
        id_match = _ID_SELECTOR_RE.match(selector)
        attrs = _ATTR_SELECTOR_RE.findall(selector)
        if id_match is None and not attrs:
            return None
        for element in self.all_elements():
            if id_match and element.id != id_match.group(1):
                continue
            if all(element.get_attribute(name) == value for name, value in attrs):
                return element
        return None

    def dispatch_event(self, event: DomEvent) -> DomEvent:
        """Capture from the document down to the target, then bubble back up."""
        target = event.target
        path = list(reversed(list(target.ancestors()))) if target is not None else []

        self._fire(event, capture=True)
        for node in path:
            if event.propagation_stopped:
                return event
            node._fire(event, capture=True)
        if target is not None and not event.propagation_stopped:
            target._fire(event, capture=True)
            target._fire(event, capture=False)
        if event.bubbles:
            for node in reversed(path):
                if event.propagation_stopped:
                    return event
                node._fire(event, capture=False)
        if not event.propagation_stopped and (event.bubbles or target is None):
            self._fire(event, capture=False)
        return event
