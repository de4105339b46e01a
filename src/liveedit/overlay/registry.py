"""Stable selectors for live elements."""

from __future__ import annotations

import itertools
import secrets

from liveedit.overlay.dom import Document, Element

TRACKING_ATTRIBUTE = "data-liveedit-id"
NAMESPACE = "__liveedit"


def is_namespaced(value: str) -> bool:
    return value.startswith(NAMESPACE) or value.startswith("liveedit-")


class ElementRegistry:
    """Assigns every element it sees a tracking id and remembers the selector.

    Asking twice for the same element yields the same selector for as long as
    the element lives, even if its own ``id`` changes in between.
    """

    def __init__(self, document: Document) -> None:
        self.document = document
        self._counter = itertools.count(1)
        self._elements: dict[str, Element] = {}
        self._selectors: dict[str, str] = {}

    def selector_for(self, element: Element) -> str:
        tracking_id = element.get_attribute(TRACKING_ATTRIBUTE)
        if not tracking_id:
            tracking_id = f"el-{next(self._counter)}-{secrets.token_hex(3)}"
            element.set_attribute(TRACKING_ATTRIBUTE, tracking_id)
        self._elements[tracking_id] = element

        selector = self._selectors.get(tracking_id)
        if selector is None:
            selector = f'[{TRACKING_ATTRIBUTE}="{tracking_id}"]'
            if element.id and not is_namespaced(element.id):
                selector = f"#{element.id}{selector}"
            self._selectors[tracking_id] = selector
        return selector

    def resolve(self, selector: str) -> Element | None:
        for tracking_id, known in self._selectors.items():
            if known == selector:
                element = self._elements.get(tracking_id)
                if element is not None and element.is_connected:
                    return element
        return self.document.query_selector(selector)

    def forget_detached(self) -> int:
        stale = [tid for tid, element in self._elements.items() if not element.is_connected]
        for tracking_id in stale:
            self._elements.pop(tracking_id, None)
            self._selectors.pop(tracking_id, None)
        return len(stale)
