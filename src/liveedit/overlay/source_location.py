"""Map live elements back to the file and line that rendered them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from liveedit.model.element import SourceLocation
from liveedit.overlay.dom import DebugFiber, Element
from liveedit.paths import normalize_file_path

logger = logging.getLogger(__name__)

MAX_FIBER_DEPTH = 50


@runtime_checkable
class SourceLocationResolver(Protocol):
    def resolve(self, element: Element) -> SourceLocation | None: ...


def _from_source(source: dict | None) -> SourceLocation | None:
    if not source or not source.get("fileName"):
        return None
    column = source.get("columnNumber")
    return SourceLocation(
        file_path=normalize_file_path(str(source["fileName"])),
        line_number=int(source.get("lineNumber") or 0),
        column_number=int(column) if column is not None else None,
    )


class DebugMetadataResolver:
    """Walks framework debug metadata up through parents and owners."""

    def resolve(self, element: Element) -> SourceLocation | None:
        node: Element | None = element
        while node is not None:
            if node.debug_fiber is not None:
                return self._walk(node.debug_fiber)
            node = node.parent
        return None

    def _walk(self, fiber: DebugFiber) -> SourceLocation | None:
        current: DebugFiber | None = fiber
        for _ in range(MAX_FIBER_DEPTH):
            if current is None:
                return None
            location = _from_source(current.source)
            if location is not None:
                return location
            current = current.parent or current.owner
        return None


class CallableResolver:
    """Adapts a precise lookup function (for example a devtools bridge)."""

    def __init__(self, lookup: Callable[[Element], dict | None]) -> None:
        self.lookup = lookup

    def resolve(self, element: Element) -> SourceLocation | None:
        return _from_source(self.lookup(element))


class ChainResolver:
    """First resolver with an answer wins; a failing resolver is skipped."""

    def __init__(self, *resolvers: SourceLocationResolver) -> None:
        self.resolvers = resolvers

    def resolve(self, element: Element) -> SourceLocation | None:
        for resolver in self.resolvers:
            try:
                location = resolver.resolve(element)
            except Exception as exc:
                logger.warning("%s failed for <%s>: %s", type(resolver).__name__, element.tag_name, exc)
                continue
            if location is not None:
                return location
        return None


def default_resolver(precise: SourceLocationResolver | None = None) -> ChainResolver:
    if precise is None:
        return ChainResolver(DebugMetadataResolver())
    return ChainResolver(precise, DebugMetadataResolver())
