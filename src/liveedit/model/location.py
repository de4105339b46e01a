from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class LocationKind(StrEnum):
    ATTRIBUTE = "attribute"
    INSERT = "insert"


@dataclass(frozen=True)
class TagSpan:
    """An opening tag in source text: ``source[start]`` is ``<``, ``source[end]`` is ``>``."""

    start: int
    end: int
    name: str

    def text(self, source: str) -> str:
        return source[self.start : self.end + 1]


@dataclass(frozen=True)
class ElementLocation:
    """Where to edit an element's class or style attribute.

    For ``ATTRIBUTE`` results ``source[start:end]`` is the attribute value
    between its quotes. For ``INSERT`` results ``start == end`` is the offset
    right after the tag name where a new attribute goes.
    """

    start: int
    end: int
    current_text: str
    kind: LocationKind
    strategy: str
    tag: TagSpan
    attribute: str = "className"
    quote: str = '"'

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"location end {self.end} precedes start {self.start}")
