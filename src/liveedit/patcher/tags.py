"""Quote- and brace-aware scanning of opening tags in JSX/HTML source.

This is deliberately not a parser. It knows just enough about string
literals and ``{...}`` expressions that an arrow function or a comparison
inside an attribute never ends a tag early.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from liveedit.model.location import TagSpan

QUOTES = "\"'`"

_TAG_NAME_RE = re.compile(r"[A-Za-z][\w.:-]*")
_ATTR_NAME_RE = re.compile(r"[^\s=/>{}\"'`]+")


@dataclass(frozen=True)
class Attribute:
    """An attribute inside an opening tag.

    ``start``/``end`` cover the whole attribute (``end`` exclusive).
    ``value_start``/``value_end`` cover the value between its delimiters.
    ``quote`` is the string delimiter, ``"{"`` for a non-literal expression,
    ``""`` for an unquoted value and None for a bare boolean attribute.
    ``braced`` is True for ``name={"literal"}`` forms.
    """

    name: str
    start: int
    end: int
    value_start: int
    value_end: int
    quote: str | None
    braced: bool = False

    def value(self, source: str) -> str:
        return source[self.value_start : self.value_end]

    @property
    def is_literal(self) -> bool:
        return self.quote is not None and self.quote in QUOTES


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def skip_string(source: str, i: int) -> int:
    """Index of the delimiter closing the string literal opened at ``i``, or -1."""
    quote = source[i]
    j = i + 1
    n = len(source)
    while j < n:
        ch = source[j]
        if ch == "\\":
            j += 2
            continue
        if quote == "`" and source.startswith("${", j):
            close = match_brace(source, j + 1)
            if close == -1:
                return -1
            j = close + 1
            continue
        if ch == quote:
            return j
        j += 1
    return -1


def match_brace(source: str, i: int) -> int:
    """Index of the ``}`` matching the ``{`` at ``i``, or -1."""
    depth = 0
    j = i
    n = len(source)
    while j < n:
        ch = source[j]
        if ch in QUOTES:
            close = skip_string(source, j)
            if close == -1:
                return -1
            j = close + 1
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j
        j += 1
    return -1


def is_tag_start(source: str, i: int) -> bool:
    """True if ``source[i]`` opens an element tag (``<div``, not ``</div`` or ``Array<T``)."""
    if i < 0 or i + 1 >= len(source) or source[i] != "<":
        return False
    if not source[i + 1].isalpha():
        return False
    return i == 0 or not _is_ident_char(source[i - 1])


def find_tag_end(source: str, start: int) -> int:
    """Index of the ``>`` that closes the opening tag at ``start``, or -1."""
    j = start + 1
    n = len(source)
    while j < n:
        ch = source[j]
        if ch in QUOTES:
            close = skip_string(source, j)
            if close == -1:
                return -1
            j = close + 1
            continue
        if ch == "{":
            close = match_brace(source, j)
            if close == -1:
                return -1
            j = close + 1
            continue
        if ch == ">":
            return j
        j += 1
    return -1


def read_tag(source: str, start: int) -> TagSpan | None:
    if not is_tag_start(source, start):
        return None
    name_match = _TAG_NAME_RE.match(source, start + 1)
    if name_match is None:
        return None
    end = find_tag_end(source, start)
    if end == -1:
        return None
    return TagSpan(start=start, end=end, name=name_match.group(0))


def is_self_closing(source: str, tag: TagSpan) -> bool:
    return source[tag.end - 1] == "/"


def name_end(tag: TagSpan) -> int:
    """Offset right after the tag name, where a new attribute is inserted."""
    return tag.start + 1 + len(tag.name)


def iter_attributes(source: str, tag: TagSpan) -> Iterator[Attribute]:
    """Yield the top-level attributes of ``tag`` in source order."""
    j = name_end(tag)
    while j < tag.end:
        ch = source[j]
        if ch.isspace() or ch == "/":
            j += 1
            continue
        if ch == "{":
            # spread: {...props}
            close = match_brace(source, j)
            if close == -1:
                return
            j = close + 1
            continue
        name_match = _ATTR_NAME_RE.match(source, j)
        if name_match is None:
            j += 1
            continue
        name = name_match.group(0)
        attr_start = j
        k = name_match.end()
        while k < tag.end and source[k].isspace():
            k += 1
        if k >= tag.end or source[k] != "=":
            yield Attribute(name, attr_start, name_match.end(), name_match.end(), name_match.end(), None)
            j = name_match.end()
            continue
        k += 1
        while k < tag.end and source[k].isspace():
            k += 1
        vch = source[k]
        if vch in QUOTES:
            close = skip_string(source, k)
            if close == -1:
                return
            yield Attribute(name, attr_start, close + 1, k + 1, close, vch)
            j = close + 1
        elif vch == "{":
            close = match_brace(source, k)
            if close == -1:
                return
            inner_start = k + 1
            while inner_start < close and source[inner_start].isspace():
                inner_start += 1
            literal_close = skip_string(source, inner_start) if source[inner_start] in QUOTES else -1
            if literal_close != -1 and not source[literal_close + 1 : close].strip():
                yield Attribute(
                    name, attr_start, close + 1, inner_start + 1, literal_close, source[inner_start], braced=True
                )
            else:
                yield Attribute(name, attr_start, close + 1, k + 1, close, "{")
            j = close + 1
        else:
            end = k
            while end < tag.end and not source[end].isspace() and source[end] not in "/>":
                end += 1
            yield Attribute(name, attr_start, end, k, end, "")
            j = end


def find_attribute(source: str, tag: TagSpan, names: tuple[str, ...]) -> Attribute | None:
    for attribute in iter_attributes(source, tag):
        if attribute.name in names:
            return attribute
    return None


def tag_containing(source: str, pos: int, lookback: int = 1000) -> TagSpan | None:
    """The opening tag whose text spans ``pos`` (e.g. the tag owning an ``id=``)."""
    floor = max(0, pos - lookback)
    for i in range(pos, floor - 1, -1):
        if source[i] != "<":
            continue
        tag = read_tag(source, i)
        if tag is not None and tag.end >= pos:
            return tag
    return None


def enclosing_open_tag(source: str, pos: int) -> TagSpan | None:
    """Walk backward from ``pos`` through balanced tags to the element that contains it."""
    depth = 0
    for i in range(pos - 1, -1, -1):
        if source[i] != "<":
            continue
        if source.startswith("</", i):
            depth += 1
            continue
        if source.startswith("<>", i):
            # fragment: its text belongs to the element further up
            if depth:
                depth -= 1
            continue
        tag = read_tag(source, i)
        if tag is None:
            continue
        if tag.end >= pos:
            return tag
        if is_self_closing(source, tag):
            continue
        if depth == 0:
            return tag
        depth -= 1
    return None


def line_bounds(source: str, line_number: int) -> tuple[int, int] | None:
    """``(start, end)`` offsets of a 1-based line, ``end`` at its newline."""
    if line_number < 1:
        return None
    start = 0
    for _ in range(line_number - 1):
        newline = source.find("\n", start)
        if newline == -1:
            return None
        start = newline + 1
    end = source.find("\n", start)
    if end == -1:
        end = len(source)
    return start, end
