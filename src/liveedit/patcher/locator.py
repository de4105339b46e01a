"""Find the markup that rendered an element, using layered heuristics.

Each strategy takes the raw source and the hints the frame supplied and
returns the opening tag it believes rendered the element, or None. They are
tried in a fixed order and the first hit wins:

1. ``line_number``: the tag on (or ending) the reported source line.
2. ``selector_id``: the tag carrying the ``id`` encoded in the selector.
3. ``text_content``: the element enclosing the first occurrence of the text.
4. ``class_attribute``: a class literal containing one of the element's
   most specific class tokens.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import StrEnum

from liveedit.config import LiveEditConfig
from liveedit.errors import LocateError
from liveedit.model.change import LocatorHints
from liveedit.model.location import ElementLocation, LocationKind, TagSpan
from liveedit.patcher.tags import (
    enclosing_open_tag,
    find_attribute,
    line_bounds,
    name_end,
    read_tag,
    tag_containing,
)

logger = logging.getLogger(__name__)

Strategy = Callable[[str, LocatorHints, LiveEditConfig], "TagSpan | None"]

CLASS_ATTRIBUTES = ("className", "class")
STYLE_ATTRIBUTES = ("style",)

_SELECTOR_ID_RE = re.compile(r"#([A-Za-z_][\w-]*)")
_CLASS_ATTR_RE = re.compile(r"(?<![\w-])(?:className|class)\s*=")

_HIGH_PRIORITY_KEYWORDS = ("gradient", "display", "hero", "heading", "title", "tabular", "balance")
_COMMON_FONT_TOKENS = frozenset({"font-normal", "font-medium", "font-bold", "font-semibold"})
_GENERIC_PREFIXES = (
    "flex", "grid", "block", "hidden", "relative", "absolute",
    "w-", "h-", "p-", "m-", "items-", "justify-", "gap-", "space-",
)
_GENERIC_EXACT = frozenset({
    "flex", "grid", "block", "hidden", "relative", "absolute",
    "inline", "inline-block", "inline-flex", "container", "wrapper",
})


class AttributeTarget(StrEnum):
    CLASS = "class"
    STYLE = "style"


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def by_line_number(source: str, hints: LocatorHints, config: LiveEditConfig) -> TagSpan | None:
    if not hints.line_number:
        return None
    bounds = line_bounds(source, hints.line_number)
    if bounds is None:
        return None
    line_start, line_end = bounds

    if hints.column_number:
        # debug metadata reports 1-based columns, some tools 0-based
        for offset in (line_start + hints.column_number - 1, line_start + hints.column_number):
            if line_start <= offset < line_end:
                tag = read_tag(source, offset)
                if tag is not None:
                    return tag

    floor = max(0, line_start - config.line_lookback_chars)
    for i in range(min(line_end, len(source) - 1), floor - 1, -1):
        if source[i] != "<":
            continue
        tag = read_tag(source, i)
        if tag is not None:
            return tag
    return None


def selector_id(selector: str | None) -> str | None:
    match = _SELECTOR_ID_RE.search(selector or "")
    return match.group(1) if match else None


def id_attribute_re(element_id: str) -> re.Pattern[str]:
    """``id="x"``, ``id = 'x'`` or ``id={"x"}`` for a literal element id."""
    return re.compile(rf"(?<![\w-])id\s*=\s*\{{?\s*[\"'`]{re.escape(element_id)}[\"'`]")


def by_selector_id(source: str, hints: LocatorHints, config: LiveEditConfig) -> TagSpan | None:
    element_id = selector_id(hints.selector)
    if element_id is None:
        return None
    for id_match in id_attribute_re(element_id).finditer(source):
        tag = tag_containing(source, id_match.start(), config.line_lookback_chars)
        if tag is not None:
            return tag
    return None


def text_snippet(text: str | None, config: LiveEditConfig) -> str | None:
    if not text:
        return None
    snippet = " ".join(text.split())[: config.text_snippet_max].strip()
    if len(snippet) < config.text_snippet_min:
        return None
    return snippet


def _text_occurrences(source: str, snippet: str):
    words = [re.escape(w) for w in snippet.split(" ")]
    yield from (m.start() for m in re.finditer(r"\s+".join(words), source))


def by_text_content(source: str, hints: LocatorHints, config: LiveEditConfig) -> TagSpan | None:
    snippet = text_snippet(hints.text_content, config)
    if snippet is None:
        return None
    for position in _text_occurrences(source, snippet):
        tag = enclosing_open_tag(source, position)
        if tag is not None:
            return tag
    return None


def rank_class_tokens(class_name: str) -> list[str]:
    """Order an element's class tokens from most to least distinctive."""
    classes = [c for c in class_name.split() if not c.startswith("liveedit-")]
    high = [
        c for c in classes
        if any(k in c for k in _HIGH_PRIORITY_KEYWORDS)
        or (c.startswith("font-") and c not in _COMMON_FONT_TOKENS)
    ]
    others = [
        c for c in classes
        if c not in _GENERIC_EXACT
        and not c.startswith(_GENERIC_PREFIXES)
        and c not in high
        and len(c) > 3
    ]
    ranked: list[str] = []
    for c in high + others:
        if c not in ranked:
            ranked.append(c)
    return ranked


def by_class_attribute(source: str, hints: LocatorHints, config: LiveEditConfig) -> TagSpan | None:
    if not hints.class_name:
        return None
    ranked = rank_class_tokens(hints.class_name)
    if not ranked:
        return None
    logger.debug("Searching class literals for %s", ranked[:5])

    candidates: list[tuple[TagSpan, list[str]]] = []
    for match in _CLASS_ATTR_RE.finditer(source):
        tag = tag_containing(source, match.start(), config.line_lookback_chars)
        if tag is None:
            continue
        attribute = find_attribute(source, tag, CLASS_ATTRIBUTES)
        if attribute is None or not attribute.is_literal or attribute.start != match.start():
            continue
        candidates.append((tag, attribute.value(source).split()))

    for token in ranked:
        for tag, tokens in candidates:
            if token in tokens:
                return tag
    return None


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("line_number", by_line_number),
    ("selector_id", by_selector_id),
    ("text_content", by_text_content),
    ("class_attribute", by_class_attribute),
)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def find_tag(source: str, hints: LocatorHints, config: LiveEditConfig | None = None) -> tuple[TagSpan, str]:
    """Run the strategies in order. Returns ``(tag, strategy_name)``."""
    cfg = config or LiveEditConfig()
    attempted: list[str] = []
    for name, strategy in STRATEGIES:
        attempted.append(name)
        tag = strategy(source, hints, cfg)
        if tag is not None:
            logger.info("Located <%s> for %s by %s", tag.name, hints.selector or "element", name)
            return tag, name
    raise LocateError(
        f"Could not locate element ({hints.describe()})",
        selector=hints.selector,
        attempted=tuple(attempted),
    )


def location_for_tag(
    source: str,
    tag: TagSpan,
    strategy: str,
    target: AttributeTarget = AttributeTarget.CLASS,
    *,
    html: bool = False,
) -> ElementLocation:
    names = CLASS_ATTRIBUTES if target is AttributeTarget.CLASS else STYLE_ATTRIBUTES
    attribute = find_attribute(source, tag, names)
    if attribute is None:
        offset = name_end(tag)
        if target is AttributeTarget.CLASS:
            default_name = "class" if html else "className"
        else:
            default_name = "style"
        return ElementLocation(
            start=offset,
            end=offset,
            current_text="",
            kind=LocationKind.INSERT,
            strategy=strategy,
            tag=tag,
            attribute=default_name,
        )

    if target is AttributeTarget.CLASS and not attribute.is_literal:
        raise LocateError(
            f"<{tag.name}> has a computed {attribute.name}; only string literals can be edited",
            attempted=(strategy,),
        )
    if attribute.quote is None or attribute.quote == "":
        raise LocateError(f"<{tag.name}> has an unquoted {attribute.name}", attempted=(strategy,))

    return ElementLocation(
        start=attribute.value_start,
        end=attribute.value_end,
        current_text=attribute.value(source),
        kind=LocationKind.ATTRIBUTE,
        strategy=strategy,
        tag=tag,
        attribute=attribute.name,
        quote=attribute.quote,
    )


def locate_element(
    source: str,
    hints: LocatorHints,
    target: AttributeTarget = AttributeTarget.CLASS,
    *,
    config: LiveEditConfig | None = None,
    html: bool = False,
) -> ElementLocation:
    """Locate the element's class (or style) attribute span in ``source``.

    Raises LocateError when no strategy finds the element, or when the
    attribute exists but is not a literal that can be rewritten.
    """
    tag, strategy = find_tag(source, hints, config)
    try:
        return location_for_tag(source, tag, strategy, target, html=html)
    except LocateError as exc:
        raise LocateError(str(exc), selector=hints.selector, attempted=exc.attempted) from exc
