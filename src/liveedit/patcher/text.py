"""Replace an element's text in source without touching look-alike code.

A literal such as ``completed`` can appear as prose (``>completed<``), as a
string (``"completed"``) or as code (``task.completed``, ``completed: true``).
Only the first two are edited. If every occurrence looks like code nothing
is written.
"""

from __future__ import annotations

import html as html_lib
import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from liveedit.errors import TextNotFoundError, UnsafeTextMatchError
from liveedit.patcher.tags import tag_containing

logger = logging.getLogger(__name__)

_QUOTES = "\"'`"
_PROSE_ATTRIBUTES = frozenset({
    "alt", "title", "placeholder", "label", "value", "content", "aria-label", "aria-description",
})
_ATTR_BEFORE_RE = re.compile(r"([\w:-]+)\s*=\s*\{?\s*$")
_MODULE_BEFORE_RE = re.compile(r"(\bfrom|\bimport|\brequire\s*\(|\bimport\s*\()\s*$")


class TextContext(StrEnum):
    MARKUP = "markup"
    STRING = "string"


@dataclass(frozen=True)
class TextReplacement:
    modified: str
    start: int
    end: int
    context: TextContext


def _is_ident(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _prev_non_space(source: str, i: int) -> str:
    while i >= 0 and source[i].isspace():
        i -= 1
    return source[i] if i >= 0 else ""


def classify_occurrence(source: str, start: int, end: int) -> TextContext | None:
    """Return the context of ``source[start:end]`` or None if it looks like code."""
    before = source[start - 1] if start > 0 else ""
    after = source[end] if end < len(source) else ""

    if before and _is_ident(before) and _is_ident(source[start]):
        return None
    if after and _is_ident(after) and _is_ident(source[end - 1]):
        return None
    if before == ".":
        return None
    if after == ":":
        return None
    if after in _QUOTES and source[end + 1 : end + 2] == ":":
        return None

    if _prev_non_space(source, start - 1) == ">":
        return TextContext.MARKUP
    if source[end:].lstrip().startswith("</"):
        return TextContext.MARKUP

    if before and before in _QUOTES and after == before:
        head = source[max(0, start - 80) : start - 1]
        attr = _ATTR_BEFORE_RE.search(head)
        # only a tag attribute; `const t = "..."` is a plain string
        if attr and attr.group(1) not in _PROSE_ATTRIBUTES and tag_containing(source, start) is not None:
            return None
        if _MODULE_BEFORE_RE.search(head):
            return None
        return TextContext.STRING
    return None


def escape_for_context(text: str, context: TextContext, quote: str = '"', *, html: bool = False) -> str:
    if context is TextContext.STRING:
        escaped = text.replace("\\", "\\\\").replace(quote, "\\" + quote)
        if quote == "`":
            escaped = escaped.replace("${", "\\${")
        else:
            escaped = escaped.replace("\n", "\\n")
        return escaped
    if html:
        return html_lib.escape(text, quote=False)
    if any(ch in text for ch in "{}<>"):
        return "{" + json.dumps(text, ensure_ascii=False) + "}"
    return text


def _occurrences(source: str, needle: str) -> list[tuple[int, int]]:
    words = [re.escape(w) for w in needle.split()]
    pattern = re.compile(r"\s+".join(words))
    spans = []
    pos = 0
    while True:
        match = pattern.search(source, pos)
        if match is None:
            return spans
        spans.append((match.start(), match.end()))
        pos = match.start() + 1


def replace_text_safely(
    source: str,
    old_text: str,
    new_text: str,
    anchor: int | None = None,
    *,
    html: bool = False,
) -> TextReplacement:
    """Replace the first safe occurrence of ``old_text`` with ``new_text``.

    Occurrences at or after ``anchor`` (usually the located element's tag)
    are tried first, then the rest of the file in order. Raises
    TextNotFoundError when there is no occurrence at all and
    UnsafeTextMatchError when no occurrence is safe to edit.
    """
    needle = old_text.strip()
    if not needle:
        raise TextNotFoundError("Old text is empty")
    replacement = new_text.strip() if needle != old_text else new_text

    spans = _occurrences(source, needle)
    if not spans:
        raise TextNotFoundError(f"Text {needle[:40]!r} not found in source")

    if anchor is not None:
        spans = [s for s in spans if s[0] >= anchor] + [s for s in spans if s[0] < anchor]

    for start, end in spans:
        context = classify_occurrence(source, start, end)
        if context is None:
            logger.debug("Skipping code-like occurrence of %r at %d", needle, start)
            continue
        quote = source[start - 1] if context is TextContext.STRING else '"'
        escaped = escape_for_context(replacement, context, quote, html=html)
        modified = source[:start] + escaped + source[end:]
        logger.info("Replaced %s text at offset %d", context, start)
        return TextReplacement(modified=modified, start=start, end=start + len(escaped), context=context)

    raise UnsafeTextMatchError(
        f"Every occurrence of {needle[:40]!r} looks like code; refusing to edit",
        old_text=needle,
        occurrences=len(spans),
    )
