"""Token-wise editing of class attribute strings.

Whitespace between tokens is preserved so an in-place substitution followed
by its inverse restores the original bytes. ``${...}`` template segments are
kept inside their token and such tokens are never edited.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from liveedit.patcher.tags import match_brace


@dataclass
class ClassToken:
    text: str
    lead: str = ""


def split_classes(class_string: str) -> tuple[list[ClassToken], str]:
    """Split into tokens with their leading whitespace, plus trailing whitespace."""
    tokens: list[ClassToken] = []
    i = 0
    n = len(class_string)
    lead_start = 0
    while i < n:
        if class_string[i].isspace():
            i += 1
            continue
        lead = class_string[lead_start:i]
        start = i
        while i < n and not class_string[i].isspace():
            if class_string.startswith("${", i):
                close = match_brace(class_string, i + 1)
                i = n if close == -1 else close + 1
                continue
            i += 1
        tokens.append(ClassToken(class_string[start:i], lead))
        lead_start = i
    return tokens, class_string[lead_start:]


def join_classes(tokens: list[ClassToken], trailing: str = "") -> str:
    return "".join(t.lead + t.text for t in tokens) + trailing


def is_opaque(token: str) -> bool:
    return "${" in token


def is_variant(token: str) -> bool:
    """True for ``hover:``/``md:``-style variants and ``!important`` tokens."""
    if token.startswith("!"):
        return True
    bracket = token.find("[")
    head = token if bracket == -1 else token[:bracket]
    return ":" in head


def editable_tokens(class_string: str) -> list[str]:
    tokens, _ = split_classes(class_string)
    return [t.text for t in tokens if not is_opaque(t.text) and not is_variant(t.text)]


def replace_category(class_string: str, matches: Callable[[str], bool], new_token: str) -> str:
    """Replace the first token ``matches`` accepts with ``new_token`` and drop the rest.

    With no matching token ``new_token`` is appended. An empty ``new_token``
    only removes.
    """
    tokens, trailing = split_classes(class_string)
    out: list[ClassToken] = []
    placed = False
    carry: str | None = None
    for token in tokens:
        if not is_opaque(token.text) and not is_variant(token.text) and matches(token.text):
            if new_token and not placed:
                out.append(ClassToken(new_token, token.lead))
                placed = True
            elif not out and carry is None:
                carry = token.lead
            continue
        if carry is not None:
            token = ClassToken(token.text, carry)
            carry = None
        out.append(token)
    if new_token and not placed:
        if carry is not None:
            lead = carry
        else:
            lead = " " if out else ""
        out.append(ClassToken(new_token, lead))
    return join_classes(out, trailing)


def find_token(class_string: str, matches: Callable[[str], bool]) -> str | None:
    for token in editable_tokens(class_string):
        if matches(token):
            return token
    return None
