"""Editing of inline ``style`` attributes.

JSX style objects (``style={{ color: 'red', fontSize: 16 }}``) are read with
a small lark grammar that accepts literal values, references and spreads.
Anything more dynamic is refused rather than guessed at. HTML style text
(``style="color: red; font-size: 16px"``) is split on declarations.
"""

from __future__ import annotations

import functools
import json
import re
from dataclasses import dataclass

from lark import Lark, Transformer
from lark.exceptions import LarkError

from liveedit.errors import ConversionError
from liveedit.model.change import StyleChange
from liveedit.patcher.tailwind import camel_case

STYLE_OBJECT_GRAMMAR = r"""
object: "{" [members] "}"
members: member ("," member)* [","]

?member: key ":" value      -> pair
       | "..." dotted        -> spread

key: NAME | STRING

?value: STRING              -> string
      | SIGNED_NUMBER       -> number
      | TEMPLATE            -> template
      | dotted              -> reference

dotted: NAME ("." NAME)*

NAME: /[A-Za-z_$][\w$]*/
STRING: /"(?:[^"\\]|\\.)*"/ | /'(?:[^'\\]|\\.)*'/
TEMPLATE: /`[^`$]*`/

%import common.SIGNED_NUMBER
%import common.WS
%ignore WS
"""

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_DECLARATION_RE = re.compile(r"(?P<key>-{0,2}[a-zA-Z][a-zA-Z0-9-]*)\s*:\s*(?P<value>[^;]+?)\s*(?:;|$)")


@dataclass(frozen=True)
class StyleEntry:
    """One member of a style object; ``key`` is None for a spread."""

    key: str | None
    raw: str

    @property
    def name(self) -> str | None:
        if self.key is None:
            return None
        if self.key[:1] in "\"'":
            return self.key[1:-1]
        return self.key


class _StyleObjectTransformer(Transformer):  # type: ignore[type-arg]
    def key(self, items):
        return str(items[0])

    def string(self, items):
        return str(items[0])

    def number(self, items):
        return str(items[0])

    def template(self, items):
        return str(items[0])

    def reference(self, items):
        return items[0]

    def dotted(self, items):
        return ".".join(str(t) for t in items)

    def pair(self, items):
        return StyleEntry(key=items[0], raw=items[1])

    def spread(self, items):
        return StyleEntry(key=None, raw="..." + items[0])

    def members(self, items):
        return [item for item in items if isinstance(item, StyleEntry)]

    def object(self, items):
        return next((item for item in items if isinstance(item, list)), [])


@functools.lru_cache(maxsize=1)
def _parser() -> Lark:
    return Lark(STYLE_OBJECT_GRAMMAR, parser="lalr", start="object")


def parse_style_object(text: str) -> list[StyleEntry]:
    """Parse a JSX style object literal such as ``{ color: 'red' }``."""
    try:
        tree = _parser().parse(text.strip())
    except LarkError as exc:
        raise ConversionError(
            f"style object is not a plain literal: {text.strip()[:60]!r}", property="style", value=text
        ) from exc
    return _StyleObjectTransformer().transform(tree)


def format_style_object(entries: list[StyleEntry]) -> str:
    if not entries:
        return "{}"
    members = [e.raw if e.key is None else f"{e.key}: {e.raw}" for e in entries]
    return "{ " + ", ".join(members) + " }"


def _js_string(value: str) -> str:
    if "'" not in value and "\\" not in value and "\n" not in value:
        return f"'{value}'"
    return json.dumps(value, ensure_ascii=False)


def apply_to_style_object(text: str, changes: list[StyleChange]) -> str:
    """Set (or with an empty value, remove) each property in a style object."""
    entries = parse_style_object(text) if text.strip() else []
    for change in changes:
        key = camel_case(change.property)
        new_value = change.new_value.strip()
        index = next((i for i, e in enumerate(entries) if e.name == key), None)
        if not new_value:
            if index is not None:
                entries.pop(index)
            continue
        key_raw = key if _IDENTIFIER_RE.match(key) else json.dumps(key)
        entry = StyleEntry(key=key_raw, raw=_js_string(new_value))
        if index is None:
            entries.append(entry)
        else:
            entries[index] = entry
    return format_style_object(entries)


def kebab_case(prop: str) -> str:
    """``backgroundColor`` -> ``background-color``; kebab-case passes through."""
    return re.sub(r"(?<=[a-z0-9])([A-Z])", lambda m: "-" + m.group(1).lower(), prop.strip())


def parse_style_text(text: str) -> list[tuple[str, str]]:
    return [(m.group("key"), m.group("value")) for m in _DECLARATION_RE.finditer(text)]


def apply_to_style_text(text: str, changes: list[StyleChange]) -> str:
    """Set or remove declarations in HTML style text (``a: b; c: d``)."""
    declarations = parse_style_text(text)
    for change in changes:
        key = kebab_case(change.property)
        new_value = change.new_value.strip()
        if any(ch in new_value for ch in "\"<>;"):
            raise ConversionError(
                f"{change.property}: value {change.new_value!r} cannot be written inline",
                property=change.property,
                value=change.new_value,
            )
        index = next((i for i, (k, _) in enumerate(declarations) if k == key), None)
        if not new_value:
            if index is not None:
                declarations.pop(index)
            continue
        if index is None:
            declarations.append((key, new_value))
        else:
            declarations[index] = (key, new_value)
    return "; ".join(f"{k}: {v}" for k, v in declarations)
