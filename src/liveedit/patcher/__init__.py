"""Deterministic source patching: locate markup, rewrite classes, styles and text."""

from __future__ import annotations

from liveedit.patcher.locator import (
    STRATEGIES,
    AttributeTarget,
    find_tag,
    locate_element,
    rank_class_tokens,
)
from liveedit.patcher.styles import PatchResult, apply_style_changes_to_source, replace_tag, set_literal_attribute
from liveedit.patcher.tailwind import apply_change_to_classes, css_to_token, extract_token, remove_property
from liveedit.patcher.text import TextContext, TextReplacement, replace_text_safely

__all__ = [
    "STRATEGIES",
    "AttributeTarget",
    "PatchResult",
    "TextContext",
    "TextReplacement",
    "apply_change_to_classes",
    "apply_style_changes_to_source",
    "css_to_token",
    "extract_token",
    "find_tag",
    "locate_element",
    "rank_class_tokens",
    "remove_property",
    "replace_tag",
    "replace_text_safely",
    "set_literal_attribute",
]
