"""Apply a batch of style changes to one element's markup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from liveedit.config import LiveEditConfig
from liveedit.errors import ConversionError, LocateError
from liveedit.model.change import LocatorHints, StyleChange
from liveedit.model.location import ElementLocation, LocationKind, TagSpan
from liveedit.patcher.inline_style import apply_to_style_object, apply_to_style_text
from liveedit.patcher.locator import AttributeTarget, find_tag, location_for_tag
from liveedit.patcher.tags import QUOTES, find_attribute, name_end, read_tag
from liveedit.patcher.tailwind import apply_change_to_classes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatchResult:
    modified: str
    applied: tuple[str, ...] = ()
    failed: tuple[tuple[str, str], ...] = ()
    location: ElementLocation | None = None
    tag_before: str = ""
    tag_after: str = ""
    strategy: str = ""

    @property
    def changed(self) -> bool:
        return self.tag_before != self.tag_after


@dataclass
class _Batch:
    applied: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    def fail_all(self, changes: list[StyleChange], reason: str) -> None:
        self.failed.extend((c.property, reason) for c in changes)


def _splice(source: str, start: int, end: int, text: str) -> str:
    return source[:start] + text + source[end:]


def _apply_class_changes(
    source: str, location: ElementLocation, changes: list[StyleChange], batch: _Batch
) -> str:
    classes = location.current_text
    for change in changes:
        try:
            classes, token = apply_change_to_classes(classes, change)
        except ConversionError as exc:
            logger.info("Conversion failed for %s: %s", change.property, exc)
            batch.failed.append((change.property, str(exc)))
            continue
        batch.applied.append(f"{change.property}: {token or '(removed)'}")

    if classes == location.current_text:
        return source
    if location.kind is LocationKind.INSERT:
        if not classes.strip():
            return source
        return _splice(source, location.start, location.end, f' {location.attribute}="{classes}"')
    return _splice(source, location.start, location.end, classes)


def _apply_inline_changes(
    source: str, location: ElementLocation, changes: list[StyleChange], batch: _Batch, *, html: bool
) -> str:
    try:
        if location.kind is LocationKind.INSERT:
            if html:
                text = apply_to_style_text("", changes)
                updated = _splice(source, location.start, location.end, f' style="{text}"') if text else source
            else:
                obj = apply_to_style_object("", changes)
                updated = _splice(source, location.start, location.end, f" style={{{obj}}}") if obj != "{}" else source
        elif location.quote == "{":
            obj = apply_to_style_object(location.current_text, changes)
            updated = _splice(source, location.start, location.end, obj)
        else:
            text = apply_to_style_text(location.current_text, changes)
            updated = _splice(source, location.start, location.end, text)
    except ConversionError as exc:
        batch.fail_all(changes, str(exc))
        return source
    batch.applied.extend(f"{c.property}: {c.new_value or '(removed)'} (inline)" for c in changes)
    return updated


def apply_style_changes_to_source(
    source: str,
    changes: list[StyleChange] | tuple[StyleChange, ...],
    hints: LocatorHints,
    *,
    config: LiveEditConfig | None = None,
    html: bool = False,
) -> PatchResult:
    """Locate the element once, fold every change into it, write back once.

    Raises LocateError (with nothing modified) when the element cannot be
    found. Individual changes that cannot be converted are reported in
    ``failed`` while the rest of the batch is still applied.
    """
    tag, strategy = find_tag(source, hints, config)
    before = tag.text(source)
    batch = _Batch()
    class_changes = [c for c in changes if not c.use_inline_style]
    inline_changes = [c for c in changes if c.use_inline_style]
    modified = source
    class_location: ElementLocation | None = None

    if class_changes:
        try:
            class_location = location_for_tag(modified, tag, strategy, AttributeTarget.CLASS, html=html)
        except LocateError as exc:
            batch.fail_all(class_changes, str(exc))
        else:
            modified = _apply_class_changes(modified, class_location, class_changes, batch)

    if inline_changes:
        current = read_tag(modified, tag.start)
        if current is None:  # pragma: no cover
            raise LocateError("Element tag vanished while patching", selector=hints.selector)
        try:
            style_location = location_for_tag(modified, current, strategy, AttributeTarget.STYLE, html=html)
        except LocateError as exc:
            batch.fail_all(inline_changes, str(exc))
        else:
            modified = _apply_inline_changes(modified, style_location, inline_changes, batch, html=html)

    after_tag = read_tag(modified, tag.start)
    after = after_tag.text(modified) if after_tag else before
    return PatchResult(
        modified=modified,
        applied=tuple(batch.applied),
        failed=tuple(batch.failed),
        location=class_location,
        tag_before=before,
        tag_after=after,
        strategy=strategy,
    )


def replace_tag(source: str, tag: TagSpan, text: str) -> str:
    return _splice(source, tag.start, tag.end + 1, text)


def set_literal_attribute(source: str, tag: TagSpan, name: str, value: str) -> str:
    """Set ``name="value"`` on ``tag``. Computed values are refused."""
    attribute = find_attribute(source, tag, (name,))
    if attribute is None:
        return _splice(source, name_end(tag), name_end(tag), f' {name}="{value}"')
    if attribute.quote is None or attribute.quote not in QUOTES:
        raise LocateError(f"<{tag.name}> has a computed {name}")
    return _splice(source, attribute.value_start, attribute.value_end, value)
