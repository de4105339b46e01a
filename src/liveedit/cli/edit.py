"""CLI commands that locate and patch elements in a single source file."""

from __future__ import annotations

import difflib
import functools
import sys
from pathlib import Path

import click

from liveedit.config import LiveEditConfig
from liveedit.errors import LiveEditError, LocateError
from liveedit.model.change import LocatorHints, StyleChange
from liveedit.patcher.locator import AttributeTarget, find_tag, locate_element
from liveedit.patcher.styles import apply_style_changes_to_source
from liveedit.patcher.text import replace_text_safely
from liveedit.server.handler import is_markup_file


def hint_options(func):
    """Options that describe the element to find."""

    @click.option("--line", type=int, default=None, help="1-based source line of the element")
    @click.option("--column", type=int, default=None, help="Source column of the element")
    @click.option("--text", "text_content", default=None, help="Visible text of the element")
    @click.option("--selector", default="", help="Selector, e.g. #hero-title")
    @click.option("--class-name", default=None, help="The element's live class attribute")
    @functools.wraps(func)
    def wrapper(*args, line, column, text_content, selector, class_name, **kwargs):
        hints = LocatorHints(
            selector=selector,
            line_number=line,
            column_number=column,
            text_content=text_content,
            class_name=class_name,
        )
        return func(*args, hints=hints, **kwargs)

    return wrapper


def _write_or_diff(path: Path, before: str, after: str, dry_run: bool) -> None:
    if dry_run:
        diff = difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path.name}",
            tofile=f"b/{path.name}",
        )
        click.echo("".join(diff), nl=False)
        return
    path.write_text(after, encoding="utf-8")
    click.echo(f"Updated {path}")


def _fail(exc: LiveEditError) -> None:
    click.echo(f"Error: {exc}", err=True)
    if isinstance(exc, LocateError) and exc.attempted:
        click.echo(f"Tried: {', '.join(exc.attempted)}", err=True)
    sys.exit(1)


@click.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@hint_options
@click.option("--style", "target", flag_value="style", help="Report the style attribute instead of the class")
@click.option("--class", "target", flag_value="class", default=True, hidden=True)
def locate(source: str, hints: LocatorHints, target: str) -> None:
    """Show which tag and attribute the hints resolve to in SOURCE."""
    path = Path(source)
    text = path.read_text(encoding="utf-8")
    try:
        location = locate_element(
            text, hints, AttributeTarget(target), config=LiveEditConfig(), html=is_markup_file(path.name)
        )
    except LiveEditError as exc:
        _fail(exc)
        return

    line = text.count("\n", 0, location.tag.start) + 1
    click.echo(f"strategy:  {location.strategy}")
    click.echo(f"tag:       <{location.tag.name}> at line {line}")
    click.echo(f"attribute: {location.attribute} ({location.kind})")
    click.echo(f"value:     {location.current_text!r}")


@click.command("apply-style")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("changes", nargs=-1, required=True)
@hint_options
@click.option("--inline", is_flag=True, help="Write an inline style instead of utility classes")
@click.option("--dry-run", is_flag=True, help="Print a diff instead of writing the file")
def apply_style(source: str, changes: tuple[str, ...], hints: LocatorHints, inline: bool, dry_run: bool) -> None:
    """Apply CSS property changes (PROPERTY=VALUE, camelCase) to one element."""
    parsed: list[StyleChange] = []
    for item in changes:
        prop, sep, value = item.partition("=")
        if not sep or not prop:
            raise click.BadParameter(f"expected PROPERTY=VALUE, got {item!r}", param_hint="CHANGES")
        parsed.append(StyleChange(prop.strip(), "", value.strip(), use_inline_style=inline))

    path = Path(source)
    before = path.read_text(encoding="utf-8")
    try:
        result = apply_style_changes_to_source(
            before, parsed, hints, config=LiveEditConfig(), html=is_markup_file(path.name)
        )
    except LiveEditError as exc:
        _fail(exc)
        return

    for entry in result.applied:
        click.echo(f"applied  {entry}", err=True)
    for prop, reason in result.failed:
        click.echo(f"failed   {prop}: {reason}", err=True)
    if result.changed:
        _write_or_diff(path, before, result.modified, dry_run)
    if not result.applied:
        sys.exit(1)


@click.command("replace-text")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("old_text")
@click.argument("new_text")
@hint_options
@click.option("--dry-run", is_flag=True, help="Print a diff instead of writing the file")
def replace_text(source: str, old_text: str, new_text: str, hints: LocatorHints, dry_run: bool) -> None:
    """Replace visible text OLD_TEXT with NEW_TEXT, refusing code-like matches."""
    path = Path(source)
    before = path.read_text(encoding="utf-8")
    html = is_markup_file(path.name)
    anchor = None
    if hints.line_number or hints.selector or hints.class_name:
        try:
            anchor = find_tag(before, hints)[0].start
        except LocateError:
            anchor = None
    try:
        replacement = replace_text_safely(before, old_text, new_text, anchor, html=html)
    except LiveEditError as exc:
        _fail(exc)
        return
    click.echo(f"replaced {replacement.context} text at offset {replacement.start}", err=True)
    _write_or_diff(path, before, replacement.modified, dry_run)
