"""Tests for safe replacement of visible text in source."""

import pytest

from liveedit.errors import LocateError, TextNotFoundError, UnsafeTextMatchError
from liveedit.patcher.text import TextContext, classify_occurrence, replace_text_safely


class TestReplaceTextSafely:
    def test_skips_property_access(self):
        source = (
            "const done = task.completed;\n"
            'return <span className="status">completed</span>;\n'
        )
        result = replace_text_safely(source, "completed", "finished")
        assert "task.completed" in result.modified
        assert ">finished</span>" in result.modified
        assert result.context is TextContext.MARKUP

    def test_refuses_when_every_match_is_code(self):
        source = "if (task.completed) { status = { completed: true } }"
        with pytest.raises(UnsafeTextMatchError) as exc_info:
            replace_text_safely(source, "completed", "finished")
        assert exc_info.value.occurrences == 2

    def test_not_found(self):
        with pytest.raises(TextNotFoundError):
            replace_text_safely("<p>Hello</p>", "Goodbye", "Bye")

    def test_not_found_is_a_locate_error(self):
        assert issubclass(TextNotFoundError, LocateError)

    def test_empty_old_text(self):
        with pytest.raises(TextNotFoundError):
            replace_text_safely("<p>Hello</p>", "   ", "Bye")

    def test_anchor_prefers_later_occurrence(self):
        source = "<h1>Hello</h1><p>Hello</p>"
        result = replace_text_safely(source, "Hello", "Hi", anchor=source.index("<p>"))
        assert result.modified == "<h1>Hello</h1><p>Hi</p>"

    def test_whitespace_differences_still_match(self):
        source = "<p>\n  Hello\n  world\n</p>"
        result = replace_text_safely(source, "Hello world", "Bye")
        assert result.modified == "<p>\n  Bye\n</p>"

    def test_prose_attribute_is_a_string(self):
        source = '<input placeholder="Search items" />'
        result = replace_text_safely(source, "Search items", "Find")
        assert result.modified == '<input placeholder="Find" />'
        assert result.context is TextContext.STRING

    def test_non_prose_attribute_is_refused(self):
        with pytest.raises(UnsafeTextMatchError):
            replace_text_safely('<div data-state="completed" />', "completed", "done")

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("const t = 'Hello';", "const t = 'Bye';"),
            ('let label = "Hello"', 'let label = "Bye"'),
            ('const copy = { title: "Hello" };', 'const copy = { title: "Bye" };'),
            ('function Greeting({ text = "Hello" }) {}', 'function Greeting({ text = "Bye" }) {}'),
        ],
    )
    def test_assigned_strings_are_editable(self, source, expected):
        result = replace_text_safely(source, "Hello", "Bye")
        assert result.modified == expected
        assert result.context is TextContext.STRING

    def test_constant_used_by_markup(self):
        source = 'const heading = "Hello";\n\nexport const Hero = () => <h1 data-role="hero">{heading}</h1>;\n'
        result = replace_text_safely(source, "Hello", "Welcome back")
        assert result.modified.startswith('const heading = "Welcome back";')

    def test_non_prose_attribute_in_multiline_tag(self):
        source = '<div\n  className="p-4"\n  data-state="completed"\n>\n</div>'
        with pytest.raises(UnsafeTextMatchError):
            replace_text_safely(source, "completed", "done")

    def test_import_specifier_is_refused(self):
        with pytest.raises(UnsafeTextMatchError):
            replace_text_safely('import Button from "Button";', "Button", "Link")

    def test_jsx_escapes_braces(self):
        result = replace_text_safely("<p>Total</p>", "Total", "a < b")
        assert result.modified == '<p>{"a < b"}</p>'

    def test_html_escapes_entities(self):
        result = replace_text_safely("<p>Total</p>", "Total", "a < b", html=True)
        assert result.modified == "<p>a &lt; b</p>"

    def test_string_escapes_quotes(self):
        result = replace_text_safely("<img alt='Logo' />", "Logo", "Bob's logo")
        assert result.modified == "<img alt='Bob\\'s logo' />"


class TestClassifyOccurrence:
    def test_object_key(self):
        source = "{ completed: true }"
        start = source.index("completed")
        assert classify_occurrence(source, start, start + len("completed")) is None

    def test_identifier_fragment(self):
        source = "<p>incompleted</p>"
        start = source.index("completed")
        assert classify_occurrence(source, start, start + len("completed")) is None

    def test_closing_tag_after(self):
        source = "<p>\n  {count} completed\n</p>"
        start = source.index("completed")
        assert classify_occurrence(source, start, start + len("completed")) is TextContext.MARKUP
