"""Tests for element selectors, descriptor extraction and source resolvers."""

from __future__ import annotations

from liveedit.model.element import ElementType, SourceLocation
from liveedit.overlay import (
    CallableResolver,
    ChainResolver,
    DebugFiber,
    DebugMetadataResolver,
    Document,
    ElementRegistry,
    default_resolver,
    extract_descriptor,
    is_text_editable,
    should_ignore,
)
from liveedit.overlay.registry import TRACKING_ATTRIBUTE


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestElementRegistry:
    def test_selector_is_stable(self):
        doc = Document()
        button = doc.body.append(doc.create_element("button", {"id": "save"}))
        registry = ElementRegistry(doc)
        first = registry.selector_for(button)
        assert registry.selector_for(button) == first
        assert first.startswith('#save[data-liveedit-id="el-1-')

    def test_selector_survives_id_change(self):
        doc = Document()
        button = doc.body.append(doc.create_element("button", {"id": "save"}))
        registry = ElementRegistry(doc)
        first = registry.selector_for(button)
        button.set_attribute("id", "renamed")
        assert registry.selector_for(button) == first
        assert registry.resolve(first) is button

    def test_namespaced_id_is_not_used(self):
        doc = Document()
        node = doc.body.append(doc.create_element("div", {"id": "__liveedit_thing"}))
        selector = ElementRegistry(doc).selector_for(node)
        assert selector.startswith(f"[{TRACKING_ATTRIBUTE}=")

    def test_distinct_elements_get_distinct_selectors(self):
        doc = Document()
        a = doc.body.append(doc.create_element("p"))
        b = doc.body.append(doc.create_element("p"))
        registry = ElementRegistry(doc)
        assert registry.selector_for(a) != registry.selector_for(b)

    def test_detached_elements(self):
        doc = Document()
        node = doc.body.append(doc.create_element("p"))
        registry = ElementRegistry(doc)
        selector = registry.selector_for(node)
        node.remove()
        assert registry.resolve(selector) is None
        assert registry.forget_detached() == 1

    def test_resolve_falls_back_to_query(self):
        doc = Document()
        node = doc.body.append(doc.create_element("p", {TRACKING_ATTRIBUTE: "el-7-abcdef"}))
        registry = ElementRegistry(doc)
        assert registry.resolve(f'[{TRACKING_ATTRIBUTE}="el-7-abcdef"]') is node


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassification:
    def test_ignored_tags(self):
        doc = Document()
        assert should_ignore(doc.create_element("script"))
        assert should_ignore(doc.create_element("style"))
        assert not should_ignore(doc.create_element("div"))

    def test_overlay_descendants_are_ignored(self):
        doc = Document()
        chrome = doc.body.append(doc.create_element("div", {"id": "__liveedit_text_edit_overlay"}))
        inner = chrome.append(doc.create_element("span"))
        assert should_ignore(inner)

    def test_text_editable_needs_direct_text(self):
        doc = Document()
        empty = doc.create_element("p")
        assert not is_text_editable(empty)
        empty.append_text("  Hello  ")
        assert is_text_editable(empty)
        div = doc.create_element("div")
        div.append_text("Hello")
        assert not is_text_editable(div)


class TestExtractDescriptor:
    def test_fields(self):
        doc = Document()
        section = doc.body.append(doc.create_element("section"))
        link = section.append(
            doc.create_element("a", {"class": "underline liveedit-hover", "role": "button"}, computed={"color": "red"})
        )
        link.append_text(" Read more ")
        link.set_style("font-size", "14px")
        registry = ElementRegistry(doc)

        descriptor = extract_descriptor(link, registry, SourceLocation("src/a.tsx", 3))

        assert descriptor.tag_name == "a"
        assert descriptor.class_attribute == "underline"
        assert descriptor.element_type is ElementType.BUTTON
        assert descriptor.text_content == "Read more"
        assert descriptor.inline_styles == {"fontSize": "14px"}
        assert descriptor.computed_styles["color"] == "red"
        assert descriptor.computed_styles["fontSize"] == "14px"
        assert descriptor.computed_styles["boxShadow"] == ""
        assert descriptor.parent_selector == registry.selector_for(section)
        assert descriptor.source_location == SourceLocation("src/a.tsx", 3)

    def test_body_children_have_no_parent_selector(self):
        doc = Document()
        div = doc.body.append(doc.create_element("div"))
        div.append(doc.create_element("span"))
        descriptor = extract_descriptor(div, ElementRegistry(doc))
        assert descriptor.parent_selector is None
        assert descriptor.child_count == 1
        assert descriptor.text_content is None
        assert descriptor.element_type is ElementType.CONTAINER


# ---------------------------------------------------------------------------
# Source resolvers
# ---------------------------------------------------------------------------


class TestResolvers:
    def test_walks_up_to_owner(self):
        owner = DebugFiber(source={"fileName": "/workspace/i-abc123/src/Hero.tsx", "lineNumber": 12})
        fiber = DebugFiber(source=None, owner=owner)
        doc = Document()
        node = doc.body.append(doc.create_element("h2", debug_fiber=fiber))
        assert DebugMetadataResolver().resolve(node) == SourceLocation("src/Hero.tsx", 12)

    def test_uses_nearest_ancestor_metadata(self):
        doc = Document()
        parent = doc.body.append(
            doc.create_element("div", debug_fiber=DebugFiber(source={"fileName": "src/a.tsx", "lineNumber": 2}))
        )
        child = parent.append(doc.create_element("span"))
        assert DebugMetadataResolver().resolve(child).file_path == "src/a.tsx"

    def test_no_metadata(self):
        doc = Document()
        node = doc.body.append(doc.create_element("span"))
        assert DebugMetadataResolver().resolve(node) is None

    def test_chain_skips_failing_resolver(self):
        def broken(element):
            raise RuntimeError("bridge offline")

        doc = Document()
        node = doc.body.append(
            doc.create_element("p", debug_fiber=DebugFiber(source={"fileName": "src/p.tsx", "lineNumber": 1}))
        )
        chain = ChainResolver(CallableResolver(broken), DebugMetadataResolver())
        assert chain.resolve(node).file_path == "src/p.tsx"

    def test_precise_resolver_first(self):
        doc = Document()
        node = doc.body.append(
            doc.create_element("p", debug_fiber=DebugFiber(source={"fileName": "src/p.tsx", "lineNumber": 1}))
        )
        resolver = default_resolver(CallableResolver(lambda e: {"fileName": "src/q.tsx", "lineNumber": 9}))
        assert resolver.resolve(node) == SourceLocation("src/q.tsx", 9)
