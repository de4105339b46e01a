"""Element classification and descriptor extraction."""

from __future__ import annotations

import re

from liveedit.model.element import ElementDescriptor, ElementType, SourceLocation
from liveedit.overlay.dom import Element
from liveedit.overlay.registry import ElementRegistry, is_namespaced

IGNORED_ELEMENTS = frozenset({"script", "style", "link", "meta", "head", "html", "noscript"})

TEXT_EDITABLE_ELEMENTS = frozenset(
    {
        "p", "h1", "h2", "h3", "h4", "h5", "h6", "span", "a", "button", "label",
        "li", "td", "th", "caption", "figcaption", "blockquote", "cite", "q",
        "strong", "em", "b", "i", "u", "small", "mark", "del", "ins", "sub", "sup",
    }
)  # fmt: skip

COMPUTED_STYLE_PROPERTIES = (
    "fontFamily", "fontSize", "fontWeight", "lineHeight", "letterSpacing",
    "textAlign", "textDecoration", "textTransform", "color", "backgroundColor",
    "backgroundImage", "marginTop", "marginRight", "marginBottom", "marginLeft",
    "paddingTop", "paddingRight", "paddingBottom", "paddingLeft",
    "borderTopWidth", "borderRightWidth", "borderBottomWidth", "borderLeftWidth",
    "borderTopColor", "borderRightColor", "borderBottomColor", "borderLeftColor",
    "borderTopLeftRadius", "borderTopRightRadius", "borderBottomRightRadius",
    "borderBottomLeftRadius", "borderStyle", "display", "flexDirection",
    "justifyContent", "alignItems", "gap", "width", "height", "minWidth",
    "minHeight", "maxWidth", "maxHeight", "opacity", "boxShadow",
)  # fmt: skip

_TYPE_BY_TAG: dict[str, ElementType] = {
    **dict.fromkeys(("input", "textarea", "select"), ElementType.INPUT),
    **dict.fromkeys(("span", "p", "h1", "h2", "h3", "h4", "h5", "h6", "label", "a"), ElementType.TEXT),
    **dict.fromkeys(("img", "svg"), ElementType.IMAGE),
    **dict.fromkeys(
        ("div", "section", "article", "header", "footer", "nav", "main", "aside"), ElementType.CONTAINER
    ),
    **dict.fromkeys(("ul", "ol", "li"), ElementType.LIST),
}


def should_ignore(element: Element) -> bool:
    """Non-visual elements and everything inside the overlay's own chrome."""
    if element.tag_name in IGNORED_ELEMENTS:
        return True
    if is_namespaced(element.id):
        return True
    return any(is_namespaced(ancestor.id) for ancestor in element.ancestors())


def direct_text(element: Element) -> str:
    return "".join(node.data for node in element.text_nodes).strip()


def is_text_editable(element: Element) -> bool:
    return element.tag_name in TEXT_EDITABLE_ELEMENTS and bool(direct_text(element))


def element_type(element: Element) -> ElementType:
    if element.tag_name == "button" or element.get_attribute("role") == "button":
        return ElementType.BUTTON
    return _TYPE_BY_TAG.get(element.tag_name, ElementType.GENERIC)


def class_attribute(element: Element) -> str:
    return " ".join(token for token in element.class_name.split() if not is_namespaced(token))


def computed_styles(element: Element) -> dict[str, str]:
    computed = element.get_computed_style()
    return {prop: computed.get(prop, "") for prop in COMPUTED_STYLE_PROPERTIES}


def inline_styles(element: Element) -> dict[str, str]:
    return {re.sub(r"-([a-z])", lambda m: m.group(1).upper(), prop): value for prop, value in element.style.items()}


def extract_descriptor(
    element: Element,
    registry: ElementRegistry,
    source_location: SourceLocation | None = None,
) -> ElementDescriptor:
    editable = is_text_editable(element)
    parent = element.parent
    parent_selector = None
    if parent is not None and parent.tag_name not in IGNORED_ELEMENTS and parent.tag_name != "body":
        parent_selector = registry.selector_for(parent)
    return ElementDescriptor(
        selector=registry.selector_for(element),
        tag_name=element.tag_name,
        class_attribute=class_attribute(element),
        computed_styles=computed_styles(element),
        inline_styles=inline_styles(element),
        bounding_rect=element.get_bounding_client_rect(),
        text_content=direct_text(element) if editable else None,
        is_text_editable=editable,
        source_location=source_location,
        parent_selector=parent_selector,
        child_count=len(element.element_children),
        element_type=element_type(element),
    )
