"""CSS property/value to Tailwind utility class conversion.

Every supported property maps to a utility ``prefix`` and a value ``shape``.
The shape decides both how a CSS value becomes a token and which existing
tokens conflict with it, so ``text-red-500`` (a color) and ``text-lg`` (a
size) are told apart even though they share the ``text-`` prefix.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from liveedit.errors import ConversionError
from liveedit.model.change import StyleChange
from liveedit.patcher.classes import find_token, replace_category

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Static tables
# ---------------------------------------------------------------------------

PALETTE: dict[str, dict[str, str]] = {
    "slate": {
        "50": "#f8fafc", "100": "#f1f5f9", "200": "#e2e8f0", "300": "#cbd5e1",
        "400": "#94a3b8", "500": "#64748b", "600": "#475569", "700": "#334155",
        "800": "#1e293b", "900": "#0f172a", "950": "#020617",
    },
    "gray": {
        "50": "#f9fafb", "100": "#f3f4f6", "200": "#e5e7eb", "300": "#d1d5db",
        "400": "#9ca3af", "500": "#6b7280", "600": "#4b5563", "700": "#374151",
        "800": "#1f2937", "900": "#111827", "950": "#030712",
    },
    "zinc": {
        "50": "#fafafa", "100": "#f4f4f5", "200": "#e4e4e7", "300": "#d4d4d8",
        "400": "#a1a1aa", "500": "#71717a", "600": "#52525b", "700": "#3f3f46",
        "800": "#27272a", "900": "#18181b", "950": "#09090b",
    },
    "neutral": {
        "50": "#fafafa", "100": "#f5f5f5", "200": "#e5e5e5", "300": "#d4d4d4",
        "400": "#a3a3a3", "500": "#737373", "600": "#525252", "700": "#404040",
        "800": "#262626", "900": "#171717", "950": "#0a0a0a",
    },
    "stone": {
        "50": "#fafaf9", "100": "#f5f5f4", "200": "#e7e5e4", "300": "#d6d3d1",
        "400": "#a8a29e", "500": "#78716c", "600": "#57534e", "700": "#44403c",
        "800": "#292524", "900": "#1c1917", "950": "#0c0a09",
    },
    "red": {
        "50": "#fef2f2", "100": "#fee2e2", "200": "#fecaca", "300": "#fca5a5",
        "400": "#f87171", "500": "#ef4444", "600": "#dc2626", "700": "#b91c1c",
        "800": "#991b1b", "900": "#7f1d1d", "950": "#450a0a",
    },
    "orange": {
        "50": "#fff7ed", "100": "#ffedd5", "200": "#fed7aa", "300": "#fdba74",
        "400": "#fb923c", "500": "#f97316", "600": "#ea580c", "700": "#c2410c",
        "800": "#9a3412", "900": "#7c2d12", "950": "#431407",
    },
    "amber": {
        "50": "#fffbeb", "100": "#fef3c7", "200": "#fde68a", "300": "#fcd34d",
        "400": "#fbbf24", "500": "#f59e0b", "600": "#d97706", "700": "#b45309",
        "800": "#92400e", "900": "#78350f", "950": "#451a03",
    },
    "yellow": {
        "50": "#fefce8", "100": "#fef9c3", "200": "#fef08a", "300": "#fde047",
        "400": "#facc15", "500": "#eab308", "600": "#ca8a04", "700": "#a16207",
        "800": "#854d0e", "900": "#713f12", "950": "#422006",
    },
    "lime": {
        "50": "#f7fee7", "100": "#ecfccb", "200": "#d9f99d", "300": "#bef264",
        "400": "#a3e635", "500": "#84cc16", "600": "#65a30d", "700": "#4d7c0f",
        "800": "#3f6212", "900": "#365314", "950": "#1a2e05",
    },
    "green": {
        "50": "#f0fdf4", "100": "#dcfce7", "200": "#bbf7d0", "300": "#86efac",
        "400": "#4ade80", "500": "#22c55e", "600": "#16a34a", "700": "#15803d",
        "800": "#166534", "900": "#14532d", "950": "#052e16",
    },
    "emerald": {
        "50": "#ecfdf5", "100": "#d1fae5", "200": "#a7f3d0", "300": "#6ee7b7",
        "400": "#34d399", "500": "#10b981", "600": "#059669", "700": "#047857",
        "800": "#065f46", "900": "#064e3b", "950": "#022c22",
    },
    "teal": {
        "50": "#f0fdfa", "100": "#ccfbf1", "200": "#99f6e4", "300": "#5eead4",
        "400": "#2dd4bf", "500": "#14b8a6", "600": "#0d9488", "700": "#0f766e",
        "800": "#115e59", "900": "#134e4a", "950": "#042f2e",
    },
    "cyan": {
        "50": "#ecfeff", "100": "#cffafe", "200": "#a5f3fc", "300": "#67e8f9",
        "400": "#22d3ee", "500": "#06b6d4", "600": "#0891b2", "700": "#0e7490",
        "800": "#155e75", "900": "#164e63", "950": "#083344",
    },
    "sky": {
        "50": "#f0f9ff", "100": "#e0f2fe", "200": "#bae6fd", "300": "#7dd3fc",
        "400": "#38bdf8", "500": "#0ea5e9", "600": "#0284c7", "700": "#0369a1",
        "800": "#075985", "900": "#0c4a6e", "950": "#082f49",
    },
    "blue": {
        "50": "#eff6ff", "100": "#dbeafe", "200": "#bfdbfe", "300": "#93c5fd",
        "400": "#60a5fa", "500": "#3b82f6", "600": "#2563eb", "700": "#1d4ed8",
        "800": "#1e40af", "900": "#1e3a8a", "950": "#172554",
    },
    "indigo": {
        "50": "#eef2ff", "100": "#e0e7ff", "200": "#c7d2fe", "300": "#a5b4fc",
        "400": "#818cf8", "500": "#6366f1", "600": "#4f46e5", "700": "#4338ca",
        "800": "#3730a3", "900": "#312e81", "950": "#1e1b4b",
    },
    "violet": {
        "50": "#f5f3ff", "100": "#ede9fe", "200": "#ddd6fe", "300": "#c4b5fd",
        "400": "#a78bfa", "500": "#8b5cf6", "600": "#7c3aed", "700": "#6d28d9",
        "800": "#5b21b6", "900": "#4c1d95", "950": "#2e1065",
    },
    "purple": {
        "50": "#faf5ff", "100": "#f3e8ff", "200": "#e9d5ff", "300": "#d8b4fe",
        "400": "#c084fc", "500": "#a855f7", "600": "#9333ea", "700": "#7e22ce",
        "800": "#6b21a8", "900": "#581c87", "950": "#3b0764",
    },
    "fuchsia": {
        "50": "#fdf4ff", "100": "#fae8ff", "200": "#f5d0fe", "300": "#f0abfc",
        "400": "#e879f9", "500": "#d946ef", "600": "#c026d3", "700": "#a21caf",
        "800": "#86198f", "900": "#701a75", "950": "#4a044e",
    },
    "pink": {
        "50": "#fdf2f8", "100": "#fce7f3", "200": "#fbcfe8", "300": "#f9a8d4",
        "400": "#f472b6", "500": "#ec4899", "600": "#db2777", "700": "#be185d",
        "800": "#9d174d", "900": "#831843", "950": "#500724",
    },
    "rose": {
        "50": "#fff1f2", "100": "#ffe4e6", "200": "#fecdd3", "300": "#fda4af",
        "400": "#fb7185", "500": "#f43f5e", "600": "#e11d48", "700": "#be123c",
        "800": "#9f1239", "900": "#881337", "950": "#4c0519",
    },
}

COLOR_KEYWORDS = {
    "transparent": "transparent",
    "currentcolor": "current",
    "inherit": "inherit",
    "#000000": "black",
    "#ffffff": "white",
    "black": "black",
    "white": "white",
}


def _build_hex_index() -> dict[str, str]:
    index: dict[str, str] = {}
    for family, shades in PALETTE.items():
        for shade, hex_value in shades.items():
            # first family wins for shared hexes (zinc-50 / neutral-50)
            index.setdefault(hex_value, f"{family}-{shade}")
    return index


HEX_TO_COLOR = _build_hex_index()

FONT_SIZES = {
    "0.75rem": "xs", "12px": "xs",
    "0.875rem": "sm", "14px": "sm",
    "1rem": "base", "16px": "base",
    "1.125rem": "lg", "18px": "lg",
    "1.25rem": "xl", "20px": "xl",
    "1.5rem": "2xl", "24px": "2xl",
    "1.875rem": "3xl", "30px": "3xl",
    "2.25rem": "4xl", "36px": "4xl",
    "3rem": "5xl", "48px": "5xl",
    "3.75rem": "6xl", "60px": "6xl",
    "4.5rem": "7xl", "72px": "7xl",
    "6rem": "8xl", "96px": "8xl",
    "8rem": "9xl", "128px": "9xl",
}

FONT_WEIGHTS = {
    "100": "thin",
    "200": "extralight",
    "300": "light",
    "400": "normal",
    "normal": "normal",
    "500": "medium",
    "600": "semibold",
    "700": "bold",
    "bold": "bold",
    "800": "extrabold",
    "900": "black",
}

SPACING = {
    "0": "0", "0px": "0",
    "1px": "px",
    "0.125rem": "0.5", "2px": "0.5",
    "0.25rem": "1", "4px": "1",
    "0.375rem": "1.5", "6px": "1.5",
    "0.5rem": "2", "8px": "2",
    "0.625rem": "2.5", "10px": "2.5",
    "0.75rem": "3", "12px": "3",
    "0.875rem": "3.5", "14px": "3.5",
    "1rem": "4", "16px": "4",
    "1.25rem": "5", "20px": "5",
    "1.5rem": "6", "24px": "6",
    "1.75rem": "7", "28px": "7",
    "2rem": "8", "32px": "8",
    "2.25rem": "9", "36px": "9",
    "2.5rem": "10", "40px": "10",
    "2.75rem": "11", "44px": "11",
    "3rem": "12", "48px": "12",
    "3.5rem": "14", "56px": "14",
    "4rem": "16", "64px": "16",
    "5rem": "20", "80px": "20",
    "6rem": "24", "96px": "24",
}

BORDER_WIDTHS = {"0": "-0", "0px": "-0", "1px": "", "2px": "-2", "4px": "-4", "8px": "-8"}

RADII = {
    "0": "-none", "0px": "-none",
    "0.125rem": "-sm", "2px": "-sm",
    "0.25rem": "", "4px": "",
    "0.375rem": "-md", "6px": "-md",
    "0.5rem": "-lg", "8px": "-lg",
    "0.75rem": "-xl", "12px": "-xl",
    "1rem": "-2xl", "16px": "-2xl",
    "1.5rem": "-3xl", "24px": "-3xl",
    "9999px": "-full", "50%": "-full",
}

BORDER_STYLES = {v: f"border-{v}" for v in ("solid", "dashed", "dotted", "double", "hidden", "none")}

TEXT_ALIGN = {v: f"text-{v}" for v in ("left", "center", "right", "justify", "start", "end")}

DISPLAY = {
    "block": "block",
    "inline-block": "inline-block",
    "inline": "inline",
    "flex": "flex",
    "inline-flex": "inline-flex",
    "grid": "grid",
    "inline-grid": "inline-grid",
    "contents": "contents",
    "flow-root": "flow-root",
    "table": "table",
    "none": "hidden",
}

TEXT_TRANSFORM = {"uppercase": "uppercase", "lowercase": "lowercase", "capitalize": "capitalize", "none": "normal-case"}

TEXT_DECORATION = {
    "underline": "underline",
    "overline": "overline",
    "line-through": "line-through",
    "none": "no-underline",
}

LINE_HEIGHTS = {
    "1": "none",
    "1.25": "tight",
    "1.375": "snug",
    "1.5": "normal",
    "normal": "normal",
    "1.625": "relaxed",
    "2": "loose",
}

LETTER_SPACING = {
    "-0.05em": "tighter",
    "-0.025em": "tight",
    "0": "normal",
    "0em": "normal",
    "0px": "normal",
    "normal": "normal",
    "0.025em": "wide",
    "0.05em": "wider",
    "0.1em": "widest",
}

SIZE_KEYWORDS = {
    "auto": "auto",
    "100%": "full",
    "100vw": "screen",
    "100vh": "screen",
    "min-content": "min",
    "max-content": "max",
    "fit-content": "fit",
}


# ---------------------------------------------------------------------------
# Shapes and property rules
# ---------------------------------------------------------------------------


class Shape(StrEnum):
    COLOR = "color"
    FONT_SIZE = "font_size"
    FONT_WEIGHT = "font_weight"
    TEXT_ALIGN = "text_align"
    SPACING = "spacing"
    BORDER_WIDTH = "border_width"
    RADIUS = "radius"
    BORDER_STYLE = "border_style"
    DISPLAY = "display"
    TEXT_TRANSFORM = "text_transform"
    TEXT_DECORATION = "text_decoration"
    LINE_HEIGHT = "line_height"
    LETTER_SPACING = "letter_spacing"
    OPACITY = "opacity"
    SIZE = "size"
    BACKGROUND_IMAGE = "background_image"


@dataclass(frozen=True)
class Rule:
    prefix: str
    shape: Shape


def _sides(base: str, prefixes: tuple[str, str, str, str, str], shape: Shape, suffix: str = "") -> dict[str, Rule]:
    names = (base, f"{base}Top", f"{base}Right", f"{base}Bottom", f"{base}Left")
    return {name + suffix: Rule(prefix, shape) for name, prefix in zip(names, prefixes)}


PROPERTY_RULES: dict[str, Rule] = {
    "color": Rule("text", Shape.COLOR),
    "backgroundColor": Rule("bg", Shape.COLOR),
    "backgroundImage": Rule("bg", Shape.BACKGROUND_IMAGE),
    "fontSize": Rule("text", Shape.FONT_SIZE),
    "fontWeight": Rule("font", Shape.FONT_WEIGHT),
    "textAlign": Rule("text", Shape.TEXT_ALIGN),
    **_sides("padding", ("p", "pt", "pr", "pb", "pl"), Shape.SPACING),
    **_sides("margin", ("m", "mt", "mr", "mb", "ml"), Shape.SPACING),
    **_sides("border", ("border", "border-t", "border-r", "border-b", "border-l"), Shape.BORDER_WIDTH, "Width"),
    **_sides("border", ("border", "border-t", "border-r", "border-b", "border-l"), Shape.COLOR, "Color"),
    "borderRadius": Rule("rounded", Shape.RADIUS),
    "borderTopLeftRadius": Rule("rounded-tl", Shape.RADIUS),
    "borderTopRightRadius": Rule("rounded-tr", Shape.RADIUS),
    "borderBottomLeftRadius": Rule("rounded-bl", Shape.RADIUS),
    "borderBottomRightRadius": Rule("rounded-br", Shape.RADIUS),
    "borderStyle": Rule("border", Shape.BORDER_STYLE),
    "display": Rule("", Shape.DISPLAY),
    "textTransform": Rule("", Shape.TEXT_TRANSFORM),
    "textDecoration": Rule("", Shape.TEXT_DECORATION),
    "textDecorationLine": Rule("", Shape.TEXT_DECORATION),
    "lineHeight": Rule("leading", Shape.LINE_HEIGHT),
    "letterSpacing": Rule("tracking", Shape.LETTER_SPACING),
    "opacity": Rule("opacity", Shape.OPACITY),
    "width": Rule("w", Shape.SIZE),
    "height": Rule("h", Shape.SIZE),
    "minWidth": Rule("min-w", Shape.SIZE),
    "minHeight": Rule("min-h", Shape.SIZE),
    "maxWidth": Rule("max-w", Shape.SIZE),
    "maxHeight": Rule("max-h", Shape.SIZE),
    "gap": Rule("gap", Shape.SIZE),
}


def camel_case(prop: str) -> str:
    """``background-color`` -> ``backgroundColor``; camelCase passes through."""
    head, *rest = prop.strip().split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def rule_for(prop: str) -> Rule | None:
    return PROPERTY_RULES.get(camel_case(prop))


# ---------------------------------------------------------------------------
# Value normalization
# ---------------------------------------------------------------------------

_RGB_RE = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*[,\s]\s*(\d{1,3})\s*[,\s]\s*(\d{1,3})\s*(?:[,/]\s*([\d.]+%?)\s*)?\)$"
)
_SHORT_HEX_RE = re.compile(r"^#([0-9a-f])([0-9a-f])([0-9a-f])$")
_LENGTH_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)([a-z%]*)$")
_MATH_RE = re.compile(r"^(calc|clamp|min|max|var)\(")
_COLOR_FN_RE = re.compile(r"^(rgba?|hsla?|hwb|lab|lch|oklab|oklch|color)\(")
_UNSAFE_ARBITRARY = set("\"'`{}<>[]\\\n\r")


def normalize_value(value: str) -> str:
    return re.sub(r"\s+", " ", value.strip().lower())


def normalize_color(value: str) -> str:
    """Lower-case, expand ``#abc`` and turn opaque ``rgb()``/``rgba()`` into hex."""
    v = normalize_value(value)
    short = _SHORT_HEX_RE.match(v)
    if short:
        return "#" + "".join(ch * 2 for ch in short.groups())
    rgb = _RGB_RE.match(v)
    if rgb:
        r, g, b, alpha = rgb.groups()
        opaque = alpha is None or alpha in ("1", "1.0", "100%")
        if opaque and all(int(c) <= 255 for c in (r, g, b)):
            return "#{:02x}{:02x}{:02x}".format(int(r), int(g), int(b))
    return v


def is_length(value: str) -> bool:
    v = value.strip().lower()
    if v.startswith("length:"):
        return True
    if v.startswith("color:"):
        return False
    return bool(_LENGTH_RE.match(v) or _MATH_RE.match(v) and not v.startswith("var("))


def _looks_like_image(value: str) -> bool:
    v = value.strip().lower()
    return v.startswith("url(") or "gradient(" in v


def arbitrary(prefix: str, value: str, *, prop: str, hint: str = "") -> str:
    """Build ``prefix-[value]``; spaces become ``_``."""
    raw = value.strip()
    if not raw:
        raise ConversionError(f"{prop}: empty value", property=prop, value=value)
    if any(ch in _UNSAFE_ARBITRARY for ch in raw):
        raise ConversionError(f"{prop}: value {value!r} has no safe arbitrary form", property=prop, value=value)
    body = re.sub(r"\s*,\s*", ",", raw)
    body = re.sub(r"\s+", "_", body)
    token = f"[{hint}{body}]"
    return f"{prefix}-{token}" if prefix else token


# ---------------------------------------------------------------------------
# Token membership per shape
# ---------------------------------------------------------------------------

_FAMILIES = "|".join(PALETTE)
_ARBITRARY_RE = re.compile(r"^\[(.+)\]$")


def _arbitrary_body(token: str, prefix: str) -> str | None:
    if not token.startswith(prefix + "-["):
        return None
    match = _ARBITRARY_RE.match(token[len(prefix) + 1 :])
    return match.group(1) if match else None


def belongs(token: str, rule: Rule) -> bool:
    """True if ``token`` sets the same thing ``rule`` sets."""
    prefix, shape = rule.prefix, rule.shape
    p = re.escape(prefix)
    body = _arbitrary_body(token, prefix) if prefix else None

    if shape is Shape.COLOR:
        if re.match(rf"^{p}-(inherit|current|transparent|black|white)(/\d+)?$", token):
            return True
        if re.match(rf"^{p}-({_FAMILIES})-\d{{2,3}}(/\d+)?$", token):
            return True
        if body is None:
            faded = re.match(r"^(.+\])/\d+$", token)
            body = _arbitrary_body(faded.group(1), prefix) if faded and prefix else None
        if body is None:
            return False
        if prefix == "bg" and _looks_like_image(body):
            return False
        return not is_length(body)
    if shape is Shape.FONT_SIZE:
        if re.match(r"^text-(xs|sm|base|lg|xl|[2-9]xl)(/[\w.]+)?$", token):
            return True
        return body is not None and is_length(body)
    if shape is Shape.FONT_WEIGHT:
        if re.match(r"^font-(thin|extralight|light|normal|medium|semibold|bold|extrabold|black)$", token):
            return True
        return body is not None and body.isdigit()
    if shape is Shape.TEXT_ALIGN:
        return token in TEXT_ALIGN.values()
    if shape is Shape.SPACING:
        return bool(re.match(rf"^-?{p}-(\d+(\.\d+)?|px|auto|\[.+\])$", token))
    if shape is Shape.BORDER_WIDTH:
        if re.match(rf"^{p}(-(0|2|4|8))?$", token):
            return True
        return body is not None and is_length(body)
    if shape is Shape.RADIUS:
        return bool(re.match(rf"^{p}(-(none|sm|md|lg|xl|2xl|3xl|full)|-\[.+\])?$", token))
    if shape is Shape.BORDER_STYLE:
        return token in BORDER_STYLES.values()
    if shape is Shape.DISPLAY:
        return token in DISPLAY.values() or token == "inline-table"
    if shape is Shape.TEXT_TRANSFORM:
        return token in TEXT_TRANSFORM.values()
    if shape is Shape.TEXT_DECORATION:
        return token in TEXT_DECORATION.values()
    if shape is Shape.LINE_HEIGHT:
        return bool(re.match(r"^leading-(none|tight|snug|normal|relaxed|loose|\d+|\[.+\])$", token))
    if shape is Shape.LETTER_SPACING:
        return bool(re.match(r"^tracking-(tighter|tight|normal|wide|wider|widest|\[.+\])$", token))
    if shape is Shape.OPACITY:
        return bool(re.match(r"^opacity-(\d+|\[.+\])$", token))
    if shape is Shape.SIZE:
        return bool(re.match(rf"^{p}-(\d+(\.\d+)?|px|auto|full|screen|min|max|fit|\d+/\d+|\[.+\])$", token))
    if shape is Shape.BACKGROUND_IMAGE:
        if token == "bg-none" or re.match(r"^bg-gradient-to-[trbl]{1,2}$", token):
            return True
        return body is not None and _looks_like_image(body)
    return False


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Conversion:
    token: str
    rule: Rule


def _color_token(prefix: str, value: str, prop: str) -> str:
    normalized = normalize_color(value)
    keyword = COLOR_KEYWORDS.get(normalized)
    if keyword:
        return f"{prefix}-{keyword}"
    name = HEX_TO_COLOR.get(normalized)
    if name:
        return f"{prefix}-{name}"
    literal = normalized if normalized.startswith("#") else value.strip()
    return arbitrary(prefix, literal, prop=prop, hint="color:" if is_length(literal) else "")


def _length_token(prefix: str, value: str, prop: str) -> str:
    raw = value.strip()
    return arbitrary(prefix, raw, prop=prop, hint="" if is_length(raw) else "length:")


def _keyword(table: dict[str, str], value: str, prop: str) -> str:
    token = table.get(normalize_value(value))
    if token is None:
        raise ConversionError(f"{prop}: no utility class for {value!r}", property=prop, value=value)
    return token


def css_to_token(prop: str, value: str) -> Conversion:
    """Convert one CSS declaration to a utility token.

    Raises ConversionError for unsupported properties and for values with
    neither a table entry nor a safe arbitrary form.
    """
    rule = rule_for(prop)
    if rule is None:
        raise ConversionError(f"{prop}: no utility class mapping", property=prop, value=value)
    prefix, shape = rule.prefix, rule.shape
    v = normalize_value(value)

    if shape is Shape.COLOR:
        token = _color_token(prefix, value, prop)
    elif shape is Shape.FONT_SIZE:
        size = FONT_SIZES.get(v)
        token = f"text-{size}" if size else _length_token("text", value, prop)
    elif shape is Shape.FONT_WEIGHT:
        weight = FONT_WEIGHTS.get(v)
        if weight:
            token = f"font-{weight}"
        elif v.isdigit():
            token = f"font-[{v}]"
        else:
            raise ConversionError(f"{prop}: no utility class for {value!r}", property=prop, value=value)
    elif shape is Shape.TEXT_ALIGN:
        token = _keyword(TEXT_ALIGN, value, prop)
    elif shape is Shape.SPACING:
        step = SPACING.get(v) or ("auto" if v == "auto" and prefix.startswith("m") else None)
        token = f"{prefix}-{step}" if step else arbitrary(prefix, value, prop=prop)
    elif shape is Shape.BORDER_WIDTH:
        width = BORDER_WIDTHS.get(v)
        token = prefix + width if width is not None else _length_token(prefix, value, prop)
    elif shape is Shape.RADIUS:
        radius = RADII.get(v)
        token = prefix + radius if radius is not None else arbitrary(prefix, value, prop=prop)
    elif shape is Shape.BORDER_STYLE:
        token = _keyword(BORDER_STYLES, value, prop)
    elif shape is Shape.DISPLAY:
        token = _keyword(DISPLAY, value, prop)
    elif shape is Shape.TEXT_TRANSFORM:
        token = _keyword(TEXT_TRANSFORM, value, prop)
    elif shape is Shape.TEXT_DECORATION:
        token = _keyword(TEXT_DECORATION, value, prop)
    elif shape is Shape.LINE_HEIGHT:
        named = LINE_HEIGHTS.get(v)
        token = f"leading-{named}" if named else arbitrary("leading", value, prop=prop)
    elif shape is Shape.LETTER_SPACING:
        named = LETTER_SPACING.get(v)
        token = f"tracking-{named}" if named else arbitrary("tracking", value, prop=prop)
    elif shape is Shape.OPACITY:
        token = _opacity_token(value, prop)
    elif shape is Shape.SIZE:
        named = SIZE_KEYWORDS.get(v) or SPACING.get(v)
        token = f"{prefix}-{named}" if named else arbitrary(prefix, value, prop=prop)
    elif shape is Shape.BACKGROUND_IMAGE:
        token = _background_image_token(value, prop)
    else:  # pragma: no cover
        raise ConversionError(f"{prop}: unhandled shape {shape}", property=prop, value=value)

    return Conversion(token=token, rule=rule)


def _opacity_token(value: str, prop: str) -> str:
    v = normalize_value(value)
    try:
        amount = float(v[:-1]) / 100 if v.endswith("%") else float(v)
    except ValueError:
        raise ConversionError(f"{prop}: {value!r} is not a number", property=prop, value=value) from None
    if not 0 <= amount <= 1:
        raise ConversionError(f"{prop}: {value!r} is out of range", property=prop, value=value)
    percent = round(amount * 100, 4)
    if percent == int(percent) and int(percent) % 5 == 0:
        return f"opacity-{int(percent)}"
    return arbitrary("opacity", f"{amount:g}", prop=prop)


def _background_image_token(value: str, prop: str) -> str:
    v = value.strip()
    if v.lower() == "none":
        return "bg-none"
    match = re.match(r"^url\(\s*(['\"]?)(.*?)\1\s*\)$", v, re.IGNORECASE)
    if match:
        return arbitrary("bg", f"url({match.group(2)})", prop=prop)
    if "gradient(" in v.lower():
        return arbitrary("bg", v, prop=prop)
    raise ConversionError(f"{prop}: unsupported background image {value!r}", property=prop, value=value)


def apply_change_to_classes(class_string: str, change: StyleChange) -> tuple[str, str]:
    """Fold one change into ``class_string``. Returns ``(new_string, token)``.

    The new token takes the place of the first conflicting token; other
    conflicting tokens are dropped. An empty ``new_value`` removes the
    property's tokens and returns an empty token.
    """
    if not change.new_value.strip():
        rule = rule_for(change.property)
        if rule is None:
            raise ConversionError(
                f"{change.property}: no utility class mapping", property=change.property, value=""
            )
        return replace_category(class_string, lambda t: belongs(t, rule), ""), ""

    conversion = css_to_token(change.property, change.new_value)
    updated = replace_category(class_string, lambda t: belongs(t, conversion.rule), conversion.token)
    logger.debug("%s: %s -> %s", change.property, change.new_value, conversion.token)
    return updated, conversion.token


def remove_property(class_string: str, prop: str) -> str:
    """Drop every unprefixed token that sets ``prop``."""
    rule = rule_for(prop)
    if rule is None:
        return class_string
    return replace_category(class_string, lambda t: belongs(t, rule), "")


def extract_token(class_string: str, prop: str) -> str | None:
    """The token in ``class_string`` that currently sets ``prop``, if any."""
    rule = rule_for(prop)
    if rule is None:
        return None
    return find_token(class_string, lambda t: belongs(t, rule))
