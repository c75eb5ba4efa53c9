"""Path-driven semantic type inference for untyped token values.

Value shape alone cannot tell a spacing value from an opacity or a z-index, so
the ancestor path is consulted as context. Checks run in a fixed order: radius
and border-width signals are tested before the generic dimension rule because
they share its value shape.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{3,8}$")
COLOR_FUNCTION_PATTERN = re.compile(r"^(rgba?|hsla?)\(", re.IGNORECASE)
DURATION_PATTERN = re.compile(r"^\d+(\.\d+)?(ms|s)$")
DIMENSION_PATTERN = re.compile(
    r"^-?\d+(\.\d+)?(px|rem|em|pt|pc|in|cm|mm|q|vh|vw|vmin|vmax|%)$", re.IGNORECASE
)
# Matches scale steps such as "spacing.2x" or "space.0.5x".
_MULTIPLIER_SEGMENT = re.compile(r"(^|\.)\d+(\.\d+)?x$")

_SPACING_KEYWORDS = (
    "size",
    "spacing",
    "space",
    "gap",
    "padding",
    "margin",
    "sizing",
    "dimension",
)
_RADIUS_KEYWORDS = ("radius", "corner", "rounded")
_TYPOGRAPHY_KEYWORDS = ("font", "typography", "text")
_SHADOW_KEYWORDS = ("shadow", "elevation")
_NUMBER_KEYWORDS = ("opacity", "alpha", "z-index", "zindex")

SHADOW_KEYS = frozenset({"blur", "spread", "offsetX", "offsetY"})
TYPOGRAPHY_KEYS = frozenset({"fontFamily", "fontSize", "fontWeight", "lineHeight"})


def normalize_path(path: Iterable[str]) -> str:
    """Return the lower-cased, dot-joined form used by :func:`infer_type`."""
    return ".".join(path).lower()


def infer_type(value: Any, normalized_path: str) -> str:
    """Map a token value and its normalized ancestor path to a semantic type."""
    if isinstance(value, str):
        return _infer_string(value, normalized_path)
    if isinstance(value, bool):
        return "string"
    if isinstance(value, (int, float)):
        return _infer_number(normalized_path)
    if isinstance(value, Mapping):
        return _infer_composite(value, normalized_path)
    return "string"


def _infer_string(value: str, path: str) -> str:
    text = value.strip()
    if HEX_COLOR_PATTERN.match(text) or COLOR_FUNCTION_PATTERN.match(text):
        return "color"
    if _has_any(path, ("color", "colour")):
        return "color"
    if DURATION_PATTERN.match(text) or "duration" in path:
        return "duration"
    if _signals_radius(path):
        return "borderRadius"
    if _signals_border_width(path):
        return "borderWidth"
    if DIMENSION_PATTERN.match(text) or _signals_spacing(path):
        return "dimension"
    if _has_any(path, _TYPOGRAPHY_KEYWORDS):
        if "weight" in path:
            return "fontWeight"
        if "family" in path:
            return "fontFamily"
        return "typography"
    if _has_any(path, _SHADOW_KEYWORDS):
        return "shadow"
    if "border" in path and "radius" not in path:
        return "border"
    return "string"


def _infer_number(path: str) -> str:
    if _signals_radius(path):
        return "borderRadius"
    if _signals_border_width(path):
        return "borderWidth"
    if "weight" in path and "font" in path:
        return "fontWeight"
    if _has_any(path, _NUMBER_KEYWORDS):
        return "number"
    if _signals_spacing(path):
        return "dimension"
    return "number"


def _infer_composite(value: Mapping[str, Any], path: str) -> str:
    keys = set(value.keys())
    if _has_any(path, _SHADOW_KEYWORDS) or keys & SHADOW_KEYS:
        return "shadow"
    if "typography" in path or keys & TYPOGRAPHY_KEYS:
        return "typography"
    if "border" in path:
        return "border"
    if "width" in keys and ("color" in keys or "style" in keys):
        return "border"
    if "color" in keys and "style" in keys:
        return "border"
    return "string"


def _has_any(path: str, keywords: Iterable[str]) -> bool:
    return any(keyword in path for keyword in keywords)


def _signals_radius(path: str) -> bool:
    return _has_any(path, _RADIUS_KEYWORDS)


def _signals_border_width(path: str) -> bool:
    if "border" in path and ("width" in path or "weight" in path):
        return True
    return "stroke" in path and "weight" in path


def _signals_spacing(path: str) -> bool:
    return _has_any(path, _SPACING_KEYWORDS) or bool(_MULTIPLIER_SEGMENT.search(path))


__all__ = [
    "COLOR_FUNCTION_PATTERN",
    "DIMENSION_PATTERN",
    "DURATION_PATTERN",
    "HEX_COLOR_PATTERN",
    "infer_type",
    "normalize_path",
]
