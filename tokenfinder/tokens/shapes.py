"""Token shape classifiers evaluated in priority order by the extractor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple

TYPOGRAPHY_KEYWORDS = frozenset(
    {
        "fontFamily",
        "fontSize",
        "fontWeight",
        "lineHeight",
        "letterSpacing",
        "paragraphSpacing",
        "textCase",
        "textDecoration",
    }
)
BORDER_KEYWORDS = frozenset({"color", "width", "style"})
OFFSET_KEYWORDS = frozenset({"x", "y", "offsetX", "offsetY"})

Path = Tuple[str, ...]
# (value, explicit type or None when the type must be inferred)
ShapeResult = Tuple[Any, Optional[str]]


@dataclass(frozen=True)
class TokenShape:
    """A named predicate plus the extractor applied when it matches."""

    name: str
    matches: Callable[[Any, Path], bool]
    build: Callable[[Any, Path], ShapeResult]


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def is_alias_reference(value: Any) -> bool:
    """Return True for reference strings such as ``{color.brand}`` or ``$color.brand``."""
    return isinstance(value, str) and value.startswith(("{", "$"))


def looks_like_border(keys: Iterable[str]) -> bool:
    return len(BORDER_KEYWORDS.intersection(keys)) >= 2


def looks_like_shadow(keys: Iterable[str]) -> bool:
    key_set = set(keys)
    has_blur = "blur" in key_set or "spread" in key_set
    return has_blur and "color" in key_set and bool(OFFSET_KEYWORDS & key_set)


def _explicit_type(node: Mapping[str, Any], key: str) -> Optional[str]:
    declared = node.get(key)
    if isinstance(declared, str) and declared.strip():
        return declared.strip()
    return None


def _is_w3c(node: Any, path: Path) -> bool:
    return isinstance(node, Mapping) and "$value" in node


def _build_w3c(node: Mapping[str, Any], path: Path) -> ShapeResult:
    return node["$value"], _explicit_type(node, "$type")


def _is_token_studio(node: Any, path: Path) -> bool:
    if not isinstance(node, Mapping) or "$value" in node or "value" not in node:
        return False
    value = node["value"]
    if is_scalar(value):
        return True
    if not isinstance(value, Mapping):
        return False
    if "type" in node or "description" in node:
        return True
    keys = set(value.keys())
    if looks_like_border(keys) or keys & TYPOGRAPHY_KEYWORDS or looks_like_shadow(keys):
        return True
    if 2 <= len(keys) <= 6:
        return any(is_alias_reference(item) for item in value.values())
    return False


def _build_token_studio(node: Mapping[str, Any], path: Path) -> ShapeResult:
    return node["value"], _explicit_type(node, "type")


def _is_unwrapped_composite(node: Any, path: Path) -> bool:
    if not isinstance(node, Mapping) or "value" in node or "$value" in node:
        return False
    keys = set(node.keys())
    if len(keys & TYPOGRAPHY_KEYWORDS) >= 2:
        return True
    if "color" in keys and ("width" in keys or "style" in keys):
        return True
    return looks_like_shadow(keys)


def _build_unwrapped_composite(node: Mapping[str, Any], path: Path) -> ShapeResult:
    return dict(node), None


def _is_primitive_leaf(node: Any, path: Path) -> bool:
    return is_scalar(node) and len(path) >= 1


def _build_primitive_leaf(node: Any, path: Path) -> ShapeResult:
    return node, None


SHAPES: Tuple[TokenShape, ...] = (
    TokenShape("w3c", _is_w3c, _build_w3c),
    TokenShape("token-studio", _is_token_studio, _build_token_studio),
    TokenShape("unwrapped-composite", _is_unwrapped_composite, _build_unwrapped_composite),
    TokenShape("primitive", _is_primitive_leaf, _build_primitive_leaf),
)


def classify(node: Any, path: Path, shapes: Sequence[TokenShape] = SHAPES) -> Optional[TokenShape]:
    """Return the first shape matching ``node`` or None when it is a plain container."""
    for shape in shapes:
        if shape.matches(node, path):
            return shape
    return None


__all__ = [
    "SHAPES",
    "TokenShape",
    "classify",
    "is_alias_reference",
    "is_scalar",
    "looks_like_border",
    "looks_like_shadow",
]
