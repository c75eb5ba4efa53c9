"""Non-fatal value checks for extracted tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..models import Token
from .inference import COLOR_FUNCTION_PATTERN, DURATION_PATTERN, HEX_COLOR_PATTERN
from .shapes import is_alias_reference

_ALIAS_PATTERN = re.compile(r"\{([^}]+)\}")
_LENIENT_DIMENSION = re.compile(
    r"^-?\d+(\.\d+)?(px|rem|em|pt|pc|in|cm|mm|q|vh|vw|vmin|vmax|%)?$", re.IGNORECASE
)
_FONT_WEIGHT_NAMES = {
    "100",
    "200",
    "300",
    "400",
    "500",
    "600",
    "700",
    "800",
    "900",
    "normal",
    "bold",
    "lighter",
    "bolder",
    "thin",
    "light",
    "regular",
    "medium",
    "semibold",
    "extrabold",
    "black",
}


@dataclass(frozen=True)
class TokenIssue:
    """A validation finding for a single token path."""

    path: tuple[str, ...]
    message: str
    severity: str = "warning"

    def describe(self) -> str:
        return f"{'.'.join(self.path)}: {self.message}"


def extract_aliases(value: Any) -> List[str]:
    """Return referenced token paths from ``{a.b}`` / ``{a.b, fallback}`` expressions."""
    if not isinstance(value, str):
        return []
    return [match.split(",")[0].strip() for match in _ALIAS_PATTERN.findall(value)]


def validate_tokens(tokens: Sequence[Token]) -> List[TokenIssue]:
    """Check token values against their types and report unresolved aliases.

    Tokens are never removed; callers surface the issues as warnings.
    """
    issues: List[TokenIssue] = []
    known_paths: Set[str] = set()
    seen: Dict[str, str] = {}

    for token in tokens:
        dotted = ".".join(token.path)
        known_paths.add(dotted)
        previous = seen.get(dotted)
        if previous is not None and previous != token.source_file:
            issues.append(
                TokenIssue(
                    path=token.path,
                    message=f"Duplicate token found in {previous} and {token.source_file}",
                )
            )
        seen.setdefault(dotted, token.source_file)

    for token in tokens:
        issue = _check_value(token)
        if issue is not None:
            issues.append(issue)
        for alias in _aliases_in(token.value):
            if alias not in known_paths:
                issues.append(TokenIssue(path=token.path, message=f"Unresolved alias: {alias}"))

    return issues


def _aliases_in(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        return extract_aliases(value)
    if isinstance(value, Mapping):
        found: List[str] = []
        for item in value.values():
            found.extend(extract_aliases(item))
        return found
    return []


def _check_value(token: Token) -> Optional[TokenIssue]:
    if token.value is None:
        return TokenIssue(token.path, "Token value cannot be null", "error")
    if is_alias_reference(token.value):
        return None
    checker = _CHECKERS.get(token.type)
    if checker is None:
        return None
    result = checker(token.value)
    if result is None:
        return None
    message, severity = result
    return TokenIssue(token.path, message, severity)


def _check_color(value: Any) -> Optional[tuple[str, str]]:
    if not isinstance(value, str):
        return ("Color value must be a string", "error")
    text = value.strip()
    if HEX_COLOR_PATTERN.match(text):
        return None
    if COLOR_FUNCTION_PATTERN.match(text) and text.endswith(")"):
        return None
    return (f"Invalid color format: {value}", "error")


def _check_dimension(value: Any) -> Optional[tuple[str, str]]:
    if isinstance(value, str) and not _LENIENT_DIMENSION.match(value.strip()):
        return (f"Unusual dimension format: {value}", "warning")
    return None


def _check_font_weight(value: Any) -> Optional[tuple[str, str]]:
    if isinstance(value, bool):
        return ("Font weight is not a string or number", "warning")
    if isinstance(value, (int, float)):
        if value < 1 or value > 1000:
            return ("Font weight must be between 1 and 1000", "error")
        return None
    if isinstance(value, str):
        if value.strip().lower().replace("-", "").replace(" ", "") not in _FONT_WEIGHT_NAMES:
            return (f"Unusual font weight: {value}", "warning")
        return None
    return ("Font weight is not a string or number", "warning")


def _check_duration(value: Any) -> Optional[tuple[str, str]]:
    if not isinstance(value, str):
        return ("Duration value must be a string", "error")
    if not DURATION_PATTERN.match(value.strip()):
        return (f"Invalid duration format: {value}", "error")
    return None


def _check_composite(kind: str) -> Callable[[Any], Optional[tuple[str, str]]]:
    def _check(value: Any) -> Optional[tuple[str, str]]:
        if isinstance(value, (Mapping, list)):
            return None
        return (f"{kind} value is not an object", "warning")

    return _check


_CHECKERS: Dict[str, Callable[[Any], Optional[tuple[str, str]]]] = {
    "color": _check_color,
    "dimension": _check_dimension,
    "fontWeight": _check_font_weight,
    "duration": _check_duration,
    "typography": _check_composite("Typography"),
    "shadow": _check_composite("Shadow"),
}


__all__ = ["TokenIssue", "extract_aliases", "validate_tokens"]
