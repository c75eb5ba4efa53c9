"""Flatten arbitrary nested token JSON into an ordered token list."""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Tuple

from ..logging import get_logger
from ..models import Token
from .inference import infer_type, normalize_path
from .shapes import SHAPES, TokenShape, classify

MAX_DEPTH = 50

_METADATA_KEYS = {"extensions"}

logger = get_logger("tokens.extractor")


def extract(
    document: Any,
    source_file: str,
    *,
    shapes: Sequence[TokenShape] = SHAPES,
    max_depth: int = MAX_DEPTH,
) -> List[Token]:
    """Return tokens found in ``document`` in document order.

    Nodes are tested against ``shapes`` in priority order; a node that matches
    becomes exactly one token and is not descended into. The document root is
    always treated as a container so every token path has at least one segment.
    """
    tokens: List[Token] = []
    stack: List[Tuple[Any, Tuple[str, ...]]] = [(document, ())]

    while stack:
        node, path = stack.pop()
        if node is None:
            continue

        if path:
            shape = classify(node, path, shapes)
            if shape is not None:
                value, explicit_type = shape.build(node, path)
                tokens.append(_make_token(value, explicit_type, path, source_file))
                continue

        if len(path) >= max_depth:
            logger.debug(
                "Skipping %s in %s: nesting deeper than %d levels",
                ".".join(path),
                source_file,
                max_depth,
            )
            continue

        children = _children(node, path)
        # Reverse so the first child is popped first and document order is kept.
        stack.extend(reversed(children))

    return tokens


def _children(node: Any, path: Tuple[str, ...]) -> List[Tuple[Any, Tuple[str, ...]]]:
    if isinstance(node, Mapping):
        return [
            (child, path + (str(key),))
            for key, child in node.items()
            if not _is_metadata_key(str(key))
        ]
    if isinstance(node, list):
        return [(child, path + (str(index),)) for index, child in enumerate(node)]
    return []


def _is_metadata_key(key: str) -> bool:
    return key in _METADATA_KEYS or key.startswith("$")


def _make_token(
    value: Any, explicit_type: str | None, path: Tuple[str, ...], source_file: str
) -> Token:
    token_type = explicit_type or infer_type(value, normalize_path(path))
    snapshot = _snapshot(value)
    return Token(
        name=path[-1],
        path=tuple(path),
        type=token_type,
        source_file=source_file,
        value=snapshot,
    )


def _snapshot(value: Any) -> Any:
    """Copy nested dicts and lists without recursing, so value depth is unbounded."""
    if not isinstance(value, (dict, list)):
        return value
    root: Any = {} if isinstance(value, dict) else []
    pending: List[Tuple[Any, Any]] = [(value, root)]
    while pending:
        source, target = pending.pop()
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, child in items:
            if isinstance(child, (dict, list)):
                copied: Any = {} if isinstance(child, dict) else []
                pending.append((child, copied))
            else:
                copied = child
            if isinstance(target, dict):
                target[key] = copied
            else:
                target.append(copied)
    return root


__all__ = ["MAX_DEPTH", "extract"]
