"""JSON decoding with a fallback for comment-bearing (JSONC) token files."""

from __future__ import annotations

import json
from typing import Any

from ..errors import ParseError

_PREVIEW_LENGTH = 200


def load_document(text: str) -> Any:
    """Decode ``text`` as JSON, retrying once with comments stripped."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        original = exc
    except RecursionError as exc:
        raise ParseError("Failed to parse JSON: document is nested too deeply") from exc
    try:
        return json.loads(strip_comments(text))
    except json.JSONDecodeError:
        preview = text[:_PREVIEW_LENGTH].replace("\n", "\\n")
        raise ParseError(
            f"Failed to parse JSON: {original.msg} (line {original.lineno}, column {original.colno}). "
            f"Content preview: {preview}..."
        ) from original


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments outside string literals."""
    result: list[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            result.append(char)
            index += 1
            continue
        nxt = text[index + 1] if index + 1 < length else ""
        if char == "/" and nxt == "/":
            while index < length and text[index] not in "\r\n":
                index += 1
            continue
        if char == "/" and nxt == "*":
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


__all__ = ["load_document", "strip_comments"]
