"""Tests for JSON / JSONC document decoding."""

from __future__ import annotations

import pytest

from tokenfinder.errors import ParseError
from tokenfinder.tokens import load_document, strip_comments


def test_plain_json_is_decoded() -> None:
    assert load_document('{"a": {"$value": "1px"}}') == {"a": {"$value": "1px"}}


def test_comments_are_stripped_on_fallback() -> None:
    text = """
    {
      // brand palette
      "color": "#ffffff", /* primary */
      "link": "https://example.com/a//b"
    }
    """

    assert load_document(text) == {"color": "#ffffff", "link": "https://example.com/a//b"}


def test_strip_comments_keeps_escaped_quotes() -> None:
    text = '{"a": "say \\"hi\\" // not a comment"} // trailing'

    assert strip_comments(text).strip() == '{"a": "say \\"hi\\" // not a comment"}'


def test_invalid_document_raises_parse_error_with_preview() -> None:
    with pytest.raises(ParseError) as excinfo:
        load_document('{"a": 1,,}')

    message = str(excinfo.value)
    assert message.startswith("Failed to parse JSON:")
    assert "line 1" in message
    assert 'Content preview: {"a": 1,,}' in message


def test_excessive_nesting_raises_parse_error() -> None:
    text = "[" * 100_000 + "]" * 100_000

    with pytest.raises(ParseError, match="nested too deeply"):
        load_document(text)
