"""Tests for shared models and event payloads."""

from __future__ import annotations

from tokenfinder.events import ConfigLoaded, ScanProgressEvent, TokensChunk, TokensResult
from tokenfinder.models import CacheEntry, FetchMetadata, FileCount, FileError, RepoSettings, Token


def _token() -> Token:
    return Token(name="sm", path=("space", "sm"), type="dimension", source_file="s.json", value="4px")


def test_token_round_trips_through_dict() -> None:
    token = _token()

    assert token.to_dict() == {
        "name": "sm",
        "path": ["space", "sm"],
        "type": "dimension",
        "sourceFile": "s.json",
        "value": "4px",
    }
    assert Token.from_dict(token.to_dict()) == token
    assert Token.from_dict({"path": [], "type": "color"}) is None


def test_metadata_serialisation_uses_camel_case() -> None:
    metadata = FetchMetadata(
        total_tokens=1,
        files_processed=1,
        total_files=2,
        per_file_counts=[FileCount("s.json", 1), FileCount("bad.json", 0)],
        errors=[FileError("bad.json", "Failed to parse JSON", "parse")],
        digest="sha-1",
    )

    payload = metadata.to_dict()

    assert payload["perFileCounts"][1] == {"file": "bad.json", "count": 0}
    assert payload["errors"] == [{"file": "bad.json", "message": "Failed to parse JSON", "kind": "parse"}]
    assert FetchMetadata.from_dict(payload) == metadata


def test_cache_entry_validity() -> None:
    entry = CacheEntry(digest="abc123", tokens=[], metadata=FetchMetadata(), created_at=0)

    assert entry.is_valid("abc123", now_ms=599_999, ttl_ms=600_000)
    assert not entry.is_valid("abc123", now_ms=600_000, ttl_ms=600_000)
    assert not entry.is_valid("def456", now_ms=1, ttl_ms=600_000)


def test_repo_settings_from_dict_requires_url() -> None:
    assert RepoSettings.from_dict({"branch": "main"}) is None
    assert RepoSettings.from_dict({"repoUrl": "u", "branch": 3}) == RepoSettings(repo_url="u")


def test_event_payloads() -> None:
    chunk = TokensChunk(tokens=[_token()], chunk_index=0, is_last=True)
    assert chunk.to_payload() == {
        "type": "tokens-chunk",
        "tokens": [_token().to_dict()],
        "chunkIndex": 0,
        "isLast": True,
    }
    assert TokensResult(success=False, error="boom").to_payload() == {
        "type": "tokens-result",
        "success": False,
        "error": "boom",
    }
    assert ScanProgressEvent(message="Scanning...").to_payload() == {
        "type": "scan-progress",
        "message": "Scanning...",
    }
    assert ConfigLoaded().to_payload() == {"type": "config-loaded", "config": None}
