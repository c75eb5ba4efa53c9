"""Tests for the digest-keyed token cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from tests._fixtures.fake_repo import REF, FakeClock
from tokenfinder.errors import CacheError
from tokenfinder.models import FetchMetadata, RepoRef, Token
from tokenfinder.stores import DEFAULT_TTL_MS, MemoryStore, TokenCache, cache_key

TOKENS = [
    Token(name="primary", path=("color", "primary"), type="color", source_file="c.json", value="#fff"),
    Token(name="heading", path=("heading",), type="typography", source_file="t.json", value={"fontSize": "24px"}),
]


class _BrokenStore:
    async def get(self, key: str) -> Optional[Any]:
        raise CacheError("disk unavailable")

    async def set(self, key: str, value: Any) -> None:
        raise CacheError("disk full")

    async def delete(self, key: str) -> None:
        raise CacheError("disk unavailable")


def test_cache_key_includes_scope() -> None:
    assert cache_key(REF, "main", "") == "tokens:acme/design-tokens@main:/"
    assert cache_key(REF, "main", "/tokens/") == "tokens:acme/design-tokens@main:tokens"
    assert cache_key(RepoRef("a", "b"), "dev", None) == "tokens:a/b@dev:/"


def test_store_and_reload_entry() -> None:
    clock = FakeClock()
    cache = TokenCache(MemoryStore(), clock=clock)
    key = cache_key(REF, "main", "")

    async def scenario() -> None:
        stored = await cache.store(
            key, digest="sha-1", tokens=TOKENS, metadata=FetchMetadata(total_tokens=2)
        )
        assert stored is True
        entry = await cache.get(key)
        assert entry is not None
        assert entry.tokens == TOKENS
        assert entry.digest == "sha-1"
        assert entry.metadata.total_tokens == 2
        assert entry.created_at == clock.now

    asyncio.run(scenario())


def test_entry_validity_depends_on_digest_and_age() -> None:
    clock = FakeClock()
    cache = TokenCache(MemoryStore(), clock=clock)
    key = cache_key(REF, "main", "")

    asyncio.run(cache.store(key, digest="sha-1", tokens=TOKENS, metadata=FetchMetadata()))
    entry = asyncio.run(cache.get(key))
    assert entry is not None

    assert cache.is_usable(entry, "sha-1")
    assert not cache.is_usable(entry, "sha-2")
    assert not cache.is_usable(entry, None)

    clock.advance(DEFAULT_TTL_MS - 1)
    assert cache.is_usable(entry, "sha-1")
    assert cache.age_ms(entry) == DEFAULT_TTL_MS - 1

    clock.advance(1)
    assert not cache.is_usable(entry, "sha-1")


def test_invalidate_removes_entry() -> None:
    cache = TokenCache(MemoryStore(), clock=FakeClock())
    key = cache_key(REF, "main", "tokens")

    async def scenario() -> None:
        await cache.store(key, digest="sha-1", tokens=TOKENS, metadata=FetchMetadata())
        await cache.invalidate(key)
        assert await cache.get(key) is None

    asyncio.run(scenario())


def test_store_failures_behave_like_a_miss() -> None:
    cache = TokenCache(_BrokenStore(), clock=FakeClock())

    async def scenario() -> None:
        assert await cache.get("tokens:a/b@main:/") is None
        assert await cache.store(
            "tokens:a/b@main:/", digest="sha", tokens=TOKENS, metadata=FetchMetadata()
        ) is False
        await cache.invalidate("tokens:a/b@main:/")

    asyncio.run(scenario())


def test_malformed_entries_are_ignored() -> None:
    store = MemoryStore()
    cache = TokenCache(store, clock=FakeClock())
    asyncio.run(store.set("tokens:a/b@main:/", {"version": 1, "digest": 5}))

    assert asyncio.run(cache.get("tokens:a/b@main:/")) is None


def test_mistyped_metadata_fields_decode_as_defaults() -> None:
    store = MemoryStore()
    cache = TokenCache(store, clock=FakeClock())
    payload = {
        "version": 1,
        "digest": "sha-1",
        "createdAt": 1_000_000.0,
        "tokens": [TOKENS[0].to_dict()],
        "metadata": {
            "perFileCounts": [{"file": "a", "count": None}],
            "totalTokens": "12",
            "filesProcessed": True,
            "errors": 3,
            "warnings": None,
        },
    }
    asyncio.run(store.set("tokens:a/b@main:/", payload))

    entry = asyncio.run(cache.get("tokens:a/b@main:/"))

    assert entry is not None
    assert entry.metadata.per_file_counts[0].count == 0
    assert entry.metadata.total_tokens == 0
    assert entry.metadata.files_processed == 0
    assert entry.metadata.errors == []
    assert entry.metadata.warnings == []


def test_store_failures_are_logged(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="tokenfinder")
    cache = TokenCache(_BrokenStore(), clock=FakeClock())

    asyncio.run(cache.get("tokens:a/b@main:/"))

    assert "Cache read failed for tokens:a/b@main:/: disk unavailable" in caplog.text
