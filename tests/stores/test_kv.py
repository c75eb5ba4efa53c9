"""Tests for the key/value store implementations."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from tokenfinder.errors import CacheError
from tokenfinder.stores import JsonFileStore, MemoryStore


def test_memory_store_round_trip() -> None:
    store = MemoryStore()

    async def scenario() -> None:
        await store.set("a", {"x": 1})
        assert await store.get("a") == {"x": 1}
        await store.delete("a")
        await store.delete("missing")
        assert await store.get("a") is None

    asyncio.run(scenario())
    assert store.keys() == []


def test_json_file_store_persists_between_instances(tmp_path: Path) -> None:
    path = tmp_path / "state" / "store.json"

    asyncio.run(JsonFileStore(path).set("repoConfig", {"repoUrl": "https://github.com/a/b"}))

    assert json.loads(path.read_text(encoding="utf-8"))["version"] == 1
    loaded = asyncio.run(JsonFileStore(path).get("repoConfig"))
    assert loaded == {"repoUrl": "https://github.com/a/b"}


def test_json_file_store_treats_corrupt_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    assert asyncio.run(JsonFileStore(path).get("anything")) is None


def test_json_file_store_ignores_other_versions(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"version": 99, "entries": {"a": 1}}), encoding="utf-8")

    assert asyncio.run(JsonFileStore(path).get("a")) is None


def test_json_file_store_rejects_unserialisable_values(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "store.json")

    with pytest.raises(CacheError):
        asyncio.run(store.set("bad", {"value": object()}))
