"""Asynchronous key/value stores backing the token cache and saved settings."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from ..errors import CacheError
from ..logging import get_logger

_STORE_VERSION = 1

logger = get_logger("stores.kv")


class KeyValueStore(Protocol):
    """Async get/set/delete by string key; no transactional guarantees."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store used for tests and short-lived sessions."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._entries)


class JsonFileStore:
    """Stores all entries in a single versioned JSON document on disk.

    Unreadable or mismatched-version files are treated as empty. Write
    failures raise :class:`CacheError`.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._entries: Dict[str, Any] = {}
        self._loaded = False

    async def get(self, key: str) -> Optional[Any]:
        await self._ensure_loaded()
        return self._entries.get(key)

    async def set(self, key: str, value: Any) -> None:
        await self._ensure_loaded()
        self._entries[key] = value
        await self._persist()

    async def delete(self, key: str) -> None:
        await self._ensure_loaded()
        if self._entries.pop(key, None) is not None:
            await self._persist()

    # ------------------------------------------------------------------
    # Internal helpers

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        loop = asyncio.get_running_loop()
        self._entries = await loop.run_in_executor(None, self._load, self._path)
        self._loaded = True

    async def _persist(self) -> None:
        payload = {"version": _STORE_VERSION, "entries": self._entries}
        try:
            text = json.dumps(payload, indent=2, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise CacheError(f"Store entries are not JSON serialisable: {exc}") from exc
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, self._path, text)

    @staticmethod
    def _write(path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise CacheError(f"Failed to write {path}: {exc}") from exc

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", path, exc)
            return {}
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            return {}
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return {}
        return {key: value for key, value in entries.items() if isinstance(key, str)}


__all__ = ["JsonFileStore", "KeyValueStore", "MemoryStore"]
