"""Digest-keyed cache of extracted token lists."""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from ..errors import CacheError
from ..logging import get_logger
from ..models import CacheEntry, FetchMetadata, RepoRef, Token
from .kv import KeyValueStore

DEFAULT_TTL_MS = 10 * 60 * 1000
_ENTRY_VERSION = 1

logger = get_logger("stores.token_cache")


def system_clock_ms() -> float:
    return time.time() * 1000


def cache_key(ref: RepoRef, branch: str, directory: str | None) -> str:
    """Return the store key for one ``(owner, repo, branch, directory)`` source."""
    scope = (directory or "").strip("/") or "/"
    return f"tokens:{ref.owner}/{ref.repo}@{branch}:{scope}"


class TokenCache:
    """Stores token lists keyed by source and validated against the latest digest.

    The cache is an optimisation only: store failures are logged and behave
    like a miss (on read) or a no-op (on write).
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = system_clock_ms,
    ) -> None:
        self._store = store
        self.ttl_ms = ttl_ms
        self._clock = clock

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            payload = await self._store.get(key)
        except CacheError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if payload is None:
            return None
        entry = _entry_from_dict(payload)
        if entry is None:
            logger.debug("Discarding malformed cache entry for %s", key)
        return entry

    def is_usable(self, entry: CacheEntry, current_digest: str | None) -> bool:
        return entry.is_valid(current_digest, now_ms=self._clock(), ttl_ms=self.ttl_ms)

    def age_ms(self, entry: CacheEntry) -> int:
        return entry.age_ms(self._clock())

    async def store(
        self, key: str, *, digest: str, tokens: list[Token], metadata: FetchMetadata
    ) -> bool:
        entry = CacheEntry(
            digest=digest,
            tokens=list(tokens),
            metadata=metadata,
            created_at=self._clock(),
        )
        try:
            await self._store.set(key, _entry_to_dict(entry))
        except CacheError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
            return False
        return True

    async def invalidate(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except CacheError as exc:
            logger.warning("Cache invalidation failed for %s: %s", key, exc)


def _entry_to_dict(entry: CacheEntry) -> Dict[str, object]:
    return {
        "version": _ENTRY_VERSION,
        "digest": entry.digest,
        "createdAt": entry.created_at,
        "tokens": [token.to_dict() for token in entry.tokens],
        "metadata": entry.metadata.to_dict(),
    }


def _entry_from_dict(payload: object) -> Optional[CacheEntry]:
    if not isinstance(payload, dict) or payload.get("version") != _ENTRY_VERSION:
        return None
    digest = payload.get("digest")
    created_at = payload.get("createdAt")
    raw_tokens = payload.get("tokens")
    if not isinstance(digest, str) or not isinstance(raw_tokens, list):
        return None
    if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
        return None
    tokens = []
    for raw in raw_tokens:
        token = Token.from_dict(raw)
        if token is not None:
            tokens.append(token)
    return CacheEntry(
        digest=digest,
        tokens=tokens,
        metadata=FetchMetadata.from_dict(payload.get("metadata")),
        created_at=float(created_at),
    )


__all__ = ["DEFAULT_TTL_MS", "TokenCache", "cache_key", "system_clock_ms"]
