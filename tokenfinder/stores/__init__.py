"""Persistence helpers for cached tokens and saved settings."""

from .kv import JsonFileStore, KeyValueStore, MemoryStore
from .token_cache import DEFAULT_TTL_MS, TokenCache, cache_key, system_clock_ms

__all__ = [
    "DEFAULT_TTL_MS",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "TokenCache",
    "cache_key",
    "system_clock_ms",
]
