"""Token fetch pipeline: discovery, batched retrieval, caching and streaming."""

from .fetch import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    FetchOutcome,
    FetchRequest,
    TokenFetchPipeline,
    TokenStreamer,
)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "FetchOutcome",
    "FetchRequest",
    "TokenFetchPipeline",
    "TokenStreamer",
]
