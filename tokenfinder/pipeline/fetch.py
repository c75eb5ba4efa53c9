"""Bounded-concurrency token fetch with digest-keyed caching and chunked streaming."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from ..errors import FetchError, NotFoundError, ParseError, TokenFinderError
from ..events import Emitter, TokensChunk, TokensProgress, discard
from ..logging import get_logger
from ..models import FetchMetadata, FileCount, FileError, RepoRef, Token
from ..ports import RepositoryClient
from ..stores.token_cache import TokenCache, cache_key
from ..tokens import extract, load_document, validate_tokens

DEFAULT_BATCH_SIZE = 5
DEFAULT_CHUNK_SIZE = 100
MAX_WARNINGS = 100

_EMPTY_FILE_MESSAGE = "No token values found in this file (checked $value, value, and primitives)"

logger = get_logger("pipeline.fetch")


@dataclass
class FetchRequest:
    """Identifies the token source for one fetch."""

    ref: RepoRef
    branch: str
    directory: str = ""
    force_refresh: bool = False

    @property
    def location(self) -> str:
        return f"'{self.directory}'" if self.directory else "repository root"


@dataclass
class FetchOutcome:
    tokens: List[Token]
    metadata: FetchMetadata


@dataclass
class _FileOutcome:
    path: str
    tokens: List[Token] = field(default_factory=list)
    error: Optional[FileError] = None


class TokenStreamer:
    """Buffers tokens and emits ``tokens-chunk`` events of a fixed size.

    A full chunk is only flushed once at least one more token is buffered, so
    the chunk emitted by :meth:`finish` is always the single ``is_last`` one.
    """

    def __init__(
        self, emit: Emitter, *, chunk_size: int = DEFAULT_CHUNK_SIZE, total: int | None = None
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._emit = emit
        self._chunk_size = chunk_size
        self._total_chunks = math.ceil(total / chunk_size) if total is not None else None
        self._buffer: List[Token] = []
        self.chunks_emitted = 0

    def push(self, tokens: Sequence[Token]) -> None:
        self._buffer.extend(tokens)
        while len(self._buffer) > self._chunk_size:
            chunk = self._buffer[: self._chunk_size]
            del self._buffer[: self._chunk_size]
            self._send(chunk, is_last=False)

    def finish(self) -> None:
        if self._buffer:
            chunk, self._buffer = self._buffer, []
            self._send(chunk, is_last=True)

    def _send(self, chunk: List[Token], *, is_last: bool) -> None:
        self._emit(
            TokensChunk(
                tokens=chunk,
                chunk_index=self.chunks_emitted,
                is_last=is_last,
                total_chunks=self._total_chunks,
            )
        )
        self.chunks_emitted += 1


class TokenFetchPipeline:
    """Retrieves token files, extracts tokens and maintains the token cache."""

    def __init__(
        self,
        client: RepositoryClient,
        cache: TokenCache | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.cache = cache
        self.batch_size = batch_size
        self.chunk_size = chunk_size

    async def run(self, request: FetchRequest, emit: Emitter = discard) -> FetchOutcome:
        """Return tokens for ``request``, replaying the cache when it is still valid.

        Raises :class:`NotFoundError` when no token files exist and
        :class:`FetchError` when discovery itself fails. Per-file failures are
        recorded in the returned metadata instead.
        """
        key = cache_key(request.ref, request.branch, request.directory)
        if self.cache is not None and not request.force_refresh:
            cached = await self._replay_cached(self.cache, key, request, emit)
            if cached is not None:
                return cached
        return await self._fetch(key, request, emit)

    async def _replay_cached(
        self, cache: TokenCache, key: str, request: FetchRequest, emit: Emitter
    ) -> Optional[FetchOutcome]:
        entry, digest = await asyncio.gather(cache.get(key), self._latest_digest(request))
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        if not cache.is_usable(entry, digest):
            logger.info("Cache entry for %s is stale; refetching", key)
            return None

        age_ms = cache.age_ms(entry)
        logger.info("Serving %d cached tokens for %s (age %dms)", len(entry.tokens), key, age_ms)
        emit(TokensProgress(message=f"Loaded {len(entry.tokens)} tokens from cache"))
        streamer = TokenStreamer(emit, chunk_size=self.chunk_size, total=len(entry.tokens))
        streamer.push(entry.tokens)
        streamer.finish()
        metadata = replace(entry.metadata, from_cache=True, cache_age_ms=age_ms, digest=entry.digest)
        return FetchOutcome(tokens=list(entry.tokens), metadata=metadata)

    async def _fetch(self, key: str, request: FetchRequest, emit: Emitter) -> FetchOutcome:
        emit(TokensProgress(message=f"Scanning {request.location} for token files..."))
        files = await self.client.discover_token_files(request.ref, request.branch, request.directory)
        if not files:
            raise NotFoundError(
                f"No token files found in {request.location}. "
                "Looking for .json files (excluding package and tool config files)."
            )
        logger.info("Found %d token files in %s for %s", len(files), request.location, request.ref)

        metadata = FetchMetadata(total_files=len(files))
        all_tokens: List[Token] = []
        streamer = TokenStreamer(emit, chunk_size=self.chunk_size)

        for start in range(0, len(files), self.batch_size):
            batch = files[start : start + self.batch_size]
            emit(
                TokensProgress(
                    message=f"Fetching files {start + 1}-{start + len(batch)} of {len(files)}..."
                )
            )
            outcomes = await asyncio.gather(
                *(self._load_file(request, path) for path in batch)
            )
            for outcome in outcomes:
                self._record(outcome, metadata)
                if outcome.tokens:
                    all_tokens.extend(outcome.tokens)
                    streamer.push(outcome.tokens)
                    emit(
                        TokensProgress(
                            message=f"Found {len(outcome.tokens)} tokens in {outcome.path}"
                        )
                    )

        streamer.finish()
        metadata.total_tokens = len(all_tokens)
        metadata.warnings = _summarise_issues(all_tokens)

        digest = await self._latest_digest(request)
        metadata.digest = digest
        if digest and self.cache is not None:
            stored = await self.cache.store(key, digest=digest, tokens=all_tokens, metadata=metadata)
            if stored:
                logger.debug("Cached %d tokens under %s", len(all_tokens), key)
        elif self.cache is not None:
            logger.info("Skipping cache write for %s: digest unavailable", key)

        return FetchOutcome(tokens=all_tokens, metadata=metadata)

    async def _load_file(self, request: FetchRequest, path: str) -> _FileOutcome:
        try:
            text = await self.client.fetch_file(request.ref, request.branch, path)
        except TokenFinderError as exc:
            logger.warning("Failed to fetch %s: %s", path, exc)
            return _FileOutcome(path=path, error=FileError(file=path, message=str(exc), kind="fetch"))
        except Exception as exc:
            logger.warning("Unexpected error fetching %s: %s", path, exc)
            return _FileOutcome(
                path=path, error=FileError(file=path, message=f"Failed to fetch file: {exc}", kind="fetch")
            )

        if not text.strip():
            return _FileOutcome(
                path=path, error=FileError(file=path, message="Empty file content", kind="fetch")
            )
        try:
            document = load_document(text)
        except ParseError as exc:
            logger.warning("Failed to parse %s: %s", path, exc)
            return _FileOutcome(path=path, error=FileError(file=path, message=str(exc), kind="parse"))

        try:
            tokens = extract(document, path)
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.warning("Failed to extract tokens from %s: %s", path, exc)
            return _FileOutcome(
                path=path,
                error=FileError(file=path, message=f"Failed to extract tokens: {exc}", kind="parse"),
            )
        if not tokens:
            return _FileOutcome(
                path=path, error=FileError(file=path, message=_EMPTY_FILE_MESSAGE, kind="parse")
            )
        logger.debug("Extracted %d tokens from %s", len(tokens), path)
        return _FileOutcome(path=path, tokens=tokens)

    @staticmethod
    def _record(outcome: _FileOutcome, metadata: FetchMetadata) -> None:
        metadata.per_file_counts.append(FileCount(file=outcome.path, count=len(outcome.tokens)))
        if outcome.error is not None:
            metadata.errors.append(outcome.error)
        if outcome.error is None or outcome.error.message == _EMPTY_FILE_MESSAGE:
            metadata.files_processed += 1

    async def _latest_digest(self, request: FetchRequest) -> Optional[str]:
        try:
            return await self.client.latest_digest(request.ref, request.branch)
        except FetchError as exc:
            logger.warning("Could not resolve latest digest for %s@%s: %s", request.ref, request.branch, exc)
            return None


def _summarise_issues(tokens: Sequence[Token]) -> List[str]:
    issues = validate_tokens(tokens)
    messages = [issue.describe() for issue in issues[:MAX_WARNINGS]]
    if len(issues) > MAX_WARNINGS:
        messages.append(f"... and {len(issues) - MAX_WARNINGS} more")
    return messages


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "FetchOutcome",
    "FetchRequest",
    "TokenFetchPipeline",
    "TokenStreamer",
]
