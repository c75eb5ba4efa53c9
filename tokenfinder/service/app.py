"""FastAPI application entrypoint for tokenfinder service mode."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ..config import TokenFinderConfig, load_config
from ..events import Emitter, Event
from ..logging import get_logger
from ..matching import filter_redundant_matches, parse_component_matches
from ..session import Session, session_from_config

SessionFactory = Callable[[Emitter], Session]

logger = get_logger("service")


class HealthResponse(BaseModel):
    status: str


class ConnectionRequest(BaseModel):
    repo_url: str
    directory: str = ""


class TokenFilesRequest(BaseModel):
    repo_url: str
    branch: str
    directory: str = ""


class TokensRequest(BaseModel):
    repo_url: str
    branch: str
    directory: str = ""
    force_refresh: bool = False


class DedupRequest(BaseModel):
    matching_components: List[Dict[str, Any]] = Field(default_factory=list)


class DedupResponse(BaseModel):
    matching_components: List[Dict[str, Any]]
    total_matches: int
    removed: int


def _default_session_factory(config: TokenFinderConfig | None = None) -> SessionFactory:
    resolved = config or load_config(Path("."))

    def factory(emit: Emitter) -> Session:
        return session_from_config(resolved, emit=emit)

    return factory


def create_app(session_factory: Optional[SessionFactory] = None) -> FastAPI:
    """Create the FastAPI application exposing tokenfinder operations.

    ``session_factory`` receives the emitter for the current request and
    returns a fresh :class:`Session`.
    """
    factory = session_factory or _default_session_factory()
    app = FastAPI(title="tokenfinder", version="0.1.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/connection")
    async def connection(payload: ConnectionRequest) -> Dict[str, Any]:
        events: List[Event] = []
        session = factory(events.append)
        await session.test_connection(payload.repo_url, payload.directory)
        return _last_payload(events, "connection-result")

    @app.post("/token-files")
    async def token_files(payload: TokenFilesRequest) -> Dict[str, Any]:
        events: List[Event] = []
        session = factory(events.append)
        await session.detect_token_files(payload.repo_url, payload.branch, payload.directory)
        return _last_payload(events, "token-files-result")

    @app.post("/tokens")
    async def tokens(payload: TokensRequest) -> StreamingResponse:
        queue: asyncio.Queue[Optional[Event]] = asyncio.Queue()
        session = factory(queue.put_nowait)

        async def run() -> None:
            try:
                await session.fetch_tokens(
                    payload.repo_url,
                    payload.branch,
                    payload.directory,
                    force_refresh=payload.force_refresh,
                )
            finally:
                queue.put_nowait(None)

        async def stream() -> AsyncIterator[str]:
            task = asyncio.create_task(run())
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield json.dumps(event.to_payload(), ensure_ascii=False) + "\n"
            await task

        return StreamingResponse(stream(), media_type="application/x-ndjson")

    @app.post("/matches/dedup", response_model=DedupResponse)
    async def dedup(payload: DedupRequest) -> DedupResponse:
        candidates = parse_component_matches(payload.matching_components)
        kept = filter_redundant_matches(candidates)
        logger.debug("Deduplicated %d component matches to %d", len(candidates), len(kept))
        return DedupResponse(
            matching_components=[item.to_dict() for item in kept],
            total_matches=len(kept),
            removed=len(candidates) - len(kept),
        )

    return app


def _last_payload(events: List[Event], event_type: str) -> Dict[str, Any]:
    for event in reversed(events):
        if event.type == event_type:
            return event.to_payload()
    return {"type": event_type, "success": False, "error": "No result produced"}


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: TokenFinderConfig | None = None
) -> None:  # pragma: no cover - integration path
    app = create_app(_default_session_factory(config))
    uvicorn.run(app, host=host, port=port)


__all__ = ["SessionFactory", "create_app", "run_service"]
