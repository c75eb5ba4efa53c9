"""Tagged event payloads emitted to the UI or service boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional

from .models import ComponentMatch, FetchMetadata, RepoSettings, Token


class Event:
    """Base class for boundary events; ``type`` is the wire tag."""

    type: ClassVar[str] = "event"

    def to_payload(self) -> Dict[str, Any]:
        raise NotImplementedError


Emitter = Callable[[Event], None]


def discard(event: Event) -> None:
    """Emitter that drops every event."""


@dataclass
class ConnectionProgress(Event):
    type: ClassVar[str] = "connection-progress"

    message: str

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass
class ConnectionResult(Event):
    type: ClassVar[str] = "connection-result"

    success: bool
    owner: Optional[str] = None
    repo: Optional[str] = None
    branches: List[str] = field(default_factory=list)
    file_count: int = 0
    sample_files: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if not self.success:
            return {"type": self.type, "success": False, "error": self.error}
        return {
            "type": self.type,
            "success": True,
            "owner": self.owner,
            "repo": self.repo,
            "branches": list(self.branches),
            "fileCount": self.file_count,
            "sampleFiles": list(self.sample_files),
        }


@dataclass
class TokensProgress(Event):
    type: ClassVar[str] = "tokens-progress"

    message: str

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass
class TokensChunk(Event):
    type: ClassVar[str] = "tokens-chunk"

    tokens: List[Token]
    chunk_index: int
    is_last: bool
    total_chunks: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "tokens": [token.to_dict() for token in self.tokens],
            "chunkIndex": self.chunk_index,
            "isLast": self.is_last,
        }
        if self.total_chunks is not None:
            payload["totalChunks"] = self.total_chunks
        return payload


@dataclass
class TokensResult(Event):
    type: ClassVar[str] = "tokens-result"

    success: bool
    tokens: Optional[List[Token]] = None
    metadata: Optional[FetchMetadata] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "success": self.success}
        if self.tokens is not None:
            payload["tokens"] = [token.to_dict() for token in self.tokens]
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class TokenFilesResult(Event):
    type: ClassVar[str] = "token-files-result"

    success: bool
    files: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if not self.success:
            return {"type": self.type, "success": False, "error": self.error}
        return {"type": self.type, "success": True, "files": list(self.files)}


@dataclass
class ScanProgressEvent(Event):
    type: ClassVar[str] = "scan-progress"

    message: str
    current_page: Optional[int] = None
    total_pages: Optional[int] = None
    page_name: Optional[str] = None
    components_found: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "message": self.message}
        if self.current_page is not None:
            payload.update(
                {
                    "currentPage": self.current_page,
                    "totalPages": self.total_pages,
                    "pageName": self.page_name,
                    "componentsFound": self.components_found,
                }
            )
        return payload


@dataclass
class ScanResultEvent(Event):
    type: ClassVar[str] = "scan-result"

    success: bool
    token: Optional[Token] = None
    matching_components: List[ComponentMatch] = field(default_factory=list)
    total_components_scanned: int = 0
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if not self.success:
            return {"type": self.type, "success": False, "error": self.error}
        return {
            "type": self.type,
            "success": True,
            "result": {
                "token": self.token.to_dict() if self.token is not None else None,
                "matchingComponents": [match.to_dict() for match in self.matching_components],
                "totalMatches": len(self.matching_components),
                "totalComponentsScanned": self.total_components_scanned,
            },
        }


@dataclass
class ConfigLoaded(Event):
    type: ClassVar[str] = "config-loaded"

    config: Optional[RepoSettings] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "config": self.config.to_dict() if self.config is not None else None,
        }


@dataclass
class ConfigSaved(Event):
    type: ClassVar[str] = "config-saved"

    success: bool
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload


__all__ = [
    "ConfigLoaded",
    "ConfigSaved",
    "ConnectionProgress",
    "ConnectionResult",
    "Emitter",
    "Event",
    "ScanProgressEvent",
    "ScanResultEvent",
    "TokenFilesResult",
    "TokensChunk",
    "TokensProgress",
    "TokensResult",
    "discard",
]
