"""Core data models shared across tokenfinder components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

TOKEN_TYPES = (
    "color",
    "dimension",
    "duration",
    "borderRadius",
    "borderWidth",
    "fontWeight",
    "fontFamily",
    "typography",
    "shadow",
    "border",
    "number",
    "string",
)

MATCH_PATH_SEPARATOR = " → "

_VARIANT_ASSIGNMENT = re.compile(r"^[^=,]+=[^=,]*(,\s*[^=,]+=[^=,]*)*$")


@dataclass(frozen=True)
class Token:
    """A named design value extracted from a JSON source."""

    name: str
    path: Tuple[str, ...]
    type: str
    source_file: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": list(self.path),
            "type": self.type,
            "sourceFile": self.source_file,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, payload: object) -> Optional["Token"]:
        if not isinstance(payload, dict):
            return None
        path = payload.get("path")
        token_type = payload.get("type")
        source_file = payload.get("sourceFile", "")
        if not isinstance(path, list) or not path:
            return None
        if not all(isinstance(segment, str) for segment in path):
            return None
        if not isinstance(token_type, str) or not isinstance(source_file, str):
            return None
        return cls(
            name=path[-1],
            path=tuple(path),
            type=token_type,
            source_file=source_file,
            value=payload.get("value"),
        )


@dataclass(frozen=True)
class RepoRef:
    """Owner/name pair identifying a remote repository."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class FileError:
    """Non-fatal failure recorded for a single token file."""

    file: str
    message: str
    kind: str = "parse"

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "message": self.message, "kind": self.kind}


@dataclass
class FileCount:
    """Number of tokens extracted from one file."""

    file: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "count": self.count}


@dataclass
class FetchMetadata:
    """Summary attached to a completed token fetch."""

    total_tokens: int = 0
    files_processed: int = 0
    total_files: int = 0
    per_file_counts: List[FileCount] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    from_cache: bool = False
    cache_age_ms: Optional[int] = None
    digest: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTokens": self.total_tokens,
            "filesProcessed": self.files_processed,
            "totalFiles": self.total_files,
            "perFileCounts": [count.to_dict() for count in self.per_file_counts],
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
            "fromCache": self.from_cache,
            "cacheAgeMs": self.cache_age_ms,
            "digest": self.digest,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "FetchMetadata":
        if not isinstance(payload, dict):
            return cls()
        counts = [
            FileCount(file=str(item.get("file", "")), count=_as_count(item.get("count")))
            for item in _as_list(payload.get("perFileCounts"))
            if isinstance(item, dict)
        ]
        errors = [
            FileError(
                file=str(item.get("file", "")),
                message=str(item.get("message", "")),
                kind=str(item.get("kind", "parse")),
            )
            for item in _as_list(payload.get("errors"))
            if isinstance(item, dict)
        ]
        warnings = [str(item) for item in _as_list(payload.get("warnings")) if isinstance(item, str)]
        return cls(
            total_tokens=_as_count(payload.get("totalTokens")),
            files_processed=_as_count(payload.get("filesProcessed")),
            total_files=_as_count(payload.get("totalFiles")),
            per_file_counts=counts,
            errors=errors,
            warnings=warnings,
            digest=payload.get("digest") if isinstance(payload.get("digest"), str) else None,
        )


@dataclass
class CacheEntry:
    """Token list stored for one (owner, repo, branch, directory) key."""

    digest: str
    tokens: List[Token]
    metadata: FetchMetadata
    created_at: float

    def age_ms(self, now_ms: float) -> int:
        return max(0, int(now_ms - self.created_at))

    def is_valid(self, current_digest: str | None, *, now_ms: float, ttl_ms: int) -> bool:
        """Return True when the digest still matches and the entry is younger than the TTL."""
        if not current_digest or self.digest != current_digest:
            return False
        return self.age_ms(now_ms) < ttl_ms


@dataclass(frozen=True)
class PathSegment:
    """One hop between a matched component and the property that matched."""

    kind: str
    label: str


@dataclass(frozen=True)
class MatchPath:
    """Structured provenance of a match: variant/layer hops plus the leaf property."""

    leaf_property: str
    segments: Tuple[PathSegment, ...] = ()

    @property
    def is_direct(self) -> bool:
        if not self.segments:
            return True
        return len(self.segments) == 1 and self.segments[0].kind == "variant"

    @classmethod
    def parse(cls, text: str) -> "MatchPath":
        parts = [part.strip() for part in text.split(MATCH_PATH_SEPARATOR)]
        leaf = parts.pop()
        segments = tuple(
            PathSegment(kind="variant" if _is_variant_assignment(part) else "layer", label=part)
            for part in parts
        )
        return cls(leaf_property=leaf, segments=segments)

    def __str__(self) -> str:
        labels = [segment.label for segment in self.segments]
        labels.append(self.leaf_property)
        return MATCH_PATH_SEPARATOR.join(labels)


def _as_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _as_list(value: object) -> List[Any]:
    return value if isinstance(value, list) else []


def _is_variant_assignment(label: str) -> bool:
    return bool(_VARIANT_ASSIGNMENT.match(label.strip()))


@dataclass
class ComponentDescriptor:
    """Component emitted by the scanning collaborator."""

    id: str
    name: str
    page: str = ""
    type: str = "COMPONENT"
    main_component_id: Optional[str] = None
    main_component_name: Optional[str] = None
    variant_name: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def owner_id(self) -> str:
        return self.main_component_id or self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "page": self.page,
            "type": self.type,
            "mainComponentId": self.main_component_id,
            "mainComponentName": self.main_component_name,
            "variantName": self.variant_name,
            "properties": dict(self.properties),
        }


@dataclass
class MatchRecord:
    """Evidence that a token matched one property of a component."""

    property: MatchPath
    property_type: str
    matched_value: str
    token_value: str
    confidence: float
    nested_main_component_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property": str(self.property),
            "propertyType": self.property_type,
            "matchedValue": self.matched_value,
            "tokenValue": self.token_value,
            "confidence": self.confidence,
            "nestedMainComponentId": self.nested_main_component_id,
        }


@dataclass
class ComponentMatch:
    """All matches found for one component against one token."""

    component: ComponentDescriptor
    matches: List[MatchRecord]
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component.to_dict(),
            "matches": [match.to_dict() for match in self.matches],
            "confidence": self.confidence,
        }


@dataclass
class ScanProgress:
    """Progress snapshot reported while scanning all pages."""

    current_page: int
    total_pages: int
    page_name: str
    components_found: int


@dataclass
class ScanResult:
    """Flat component list produced by the scanning collaborator."""

    components: List[ComponentDescriptor]
    total_scanned: int


@dataclass
class MatchingResult:
    """Raw match candidates produced by the matching collaborator."""

    matching_components: List[ComponentMatch]
    total_components_scanned: int


@dataclass
class RepoSettings:
    """Saved repository connection settings."""

    repo_url: str
    branch: Optional[str] = None
    directory: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"repoUrl": self.repo_url, "branch": self.branch, "directory": self.directory}

    @classmethod
    def from_dict(cls, payload: object) -> Optional["RepoSettings"]:
        if not isinstance(payload, dict):
            return None
        repo_url = payload.get("repoUrl")
        if not isinstance(repo_url, str) or not repo_url:
            return None
        branch = payload.get("branch")
        directory = payload.get("directory")
        return cls(
            repo_url=repo_url,
            branch=branch if isinstance(branch, str) else None,
            directory=directory if isinstance(directory, str) else None,
        )
