"""Session object exposing every user-facing tokenfinder operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set, Union

from .config import TokenFinderConfig
from .errors import CacheError, InputError, TokenFinderError
from .events import (
    ConfigLoaded,
    ConfigSaved,
    ConnectionProgress,
    ConnectionResult,
    Emitter,
    ScanProgressEvent,
    ScanResultEvent,
    TokenFilesResult,
    TokensResult,
    discard,
)
from .github import GitHubClient
from .logging import get_logger
from .matching import filter_redundant_matches
from .models import ComponentMatch, FetchMetadata, RepoRef, RepoSettings, ScanProgress, Token
from .pipeline import DEFAULT_BATCH_SIZE, DEFAULT_CHUNK_SIZE, FetchRequest, TokenFetchPipeline
from .ports import ComponentScanner, RepositoryClient, TokenMatcher
from .stores import (
    DEFAULT_TTL_MS,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    TokenCache,
    cache_key,
    system_clock_ms,
)

CONFIG_KEY = "repoConfig"
SCAN_MODES = ("current", "all_pages", "selection")
MAX_BRANCHES = 10
MAX_SAMPLE_FILES = 5

_INVALID_URL = "Invalid GitHub URL format. Expected: https://github.com/owner/repo"

logger = get_logger("session")


@dataclass
class OperationResult:
    """Discriminated outcome shared by every session operation."""

    success: bool
    error: Optional[str] = None


@dataclass
class ConnectionOutcome(OperationResult):
    ref: Optional[RepoRef] = None
    branches: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)


@dataclass
class TokenFilesOutcome(OperationResult):
    files: List[str] = field(default_factory=list)


@dataclass
class TokensOutcome(OperationResult):
    tokens: List[Token] = field(default_factory=list)
    metadata: Optional[FetchMetadata] = None


@dataclass
class ScanOutcome(OperationResult):
    token: Optional[Token] = None
    matching_components: List[ComponentMatch] = field(default_factory=list)
    total_components_scanned: int = 0


@dataclass
class ConfigOutcome(OperationResult):
    config: Optional[RepoSettings] = None


class Session:
    """Holds collaborators and per-session state for one connected design document.

    Every public coroutine reports through the emitter and returns an
    :class:`OperationResult`; tokenfinder errors never escape to the caller.
    """

    def __init__(
        self,
        client: RepositoryClient,
        *,
        store: KeyValueStore | None = None,
        scanner: ComponentScanner | None = None,
        matcher: TokenMatcher | None = None,
        emit: Emitter = discard,
        clock: Callable[[], float] = system_clock_ms,
        ttl_ms: int = DEFAULT_TTL_MS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.client = client
        self.store = store if store is not None else MemoryStore()
        self.scanner = scanner
        self.matcher = matcher
        self.emit = emit
        self.clock = clock
        self.cache = TokenCache(self.store, ttl_ms=ttl_ms, clock=clock)
        self.pipeline = TokenFetchPipeline(
            client, self.cache, batch_size=batch_size, chunk_size=chunk_size
        )
        self.document_version: Optional[str] = None
        self.tokens: List[Token] = []
        self._config: Optional[RepoSettings] = None
        self._config_loaded = False
        self._cache_keys: Set[str] = set()

    # ------------------------------------------------------------------
    # Repository operations

    async def test_connection(self, repo_url: str, directory: str = "") -> ConnectionOutcome:
        """List branches and sample the token files on the first branch."""
        try:
            ref = self._parse_url(repo_url)
            self.emit(ConnectionProgress(message="Connecting to GitHub..."))
            branches = await self.client.list_branches(ref)
        except TokenFinderError as exc:
            logger.warning("Connection test failed: %s", exc)
            self.emit(ConnectionResult(success=False, error=str(exc)))
            return ConnectionOutcome(success=False, error=str(exc))

        files: List[str] = []
        if branches:
            self.emit(ConnectionProgress(message="Scanning for token files..."))
            try:
                files = await self.client.discover_token_files(ref, branches[0], directory)
            except TokenFinderError as exc:
                # Discovery problems do not fail the connection test.
                logger.warning("Token file detection failed during connection test: %s", exc)

        self.emit(
            ConnectionResult(
                success=True,
                owner=ref.owner,
                repo=ref.repo,
                branches=branches[:MAX_BRANCHES],
                file_count=len(files),
                sample_files=[_truncate(path) for path in files[:MAX_SAMPLE_FILES]],
            )
        )
        return ConnectionOutcome(success=True, ref=ref, branches=branches, files=files)

    async def detect_token_files(
        self, repo_url: str, branch: str, directory: str = ""
    ) -> TokenFilesOutcome:
        try:
            ref = self._parse_url(repo_url)
            files = await self.client.discover_token_files(ref, branch, directory)
        except TokenFinderError as exc:
            self.emit(TokenFilesResult(success=False, error=str(exc)))
            return TokenFilesOutcome(success=False, error=str(exc))
        self.emit(TokenFilesResult(success=True, files=files))
        return TokenFilesOutcome(success=True, files=files)

    async def fetch_tokens(
        self,
        repo_url: str,
        branch: str,
        directory: str = "",
        *,
        force_refresh: bool = False,
    ) -> TokensOutcome:
        """Run the fetch pipeline, streaming chunks before the final result."""
        try:
            ref = self._parse_url(repo_url)
            if not branch:
                raise InputError("A branch is required to fetch tokens")
            request = FetchRequest(
                ref=ref, branch=branch, directory=directory, force_refresh=force_refresh
            )
            self._cache_keys.add(_key_for(request))
            outcome = await self.pipeline.run(request, self.emit)
        except TokenFinderError as exc:
            logger.warning("Token fetch failed: %s", exc)
            self.emit(TokensResult(success=False, error=str(exc)))
            return TokensOutcome(success=False, error=str(exc))

        self.tokens = outcome.tokens
        metadata = outcome.metadata
        # Tokens travel in chunks; the result carries metadata only.
        self.emit(TokensResult(success=True, metadata=metadata))
        return TokensOutcome(success=True, tokens=outcome.tokens, metadata=metadata)

    async def invalidate_cache(self) -> None:
        """Drop every token cache entry written or read by this session."""
        for key in sorted(self._cache_keys):
            await self.cache.invalidate(key)
        logger.debug("Invalidated %d cache entries", len(self._cache_keys))
        self._cache_keys.clear()

    async def note_document_version(self, version: str) -> bool:
        """Record the design document version; returns True when it changed."""
        if version == self.document_version:
            return False
        previous, self.document_version = self.document_version, version
        if previous is None:
            return False
        logger.info("Document version changed from %s to %s", previous, version)
        self._config = None
        self._config_loaded = False
        await self.invalidate_cache()
        return True

    # ------------------------------------------------------------------
    # Component scanning

    async def scan_for_token(
        self,
        token: Union[Token, str],
        mode: str = "current",
        *,
        page_filter: Optional[str] = None,
    ) -> ScanOutcome:
        """Scan components, match ``token`` against them and drop redundant matches."""
        try:
            if mode not in SCAN_MODES:
                raise InputError(
                    f"Unknown scan mode '{mode}'. Expected one of: {', '.join(SCAN_MODES)}"
                )
            if self.scanner is None or self.matcher is None:
                raise InputError("Component scanning is not available in this session")
            resolved = self._resolve_token(token)
            self.emit(ScanProgressEvent(message=_scan_message(mode)))
            scan_result = self.scanner.scan(mode, page_filter=page_filter, progress=self._on_progress)
            if mode == "selection" and not scan_result.components:
                raise InputError("No selection found. Please select a frame or node to scan.")
            raw = self.matcher.match_token_to_components(resolved, scan_result)
        except TokenFinderError as exc:
            self.emit(ScanResultEvent(success=False, error=str(exc)))
            return ScanOutcome(success=False, error=str(exc))

        matches = filter_redundant_matches(raw.matching_components)
        logger.info(
            "Token %s matched %d components (%d before deduplication)",
            ".".join(resolved.path),
            len(matches),
            len(raw.matching_components),
        )
        self.emit(
            ScanResultEvent(
                success=True,
                token=resolved,
                matching_components=matches,
                total_components_scanned=raw.total_components_scanned,
            )
        )
        return ScanOutcome(
            success=True,
            token=resolved,
            matching_components=matches,
            total_components_scanned=raw.total_components_scanned,
        )

    def find_token(self, query: str) -> Optional[Token]:
        """Find a fetched token by dotted path or bare name, case-insensitively."""
        wanted = query.strip().lower()
        for token in self.tokens:
            if ".".join(token.path).lower() == wanted or token.name.lower() == wanted:
                return token
        return None

    # ------------------------------------------------------------------
    # Saved settings

    async def save_config(self, settings: RepoSettings) -> ConfigOutcome:
        try:
            await self.store.set(CONFIG_KEY, settings.to_dict())
        except CacheError as exc:
            logger.warning("Failed to save repository config: %s", exc)
            self.emit(ConfigSaved(success=False, error=str(exc)))
            return ConfigOutcome(success=False, error=str(exc))
        self._config = settings
        self._config_loaded = True
        self.emit(ConfigSaved(success=True))
        return ConfigOutcome(success=True, config=settings)

    async def load_config(self) -> ConfigOutcome:
        if not self._config_loaded:
            try:
                payload = await self.store.get(CONFIG_KEY)
            except CacheError as exc:
                logger.warning("Failed to load repository config: %s", exc)
                payload = None
            self._config = RepoSettings.from_dict(payload)
            self._config_loaded = True
        self.emit(ConfigLoaded(config=self._config))
        return ConfigOutcome(success=True, config=self._config)

    async def clear_config(self) -> ConfigOutcome:
        try:
            await self.store.delete(CONFIG_KEY)
        except CacheError as exc:
            logger.warning("Failed to clear repository config: %s", exc)
            return ConfigOutcome(success=False, error=str(exc))
        self._config = None
        self._config_loaded = True
        self.emit(ConfigLoaded(config=None))
        return ConfigOutcome(success=True)

    # ------------------------------------------------------------------
    # Internal helpers

    def _parse_url(self, repo_url: str) -> RepoRef:
        if not repo_url or not repo_url.strip():
            raise InputError("Repository URL is required")
        ref = self.client.parse_repo_url(repo_url)
        if ref is None:
            raise InputError(_INVALID_URL)
        return ref

    def _resolve_token(self, token: Union[Token, str]) -> Token:
        if isinstance(token, Token):
            return token
        if not self.tokens:
            raise InputError("No tokens fetched. Please fetch tokens first.")
        found = self.find_token(token)
        if found is None:
            raise InputError(f"Token '{token}' was not found in the fetched tokens")
        return found

    def _on_progress(self, progress: ScanProgress) -> None:
        self.emit(
            ScanProgressEvent(
                message=(
                    f"Scanning page {progress.current_page}/{progress.total_pages}: "
                    f"{progress.page_name}"
                ),
                current_page=progress.current_page,
                total_pages=progress.total_pages,
                page_name=progress.page_name,
                components_found=progress.components_found,
            )
        )


def session_from_config(config: TokenFinderConfig, *, emit: Emitter = discard) -> Session:
    """Build a GitHub-backed session using the on-disk cache from ``config``."""
    client = GitHubClient(token=config.repository.access_token())
    return Session(
        client,
        store=JsonFileStore(config.cache_path),
        emit=emit,
        ttl_ms=config.cache.ttl_ms,
        batch_size=config.pipeline.batch_size,
        chunk_size=config.pipeline.chunk_size,
    )


def _key_for(request: FetchRequest) -> str:
    return cache_key(request.ref, request.branch, request.directory)


def _scan_message(mode: str) -> str:
    if mode == "all_pages":
        return "Scanning all pages for token matches..."
    if mode == "selection":
        return "Scanning selection for token matches..."
    return "Scanning current page for token matches..."


def _truncate(path: str, limit: int = 50) -> str:
    return path if len(path) <= limit else path[: limit - 3] + "..."


__all__ = [
    "CONFIG_KEY",
    "ConfigOutcome",
    "ConnectionOutcome",
    "OperationResult",
    "SCAN_MODES",
    "ScanOutcome",
    "Session",
    "TokenFilesOutcome",
    "TokensOutcome",
    "session_from_config",
]
