"""Collaborator contracts consumed by the pipeline and session."""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from .models import MatchingResult, RepoRef, ScanProgress, ScanResult, Token


class RepositoryClient(Protocol):
    """Remote source of token files."""

    def parse_repo_url(self, url: str) -> Optional[RepoRef]: ...

    async def list_branches(self, ref: RepoRef) -> List[str]: ...

    async def discover_token_files(
        self, ref: RepoRef, branch: str, directory: str = ""
    ) -> List[str]: ...

    async def latest_digest(self, ref: RepoRef, branch: str) -> str: ...

    async def fetch_file(self, ref: RepoRef, branch: str, path: str) -> str: ...


class ComponentScanner(Protocol):
    """Walks the design document and emits component descriptors.

    ``mode`` is one of ``current``, ``all_pages`` or ``selection``.
    """

    def scan(
        self,
        mode: str,
        *,
        page_filter: Optional[str] = None,
        progress: Optional[Callable[[ScanProgress], None]] = None,
    ) -> ScanResult: ...


class TokenMatcher(Protocol):
    """Produces raw match candidates for one token."""

    def match_token_to_components(self, token: Token, scan_result: ScanResult) -> MatchingResult: ...


__all__ = ["ComponentScanner", "RepositoryClient", "TokenMatcher"]
