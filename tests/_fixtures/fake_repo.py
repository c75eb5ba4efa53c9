"""In-memory repository collaborator and clock used across tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from tokenfinder.errors import FetchError
from tokenfinder.github import GitHubClient
from tokenfinder.models import RepoRef

FileBody = Union[str, Exception]


class FakeClock:
    """Millisecond clock advanced explicitly by tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeRepositoryClient:
    """Serves token files from a dict and records every call."""

    def __init__(
        self,
        files: Mapping[str, FileBody],
        *,
        branches: Sequence[str] = ("main", "develop"),
        digest: Optional[str] = "sha-1",
        discover_error: Optional[Exception] = None,
    ) -> None:
        self.files: Dict[str, FileBody] = dict(files)
        self.branches = list(branches)
        self.digest = digest
        self.discover_error = discover_error
        self.fetch_calls: List[str] = []
        self.digest_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    parse_repo_url = staticmethod(GitHubClient.parse_repo_url)

    async def list_branches(self, ref: RepoRef) -> List[str]:
        return list(self.branches)

    async def discover_token_files(
        self, ref: RepoRef, branch: str, directory: str = ""
    ) -> List[str]:
        if self.discover_error is not None:
            raise self.discover_error
        prefix = directory.strip("/")
        return [path for path in self.files if not prefix or path.startswith(prefix + "/")]

    async def latest_digest(self, ref: RepoRef, branch: str) -> str:
        self.digest_calls += 1
        if self.digest is None:
            raise FetchError("digest unavailable", status=502)
        return self.digest

    async def fetch_file(self, ref: RepoRef, branch: str, path: str) -> str:
        self.fetch_calls.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            body = self.files[path]
            if isinstance(body, Exception):
                raise body
            return body
        finally:
            self.in_flight -= 1


def token_file(tokens: Mapping[str, Any]) -> str:
    """Serialise a token document the way a repository would store it."""
    return json.dumps(tokens, indent=2)


REPO_URL = "https://github.com/acme/design-tokens"
REF = RepoRef(owner="acme", repo="design-tokens")


__all__ = ["FakeClock", "FakeRepositoryClient", "REF", "REPO_URL", "token_file"]
