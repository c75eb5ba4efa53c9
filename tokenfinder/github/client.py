"""GitHub REST adapter implementing the repository collaborator."""

from __future__ import annotations

import asyncio
import base64
import binascii
import http.client
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..errors import FetchError
from ..logging import get_logger
from ..models import RepoRef

_URL_PATTERNS = (
    re.compile(r"github\.com[/:]([^/]+)/([^/.]+)(\.git)?/?$"),
    re.compile(r"github\.com/([^/]+)/([^/]+)"),
)

_EXCLUDE_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"package\.json$",
        r"package-lock\.json$",
        r"yarn\.lock$",
        r"tsconfig\.json$",
        r"jsconfig\.json$",
        r"\.config\.json$",
        r"\.eslintrc\.json$",
        r"\.prettierrc\.json$",
        r"node_modules",
        r"(^|/)\.git(/|$)",
        r"(^|/)dist(/|$)",
        r"(^|/)build(/|$)",
    )
)

MAX_FILE_BYTES = 5 * 1024 * 1024

logger = get_logger("github.client")


@dataclass
class HttpRequest:
    """A single GET request against the GitHub API."""

    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = 30.0


@dataclass
class HttpResponse:
    status: int
    body: bytes


Transport = Callable[[HttpRequest], HttpResponse]


def _urllib_transport(request: HttpRequest) -> HttpResponse:
    http_request = Request(request.url, headers=request.headers, method="GET")
    try:
        with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
            return HttpResponse(status=response.status, body=response.read())
    except HTTPError as exc:
        body = exc.read() if hasattr(exc, "read") else b""
        return HttpResponse(status=exc.code, body=body or b"")
    except URLError as exc:  # pragma: no cover - depends on network
        raise FetchError(f"Network error contacting GitHub: {exc.reason}") from exc
    except (OSError, http.client.HTTPException) as exc:
        raise FetchError(f"Network error reading GitHub response: {exc}") from exc


class GitHubClient:
    """Lists branches, discovers token files and fetches their contents."""

    API_ROOT = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        *,
        transport: Transport | None = None,
        api_root: str | None = None,
        request_timeout: float = 30.0,
        max_depth: int = 5,
        max_files: int = 100,
    ) -> None:
        self.token = token
        self._transport = transport or _urllib_transport
        self.api_root = (api_root or self.API_ROOT).rstrip("/")
        self.request_timeout = request_timeout
        self.max_depth = max_depth
        self.max_files = max_files

    @staticmethod
    def parse_repo_url(url: str) -> Optional[RepoRef]:
        """Return the owner/repo pair for a GitHub URL, or None when it is not one."""
        text = url.strip()
        for pattern in _URL_PATTERNS:
            match = pattern.search(text)
            if match:
                repo = match.group(2)
                if repo.endswith(".git"):
                    repo = repo[: -len(".git")]
                return RepoRef(owner=match.group(1), repo=repo)
        return None

    async def list_branches(self, ref: RepoRef) -> List[str]:
        payload = await self._get_json(f"/repos/{ref.owner}/{ref.repo}/branches?per_page=100")
        if not isinstance(payload, list):
            raise FetchError("Unexpected branch listing payload from GitHub")
        return [item["name"] for item in payload if isinstance(item, dict) and "name" in item]

    async def latest_digest(self, ref: RepoRef, branch: str) -> str:
        payload = await self._get_json(
            f"/repos/{ref.owner}/{ref.repo}/commits/{quote(branch, safe='')}"
        )
        sha = payload.get("sha") if isinstance(payload, dict) else None
        if not isinstance(sha, str) or not sha:
            raise FetchError(f"No commit digest returned for {ref}@{branch}")
        return sha

    async def discover_token_files(
        self, ref: RepoRef, branch: str, directory: str = ""
    ) -> List[str]:
        """Recursively list candidate ``.json`` token files under ``directory``."""
        found: List[str] = []
        await self._walk(ref, branch, directory.strip("/"), 0, set(), found)
        return found[: self.max_files]

    async def fetch_file(self, ref: RepoRef, branch: str, path: str) -> str:
        payload = await self._get_json(self._contents_path(ref, branch, path))
        if not isinstance(payload, dict) or payload.get("type") != "file":
            raise FetchError(f"Path is not a file: {path}")
        size = payload.get("size")
        if isinstance(size, int) and size > MAX_FILE_BYTES:
            raise FetchError(
                f"File {path} is too large ({size // 1024}KB). Maximum size is {MAX_FILE_BYTES // (1024 * 1024)}MB."
            )
        content = payload.get("content")
        if isinstance(content, str) and content.strip():
            return decode_content(content, payload.get("encoding"))
        download_url = payload.get("download_url")
        if isinstance(download_url, str) and download_url and size:
            # The contents API omits bodies above 1MB; fall back to the raw download.
            response = await self._request(download_url)
            return _decode_bytes(response.body, path)
        raise FetchError(f"File content is empty: {path}")

    # ------------------------------------------------------------------
    # Internal helpers

    async def _walk(
        self,
        ref: RepoRef,
        branch: str,
        directory: str,
        depth: int,
        visited: Set[str],
        found: List[str],
    ) -> None:
        if depth >= self.max_depth or directory in visited or len(found) >= self.max_files:
            return
        visited.add(directory)
        entries = await self._get_json(self._contents_path(ref, branch, directory))
        if isinstance(entries, dict):
            entries = [entries]
        if not isinstance(entries, list):
            raise FetchError(f"Unexpected directory payload for {directory or 'repository root'}")

        for item in entries:
            if not isinstance(item, dict):
                continue
            path = str(item.get("path", ""))
            if not path or _is_excluded(path):
                continue
            if item.get("type") == "file" and path.lower().endswith(".json"):
                found.append(path)
            elif item.get("type") == "dir":
                try:
                    await self._walk(ref, branch, path, depth + 1, visited, found)
                except FetchError as exc:
                    logger.warning("Skipping directory %s: %s", path, exc)
            if len(found) >= self.max_files:
                logger.warning(
                    "Found %d token files, stopping discovery at the limit", len(found)
                )
                return

    def _contents_path(self, ref: RepoRef, branch: str, path: str) -> str:
        quoted = quote(path.strip("/"))
        return f"/repos/{ref.owner}/{ref.repo}/contents/{quoted}?ref={quote(branch, safe='')}"

    async def _get_json(self, path: str) -> Any:
        response = await self._request(f"{self.api_root}{path}")
        try:
            return json.loads(response.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FetchError(f"GitHub returned invalid JSON for {path}") from exc

    async def _request(self, url: str) -> HttpResponse:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        request = HttpRequest(url=url, headers=headers, timeout=self.request_timeout)
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(None, self._transport, request)
        except (OSError, http.client.HTTPException) as exc:
            raise FetchError(f"Network error reading {url}: {exc}") from exc
        if 200 <= response.status < 300:
            return response
        raise _status_error(response)


def decode_content(content: str, encoding: object = "base64") -> str:
    """Decode a contents-API body, which is base64 with embedded newlines."""
    if encoding not in (None, "base64"):
        return content
    cleaned = re.sub(r"\s", "", content)
    try:
        raw = base64.b64decode(cleaned, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise FetchError(f"Failed to decode base64 content: {exc}") from exc
    return _decode_bytes(raw, "content")


def _decode_bytes(raw: bytes, label: str) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FetchError(f"{label} is not valid UTF-8 text") from exc


def _is_excluded(path: str) -> bool:
    return any(pattern.search(path) for pattern in _EXCLUDE_PATTERNS)


def _status_error(response: HttpResponse) -> FetchError:
    detail = ""
    try:
        payload = json.loads(response.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        payload = None
    if isinstance(payload, dict):
        detail = str(payload.get("message") or payload.get("error") or "")
    status = response.status
    if status == 401:
        message = "Authentication failed. Please check your personal access token."
    elif status == 403:
        message = f"Access forbidden: {detail or 'the token may not have the required permissions.'}"
    elif status == 404:
        message = "Not found. Please check the repository URL, branch and path."
    else:
        message = f"GitHub API error ({status}): {detail or 'request failed'}"
    return FetchError(message, status=status)


__all__ = ["GitHubClient", "HttpRequest", "HttpResponse", "MAX_FILE_BYTES", "decode_content"]
