"""Error taxonomy shared across tokenfinder components."""

from __future__ import annotations


class TokenFinderError(RuntimeError):
    """Base class for recoverable tokenfinder failures."""


class InputError(TokenFinderError):
    """Raised for malformed caller input such as an unparsable repository URL."""


class NotFoundError(TokenFinderError):
    """Raised when no token files can be discovered for a source."""


class FetchError(TokenFinderError):
    """Raised when a remote request or content decode fails."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ParseError(TokenFinderError):
    """Raised when a document is not valid JSON or yields no tokens."""


class CacheError(TokenFinderError):
    """Raised by key/value stores when a read or write fails."""


__all__ = [
    "CacheError",
    "FetchError",
    "InputError",
    "NotFoundError",
    "ParseError",
    "TokenFinderError",
]
