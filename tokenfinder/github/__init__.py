"""GitHub implementation of the repository collaborator."""

from .client import GitHubClient, HttpRequest, HttpResponse, decode_content

__all__ = ["GitHubClient", "HttpRequest", "HttpResponse", "decode_content"]
