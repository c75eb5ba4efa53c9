"""Configuration loading for tokenfinder (.tokenfinder.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".tokenfinder.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RepositoryConfig:
    """Default token source settings."""

    url: Optional[str] = None
    branch: Optional[str] = None
    directory: Optional[str] = None
    token_env: str = "GITHUB_TOKEN"

    def access_token(self) -> Optional[str]:
        """Return the access token from the configured environment variable."""
        value = os.environ.get(self.token_env, "").strip()
        return value or None


@dataclass
class CacheConfig:
    """Token cache location and lifetime."""

    path: Path = Path(".tokenfinder/cache.json")
    ttl_seconds: int = 600

    @property
    def ttl_ms(self) -> int:
        return self.ttl_seconds * 1000


@dataclass
class PipelineConfig:
    """Fetch concurrency and streaming chunk sizes."""

    batch_size: int = 5
    chunk_size: int = 100


@dataclass
class TokenFinderConfig:
    """Represents the high-level settings defined in .tokenfinder.yml."""

    root: Path
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @property
    def cache_path(self) -> Path:
        path = self.cache.path.expanduser()
        return path if path.is_absolute() else self.root / path


def load_config(config_path: Path) -> TokenFinderConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TokenFinderConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    repository = RepositoryConfig()
    repo_data = _as_dict(data.get("repository"))
    if repo_data:
        repository.url = _as_str(repo_data.get("url"))
        repository.branch = _as_str(repo_data.get("branch"))
        repository.directory = _as_str(repo_data.get("directory"))
        repository.token_env = _as_str(repo_data.get("token_env")) or repository.token_env

    cache = CacheConfig()
    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        cache_path = _as_str(cache_data.get("path"))
        if cache_path:
            cache.path = Path(cache_path)
        cache.ttl_seconds = _as_positive_int(
            cache_data.get("ttl_seconds"), "cache.ttl_seconds", cache.ttl_seconds
        )

    pipeline = PipelineConfig()
    pipeline_data = _as_dict(data.get("pipeline"))
    if pipeline_data:
        pipeline.batch_size = _as_positive_int(
            pipeline_data.get("batch_size"), "pipeline.batch_size", pipeline.batch_size
        )
        pipeline.chunk_size = _as_positive_int(
            pipeline_data.get("chunk_size"), "pipeline.chunk_size", pipeline.chunk_size
        )

    return TokenFinderConfig(root=root, repository=repository, cache=cache, pipeline=pipeline)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_positive_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    parsed = _as_int(value)
    if parsed is None or parsed < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return parsed


__all__ = [
    "CONFIG_FILENAME",
    "CacheConfig",
    "ConfigError",
    "PipelineConfig",
    "RepositoryConfig",
    "TokenFinderConfig",
    "load_config",
]
