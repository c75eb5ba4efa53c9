"""Tests for tokenfinder.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from tokenfinder.config import ConfigError, TokenFinderConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, TokenFinderConfig)
    assert config.root == tmp_path.resolve()
    assert config.repository.url is None
    assert config.repository.token_env == "GITHUB_TOKEN"
    assert config.cache.ttl_seconds == 600
    assert config.cache.ttl_ms == 600_000
    assert config.cache_path == tmp_path.resolve() / ".tokenfinder" / "cache.json"
    assert config.pipeline.batch_size == 5
    assert config.pipeline.chunk_size == 100


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".tokenfinder.yml"
    config_file.write_text(
        """
repository:
  url: "https://github.com/acme/design-tokens"
  branch: main
  directory: tokens
  token_env: ACME_TOKEN
cache:
  path: /var/cache/tokenfinder.json
  ttl_seconds: 120
pipeline:
  batch_size: 3
  chunk_size: 50
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.repository.url == "https://github.com/acme/design-tokens"
    assert config.repository.branch == "main"
    assert config.repository.directory == "tokens"
    assert config.repository.token_env == "ACME_TOKEN"
    assert config.cache_path == Path("/var/cache/tokenfinder.json")
    assert config.cache.ttl_ms == 120_000
    assert config.pipeline.batch_size == 3
    assert config.pipeline.chunk_size == 50


def test_access_token_comes_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".tokenfinder.yml").write_text("repository:\n  token_env: ACME_TOKEN\n", encoding="utf-8")
    monkeypatch.setenv("ACME_TOKEN", " ghp_example ")

    config = load_config(tmp_path)

    assert config.repository.access_token() == "ghp_example"
    monkeypatch.delenv("ACME_TOKEN")
    assert config.repository.access_token() is None


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".tokenfinder.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).pipeline.batch_size == 5


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".tokenfinder.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".tokenfinder.yml").write_text("repository: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_non_positive_sizes_are_rejected(tmp_path: Path) -> None:
    (tmp_path / ".tokenfinder.yml").write_text("pipeline:\n  batch_size: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="pipeline.batch_size"):
        load_config(tmp_path)
