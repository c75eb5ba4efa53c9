"""Tests for tokenfinder logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from tokenfinder.logging import configure_logging, get_logger, resolve_level


def test_resolve_level_prefers_verbose() -> None:
    assert resolve_level() == logging.INFO
    assert resolve_level(quiet=True) == logging.WARNING
    assert resolve_level(verbose=True, quiet=True) == logging.DEBUG


def test_quiet_logging_drops_progress_messages(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "tokenfinder.log"
    logger = configure_logging(quiet=True, log_file=log_file)

    get_logger("pipeline.fetch").info("Found 3 token files")
    get_logger("stores.token_cache").warning("Cache write failed for tokens:a/b@main:/")
    for handler in logger.handlers:
        handler.flush()

    contents = log_file.read_text(encoding="utf-8")
    assert "Found 3 token files" not in contents
    assert "WARNING tokenfinder.stores.token_cache: Cache write failed" in contents
    assert logger.propagate is False


def test_verbose_console_names_the_component() -> None:
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    formatter = logger.handlers[0].formatter
    assert formatter is not None
    record = logging.LogRecord("tokenfinder.github.client", logging.DEBUG, __file__, 1, "GET %s", ("/branches",), None)
    assert formatter.format(record) == "[tokenfinder] DEBUG tokenfinder.github.client: GET /branches"
