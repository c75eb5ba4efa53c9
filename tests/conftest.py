from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_tokenfinder_logger() -> None:
    """Let caplog see tokenfinder records even after the CLI configured logging."""
    logger = logging.getLogger("tokenfinder")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
