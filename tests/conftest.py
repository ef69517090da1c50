"""Top level test fixtures."""

from __future__ import annotations

import logging

import pytest

from singer_protocol._logging import LOG_CONFIG_ENV_VAR
from singer_protocol.metrics import METRICS_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_envvars(monkeypatch: pytest.MonkeyPatch):
    """Remove envvars that might interfere with tests."""
    monkeypatch.delenv(LOG_CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv("SINGER_PROTOCOL_LOG_LEVEL", raising=False)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo handlers and levels installed by the code under test."""
    root = logging.getLogger()
    metrics_logger = logging.getLogger(METRICS_LOGGER_NAME)
    handlers = root.handlers[:]
    root_level = root.level
    metrics_level = metrics_logger.level

    yield

    root.handlers[:] = handlers
    root.setLevel(root_level)
    metrics_logger.setLevel(metrics_level)
    logging.captureWarnings(False)  # noqa: FBT003


@pytest.fixture
def singer_lines() -> str:
    return (
        '{"type":"SCHEMA","stream":"users","schema":{"type":"object","properties":'
        '{"id":{"type":"integer"},"name":{"type":"string"}}},"key_properties":["id"]}\n'
        '{"type": "RECORD", "stream": "users", "record": {"id": 1, "name": "a"}}\n'
        "\n"
        '{"type":"STATE","value":{"bookmarks":{"users":{"id":1}}}}\n'
    )
