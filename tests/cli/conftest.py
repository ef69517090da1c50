from __future__ import annotations

import logging
import warnings

import click
import pytest

from singer_protocol.cli.command import SingerCommand
from singer_protocol.exceptions import ConfigValidationError


@pytest.fixture
def cli():
    @click.command(cls=SingerCommand)
    def main():
        logging.getLogger("test_cli").info("This is an info message")
        warnings.warn("This is a deprecated function", DeprecationWarning, stacklevel=1)

    return main


@pytest.fixture
def failing_cli():
    @click.command(cls=SingerCommand)
    def main():
        msg = "bad config"
        raise ConfigValidationError(msg, errors=["'x' is not of type 'integer'"])

    return main


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "singer_protocol.configuration.find_dotenv",
        lambda **_: "",
    )
