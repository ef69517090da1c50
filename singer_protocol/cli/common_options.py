"""Common CLI options for the Singer protocol tools."""

from __future__ import annotations

import typing as t

import click

CONFIG: t.Callable[..., t.Any] = click.option(
    "--config",
    "config_sources",
    multiple=True,
    help="Configuration file location or 'ENV' to use environment variables.",
    type=click.STRING,
    default=(),
)

FILE_INPUT: t.Callable[..., t.Any] = click.option(
    "--input",
    "file_input",
    help="A path to read messages from instead of from standard in.",
    type=click.File("r", encoding="utf-8"),
)

FAIL_FAST: t.Callable[..., t.Any] = click.option(
    "--fail-fast",
    is_flag=True,
    default=False,
    help="Stop at the first line that cannot be decoded.",
)

LOG_LEVEL: t.Callable[..., t.Any] = click.option(
    "--log-level",
    help="Log level.",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        case_sensitive=False,
    ),
    default=None,
)
