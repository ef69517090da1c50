"""Command line tools for checking and normalizing Singer message streams."""

from __future__ import annotations

import contextlib
import logging
import sys
import typing as t

import click

from singer_protocol import metrics
from singer_protocol._logging import setup_logging
from singer_protocol.cli import common_options
from singer_protocol.cli.command import SingerCommand
from singer_protocol.configuration import CodecConfig, load_config
from singer_protocol.encoding import SingerReader, SingerWriter
from singer_protocol.exceptions import (
    InvalidInputLine,
    InvalidJSONSchema,
    InvalidRecord,
)
from singer_protocol.messages import RecordMessage
from singer_protocol.validation import RecordValidator

if t.TYPE_CHECKING:
    from singer_protocol.encoding import DecodeResult

__all__ = ["SingerCommand", "cli"]

logger = logging.getLogger("singer_protocol.cli")


def _load_settings(config_sources: t.Sequence[str], **overrides: t.Any) -> CodecConfig:
    """Load settings and configure logging.

    Args:
        config_sources: Configuration file paths, or ``ENV``.
        overrides: Settings given on the command line. None values are ignored.

    Returns:
        The settings of the run.
    """
    config = load_config(config_sources).merge(**overrides)
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        metrics_log_level=config.metrics_log_level,
    )
    logger.debug("Settings: %s", config.to_dict())
    return config


def _reader(config: CodecConfig) -> SingerReader:
    return SingerReader(
        batch_enabled=config.batch_enabled,
        require_key_properties=config.require_key_properties,
    )


def _log_error(
    result: DecodeResult,
    error: Exception,
) -> None:
    logger.error("Line %d: %s", result.line_number, error)


@click.group()
def cli() -> None:
    """Tools for Singer tap and target message streams."""


@cli.command(cls=SingerCommand)
@common_options.FILE_INPUT
@common_options.CONFIG
@common_options.FAIL_FAST
@click.option(
    "--validate-records",
    is_flag=True,
    default=False,
    help="Validate record bodies against their stream's JSON Schema.",
)
@click.option(
    "--require-key-properties",
    is_flag=True,
    default=False,
    help="Reject records that lack a key property of their stream.",
)
@click.option(
    "--no-batch",
    is_flag=True,
    default=False,
    help="Treat BATCH messages as unknown messages.",
)
@common_options.LOG_LEVEL
def validate(  # noqa: PLR0913
    *,
    file_input: t.TextIO | None,
    config_sources: tuple[str, ...],
    fail_fast: bool,
    validate_records: bool,
    require_key_properties: bool,
    no_batch: bool,
    log_level: str | None,
) -> None:
    """Check that a message stream is well formed."""
    config = _load_settings(
        config_sources,
        fail_fast=fail_fast or None,
        validate_records=validate_records or None,
        require_key_properties=require_key_properties or None,
        batch_enabled=False if no_batch else None,
        log_level=log_level,
    )
    reader = _reader(config)
    validator = (
        RecordValidator(reader.registry, validate_formats=config.validate_formats)
        if config.validate_records
        else None
    )

    message_count = 0
    error_count = 0
    with contextlib.ExitStack() as stack:
        stack.enter_context(metrics.sync_timer())
        message_counter = stack.enter_context(metrics.message_counter())
        error_counter = stack.enter_context(metrics.decode_error_counter())
        record_counters: dict[str, metrics.Counter] = {}

        for result in reader.read_messages(file_input):
            error: Exception | None = result.error
            message = result.message
            if (
                error is None
                and validator is not None
                and isinstance(message, RecordMessage)
            ):
                try:
                    validator.validate(message)
                except (InvalidRecord, InvalidJSONSchema, InvalidInputLine) as exc:
                    error = exc

            if error is not None:
                error_count += 1
                error_counter.increment()
                _log_error(result, error)
                if config.fail_fast:
                    break
                continue

            message_count += 1
            message_counter.increment()
            if isinstance(message, RecordMessage):
                counter = record_counters.get(message.stream)
                if counter is None:
                    counter = stack.enter_context(metrics.record_counter(message.stream))
                    record_counters[message.stream] = counter
                counter.increment()

    logger.info(
        "Read %d valid messages from %d streams, found %d errors",
        message_count,
        len(reader.registry),
        error_count,
    )
    if error_count:
        sys.exit(1)


@cli.command(cls=SingerCommand)
@common_options.FILE_INPUT
@common_options.CONFIG
@common_options.FAIL_FAST
@common_options.LOG_LEVEL
def canonicalize(
    *,
    file_input: t.TextIO | None,
    config_sources: tuple[str, ...],
    fail_fast: bool,
    log_level: str | None,
) -> None:
    """Re-emit a message stream as canonical lines on standard out."""
    config = _load_settings(
        config_sources,
        fail_fast=fail_fast or None,
        log_level=log_level,
    )
    reader = _reader(config)
    writer = SingerWriter()

    with metrics.message_counter() as counter:
        for result in reader.read_messages(file_input):
            if result.error is not None:
                _log_error(result, result.error)
                if config.fail_fast:
                    sys.exit(1)
                continue

            writer.write_message(result.unwrap())
            counter.increment()
