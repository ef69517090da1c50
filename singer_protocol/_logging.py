from __future__ import annotations

import logging
import logging.config
import os
import sys
import typing as t
from pathlib import Path

import yaml

import singer_protocol.logging
from singer_protocol.metrics import METRICS_LOGGER_NAME

logger = logging.getLogger(__name__)

LOG_CONFIG_ENV_VAR = "SINGER_PROTOCOL_LOG_CONFIG"


class _StderrHandler(logging.StreamHandler):
    """Handler installed by :func:`setup_logging`."""


def _load_yaml_logging_config(path: Path) -> t.Any:  # noqa: ANN401
    """Load the logging config from the YAML file.

    Args:
        path: A path to the YAML file.

    Returns:
        The logging config.
    """
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f)


def setup_logging(
    *,
    log_level: str | int | None = None,
    log_format: str = "console",
    metrics_log_level: str | int | None = None,
) -> None:
    """Send log records to standard error.

    Standard out is reserved for Singer messages, so every handler writes to
    standard error. A YAML ``dictConfig`` file named by the
    ``SINGER_PROTOCOL_LOG_CONFIG`` environment variable is applied last.

    Args:
        log_level: The root log level.
        log_format: ``console`` for human readable lines or ``json`` for one JSON
            object per record.
        metrics_log_level: Log level of the metrics logger.
    """
    level = log_level or logging.INFO
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = singer_protocol.logging.StructuredFormatter()
    else:
        formatter = singer_protocol.logging.ConsoleFormatter()

    for existing in root.handlers[:]:
        if isinstance(existing, _StderrHandler):
            root.removeHandler(existing)
    handler = _StderrHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if metrics_log_level is not None:
        if isinstance(metrics_log_level, str):
            metrics_log_level = metrics_log_level.upper()
        logging.getLogger(METRICS_LOGGER_NAME).setLevel(metrics_log_level)

    if LOG_CONFIG_ENV_VAR in os.environ:  # pragma: no cover
        log_config_path = Path(os.environ[LOG_CONFIG_ENV_VAR])
        try:
            logging.config.dictConfig(_load_yaml_logging_config(log_config_path))
        except FileNotFoundError:
            logger.warning("Logging config file not found: %s", log_config_path)
