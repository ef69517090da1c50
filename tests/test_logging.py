"""Tests for log formatters and logging setup."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from singer_protocol import metrics
from singer_protocol._logging import LOG_CONFIG_ENV_VAR, _StderrHandler, setup_logging
from singer_protocol.logging import ConsoleFormatter, StructuredFormatter


def _log_to_stream(
    name: str,
    formatter: logging.Formatter,
) -> tuple[logging.Logger, StringIO, logging.Handler]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    log_stream = StringIO()
    handler = logging.StreamHandler(log_stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger, log_stream, handler


class TestStructuredFormatter:
    """Test the StructuredFormatter class."""

    def test_includes_extra_fields(self):
        logger, log_stream, handler = _log_to_stream(
            "test_logger",
            StructuredFormatter(),
        )

        logger.info(
            "Test message with extras",
            extra={
                "app_name": "tap-test",
                "stream_name": "users",
                "line_number": 42,
            },
        )
        logger.removeHandler(handler)

        log_data = json.loads(log_stream.getvalue().strip())
        assert log_data["app_name"] == "tap-test"
        assert log_data["stream_name"] == "users"
        assert log_data["level"] == "info"
        assert log_data["logger_name"] == "test_logger"
        assert log_data["message"] == "Test message with extras"
        assert log_data["extra"] == {"line_number": 42}

    def test_defaults(self):
        logger, log_stream, handler = _log_to_stream(
            "test_logger_defaults",
            StructuredFormatter(defaults={"version": "1.0.0"}),
        )

        logger.info("Line %d: %s", 3, "bad")
        logger.removeHandler(handler)

        log_data = json.loads(log_stream.getvalue().strip())
        assert log_data["app_name"] == "singer-protocol"
        assert log_data["stream_name"] is None
        assert log_data["message"] == "Line 3: bad"
        assert log_data["extra"] == {"version": "1.0.0"}

    def test_metric_point(self):
        logger, log_stream, handler = _log_to_stream(
            "test_logger_metrics",
            StructuredFormatter(),
        )

        point = metrics.Point(
            metric_type=metrics.MetricType.COUNTER,
            metric=metrics.Metric.MESSAGE_COUNT,
            value=150,
            tags={metrics.Tag.STREAM: "users"},
        )
        metrics.log(logger, point)
        logger.removeHandler(handler)

        log_data = json.loads(log_stream.getvalue().strip())
        assert log_data["message"] == "METRIC"
        assert log_data["metric_info"] == {
            "type": "counter",
            "metric": "message_count",
            "value": 150,
            "tags": {"stream": "users"},
        }

    def test_exception_chain(self):
        logger, log_stream, handler = _log_to_stream(
            "test_logger_exceptions",
            StructuredFormatter(),
        )

        try:
            try:
                msg = "inner"
                raise KeyError(msg)
            except KeyError as exc:
                msg = "outer"
                raise ValueError(msg) from exc
        except ValueError:
            logger.exception("Something failed")
        logger.removeHandler(handler)

        log_data = json.loads(log_stream.getvalue().strip())
        exception = log_data["exception"]
        assert exception["type"] == "ValueError"
        assert exception["message"] == "outer"
        assert exception["traceback"]
        assert exception["cause"]["type"] == "KeyError"


def test_console_formatter():
    logger, log_stream, handler = _log_to_stream(
        "test_console",
        ConsoleFormatter(),
    )

    logger.warning("Watch out")
    logger.removeHandler(handler)

    parts = [part.strip() for part in log_stream.getvalue().split("|")]
    assert parts[1:] == ["WARNING", "test_console", "Watch out"]


def test_setup_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(LOG_CONFIG_ENV_VAR, raising=False)

    setup_logging(log_level="warning", log_format="json", metrics_log_level="ERROR")
    setup_logging(log_level="warning", log_format="json", metrics_log_level="ERROR")

    root = logging.getLogger()
    installed = [h for h in root.handlers if isinstance(h, _StderrHandler)]
    assert len(installed) == 1
    assert isinstance(installed[0].formatter, StructuredFormatter)
    assert root.level == logging.WARNING
    assert logging.getLogger(metrics.METRICS_LOGGER_NAME).level == logging.ERROR


def test_setup_logging_yaml_config(tmp_path, monkeypatch: pytest.MonkeyPatch):
    config = tmp_path / "logging.yaml"
    config.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  singer_protocol.yaml_test:\n"
        "    level: ERROR\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(LOG_CONFIG_ENV_VAR, str(config))
    yaml_logger = logging.getLogger("singer_protocol.yaml_test")

    setup_logging()

    assert yaml_logger.level == logging.ERROR
    assert isinstance(logging.getLogger().handlers[-1].formatter, ConsoleFormatter)
