from __future__ import annotations

import logging
import os

import pytest
import time_machine

from singer_protocol import metrics


class CustomObject:
    def __init__(self, name: str, value: int):
        self.name = name
        self.value = value

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


@pytest.fixture(autouse=True)
def _capture_metrics(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger=metrics.METRICS_LOGGER_NAME)


def test_meter():
    pid = os.getpid()

    class _MyMeter(metrics.Meter):
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            pass

    meter = _MyMeter(metrics.Metric.RECORD_COUNT)

    assert meter.tags == {metrics.Tag.PID: pid}
    assert meter.logger.name == metrics.METRICS_LOGGER_NAME


def test_record_counter(caplog: pytest.LogCaptureFixture):
    pid = os.getpid()
    custom_object = CustomObject("test", 1)

    with metrics.record_counter(
        "test_stream",
        custom_tag="pytest",
        custom_obj=custom_object,
    ) as counter:
        for _ in range(100):
            counter.last_log_time = 0
            assert counter._ready_to_log()

            counter.increment()

    total = 0

    assert len(caplog.records) == 100 + 1

    for record in caplog.records:
        assert record.levelname == "INFO"
        assert record.msg.startswith("METRIC")

        assert record.args
        assert isinstance(record.args[0], metrics.Point)

        point = record.args[0].to_dict()
        assert point["type"] == "counter"
        assert point["metric"] == "record_count"
        assert point["tags"] == {
            "stream": "test_stream",
            "pid": pid,
            "custom_tag": "pytest",
            "custom_obj": custom_object,
        }

        total += point["value"]

    assert total == 100


def test_counter_logs_on_interval(caplog: pytest.LogCaptureFixture):
    with metrics.message_counter(log_interval=3600) as counter:
        for _ in range(10):
            counter.increment()

    assert len(caplog.records) == 1
    assert caplog.records[0].args[0].value == 10  # type: ignore[index]


def test_sync_timer(caplog: pytest.LogCaptureFixture):
    pid = os.getpid()
    traveler = time_machine.travel(0, tick=False)
    traveler.start()

    with metrics.sync_timer(custom_tag="pytest"):
        traveler.stop()

        traveler = time_machine.travel(10, tick=False)
        traveler.start()

    traveler.stop()

    record = caplog.records[0]
    assert record.levelname == "INFO"
    assert record.msg.startswith("METRIC")

    assert record.args
    assert isinstance(record.args[0], metrics.Point)

    point = record.args[0].to_dict()
    assert point["type"] == "timer"
    assert point["metric"] == "sync_duration"
    assert point["tags"] == {
        "status": "succeeded",
        "pid": pid,
        "custom_tag": "pytest",
    }

    assert pytest.approx(point["value"], rel=0.001) == 10.0


def test_sync_timer_failed(caplog: pytest.LogCaptureFixture):
    with pytest.raises(RuntimeError), metrics.sync_timer():
        msg = "boom"
        raise RuntimeError(msg)

    point = caplog.records[0].args[0].to_dict()  # type: ignore[index]
    assert point["tags"]["status"] == "failed"


def test_point_str():
    point = metrics.Point(
        metrics.MetricType.COUNTER,
        metrics.Metric.DECODE_ERROR_COUNT,
        3,
        {metrics.Tag.STREAM: "users"},
    )
    assert str(point) == (
        '{"type":"counter","metric":"decode_error_count","value":3,'
        '"tags":{"stream":"users"}}'
    )


def test_metric_line_round_trip(caplog: pytest.LogCaptureFixture):
    caplog.handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    with metrics.record_counter("users") as counter:
        counter.increment(5)

    line = caplog.handler.format(caplog.records[0])
    point = metrics.parse_metric_line(line)

    assert point is not None
    assert point.metric_type == metrics.MetricType.COUNTER
    assert point.metric == "record_count"
    assert point.value == 5
    assert point.tags == {"stream": "users", "pid": os.getpid()}


def test_parse_metric_line_without_metric():
    assert metrics.parse_metric_line("INFO Starting sync") is None


@pytest.mark.parametrize(
    "line",
    [
        pytest.param("METRIC: {not json}", id="invalid-json"),
        pytest.param(
            'METRIC: {"type":"gauge","metric":"x","value":1}',
            id="unknown-type",
        ),
        pytest.param('METRIC: {"type":"timer","value":1}', id="missing-metric"),
    ],
)
def test_parse_metric_line_malformed(line: str):
    with pytest.raises(ValueError):  # noqa: PT011
        metrics.parse_metric_line(line)
