"""Singer metrics logging.

Metrics are structured log lines of the form ``METRIC: <json>``, where the JSON
object carries the metric ``type`` (``counter`` or ``timer``), its name, its
value and a mapping of tags.
"""

from __future__ import annotations

import enum
import json
import logging
import os
import re
import typing as t
from dataclasses import dataclass, field
from time import time

if t.TYPE_CHECKING:
    import sys
    from types import TracebackType

    if sys.version_info >= (3, 11):
        from typing import Self  # noqa: ICN003
    else:
        from typing_extensions import Self

DEFAULT_LOG_INTERVAL = 60.0
METRICS_LOGGER_NAME = __name__
METRIC_PREFIX = "METRIC: "

_METRIC_LINE_RE = re.compile(re.escape(METRIC_PREFIX) + r"(?P<payload>\{.*\})\s*$")

_TVal = t.TypeVar("_TVal")


class MetricType(str, enum.Enum):
    """Kinds of metric points."""

    COUNTER = "counter"
    TIMER = "timer"


class Status(str, enum.Enum):
    """Outcome of a timed operation."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Tag(str, enum.Enum):
    """Well-known tag names."""

    STREAM = "stream"
    MESSAGE_TYPE = "message_type"
    STATUS = "status"
    PID = "pid"


class Metric(str, enum.Enum):
    """Metric names emitted by the Singer protocol tools."""

    RECORD_COUNT = "record_count"
    BATCH_COUNT = "batch_count"
    MESSAGE_COUNT = "message_count"
    DECODE_ERROR_COUNT = "decode_error_count"
    SYNC_DURATION = "sync_duration"


def _plain(value: t.Any) -> t.Any:  # noqa: ANN401
    return value.value if isinstance(value, enum.Enum) else value


@dataclass
class Point(t.Generic[_TVal]):
    """One measurement, as carried by a metric log line."""

    metric_type: MetricType | str
    metric: Metric | str
    value: _TVal
    tags: dict[str, t.Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, t.Any]:
        """Get the JSON object of the measurement.

        Enum names and tag keys are flattened to their string values.

        Returns:
            The metric object.
        """
        return {
            "type": _plain(self.metric_type),
            "metric": _plain(self.metric),
            "value": self.value,
            "tags": {_plain(key): _plain(value) for key, value in self.tags.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, t.Any]) -> Point:
        """Read a measurement from its JSON object.

        Args:
            data: A metric object, as found in a metric log line.

        Returns:
            The metric point.

        Raises:
            ValueError: If the metric type is unknown or a field is missing.
        """
        missing = [key for key in ("type", "metric", "value") if key not in data]
        if missing:
            msg = f"Metric is missing required fields: {', '.join(missing)}"
            raise ValueError(msg)

        return cls(
            metric_type=MetricType(data["type"]),
            metric=data["metric"],
            value=data["value"],
            tags=data.get("tags") or {},
        )

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), default=str, separators=(",", ":"))


def parse_metric_line(line: str) -> Point | None:
    """Extract a metric point from a log line.

    Args:
        line: A log line, e.g. ``INFO METRIC: {"type": "counter", ...}``.

    Returns:
        The metric point, or None if the line holds no metric.

    Raises:
        ValueError: If the line holds a malformed metric.
    """
    match = _METRIC_LINE_RE.search(line)
    if match is None:
        return None

    try:
        data = json.loads(match.group("payload"))
    except json.JSONDecodeError as exc:
        msg = f"Malformed metric: {exc}"
        raise ValueError(msg) from exc

    return Point.from_dict(data)


def log(logger: logging.Logger, point: Point) -> None:
    """Emit a measurement as a metric log line.

    Args:
        logger: Logger to emit the line on.
        point: The measurement.
    """
    logger.info(METRIC_PREFIX + "%s", point)


class Meter:
    """Context manager that emits a measurement when it exits.

    Every meter is tagged with the current process id.
    """

    metric_type: t.ClassVar[MetricType]

    def __init__(self, metric: Metric, tags: dict | None = None) -> None:
        self.metric = metric
        self.tags = tags or {}
        self.tags[Tag.PID] = os.getpid()
        self.logger = get_metrics_logger()

    def _emit(self, value: t.Any) -> None:  # noqa: ANN401
        log(self.logger, Point(self.metric_type, self.metric, value, dict(self.tags)))

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._finish(failed=exc_type is not None)

    def _finish(self, *, failed: bool) -> None:
        raise NotImplementedError


class Counter(Meter):
    """Counts occurrences and reports the count at most once per interval.

    The count is reset whenever it is reported, so the values of all points
    emitted by a counter add up to the total.
    """

    metric_type = MetricType.COUNTER

    def __init__(
        self,
        metric: Metric,
        tags: dict | None = None,
        log_interval: float = DEFAULT_LOG_INTERVAL,
    ) -> None:
        """Initialize a counter.

        Args:
            metric: The metric name.
            tags: Tags of the measurement.
            log_interval: Seconds between two reports.
        """
        super().__init__(metric, tags)
        self.value = 0
        self.log_interval = log_interval
        self.last_log_time = time()

    def __enter__(self) -> Self:
        self.last_log_time = time()
        return self

    def _finish(self, *, failed: bool) -> None:  # noqa: ARG002
        self._pop()

    def _pop(self) -> None:
        self._emit(self.value)
        self.value = 0
        self.last_log_time = time()

    def increment(self, value: int = 1) -> None:
        """Add to the count, reporting it if the interval has elapsed.

        Args:
            value: Amount to add.
        """
        self.value += value
        if self._ready_to_log():
            self._pop()

    def _ready_to_log(self) -> bool:
        return time() - self.last_log_time > self.log_interval


class Timer(Meter):
    """Measures the duration of its ``with`` block.

    The point is tagged with the block's status unless a status tag was given.
    """

    metric_type = MetricType.TIMER

    def __init__(self, metric: Metric, tags: dict | None = None) -> None:
        super().__init__(metric, tags)
        self.start_time = time()

    def __enter__(self) -> Self:
        self.start_time = time()
        return self

    def _finish(self, *, failed: bool) -> None:
        self.tags.setdefault(Tag.STATUS, Status.FAILED if failed else Status.SUCCEEDED)
        self._emit(self.elapsed())

    def elapsed(self) -> float:
        """Seconds since the timer was entered."""
        return time() - self.start_time


def get_metrics_logger() -> logging.Logger:
    """Get the logger that metric lines are emitted on.

    Returns:
        The metrics logger.
    """
    return logging.getLogger(METRICS_LOGGER_NAME)


def message_counter(
    log_interval: float = DEFAULT_LOG_INTERVAL,
    **tags: t.Any,
) -> Counter:
    """Count decoded messages.

    with message_counter() as counter:
        for result in reader.read_messages():
            counter.increment()

    Args:
        log_interval: Seconds between two reports.
        tags: Extra tags.

    Returns:
        A message counter.
    """
    return Counter(Metric.MESSAGE_COUNT, tags, log_interval=log_interval)


def record_counter(
    stream: str,
    log_interval: float = DEFAULT_LOG_INTERVAL,
    **tags: t.Any,
) -> Counter:
    """Count the records of one stream.

    Args:
        stream: The stream name.
        log_interval: Seconds between two reports.
        tags: Extra tags.

    Returns:
        A record counter tagged with the stream.
    """
    tags[Tag.STREAM] = stream
    return Counter(Metric.RECORD_COUNT, tags, log_interval=log_interval)


def decode_error_counter(**tags: t.Any) -> Counter:
    """Count lines that failed to decode; reported once, on exit.

    Args:
        tags: Extra tags.

    Returns:
        An error counter.
    """
    return Counter(Metric.DECODE_ERROR_COUNT, tags, log_interval=float("inf"))


def sync_timer(**tags: t.Any) -> Timer:
    """Time a whole pass over a message stream.

    Args:
        tags: Extra tags.

    Returns:
        A timer.
    """
    return Timer(Metric.SYNC_DURATION, tags)
