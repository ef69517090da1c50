"""Log formatters for Singer protocol tools.

Two formatters are provided: :class:`ConsoleFormatter` writes aligned, human
readable lines and :class:`StructuredFormatter` writes one JSON object per
record, suitable for log shippers.
"""

from __future__ import annotations

import json
import linecache
import logging
import sys
import typing as t

from singer_protocol.metrics import METRIC_PREFIX, Point

if sys.version_info >= (3, 11):
    from typing import Required  # noqa: ICN003
else:
    from typing_extensions import Required

if t.TYPE_CHECKING:
    from types import TracebackType

DEFAULT_FORMAT = "{asctime:23s} | {levelname:8s} | {name:30s} | {message}"
DEFAULT_APP_NAME = "singer-protocol"

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__,
) | {"message", "asctime", "taskName"}


class _Frame(t.TypedDict):
    filename: str
    function: str
    lineno: int
    line: str


class _ExceptionInfo(t.TypedDict, total=False):
    type: Required[str]
    module: Required[str]
    message: Required[str]
    traceback: list[_Frame]
    cause: _ExceptionInfo
    context: _ExceptionInfo


def _walk_traceback(tb: TracebackType | None) -> t.Iterator[_Frame]:
    while tb is not None:
        code = tb.tb_frame.f_code
        yield {
            "filename": code.co_filename,
            "function": code.co_name,
            "lineno": tb.tb_lineno,
            "line": linecache.getline(code.co_filename, tb.tb_lineno).strip(),
        }
        tb = tb.tb_next


def describe_exception(exc: BaseException) -> _ExceptionInfo:
    """Turn an exception and its chain into a JSON friendly mapping.

    An explicit cause (``raise ... from ...``) is followed in preference to the
    implicit context.

    Args:
        exc: The exception.

    Returns:
        Type, module, message and frames of the exception.
    """
    info: _ExceptionInfo = {
        "type": type(exc).__name__,
        "module": type(exc).__module__,
        "message": str(exc),
    }
    if exc.__traceback__ is not None:
        info["traceback"] = list(_walk_traceback(exc.__traceback__))

    if exc.__cause__ is not None:
        info["cause"] = describe_exception(exc.__cause__)
    elif exc.__context__ is not None and not exc.__suppress_context__:
        info["context"] = describe_exception(exc.__context__)

    return info


def _metric_point(record: logging.LogRecord) -> Point | None:
    if (
        isinstance(record.msg, str)
        and record.msg.startswith(METRIC_PREFIX)
        and isinstance(record.args, tuple)
        and record.args
        and isinstance(record.args[0], Point)
    ):
        return record.args[0]
    return None


class ConsoleFormatter(logging.Formatter):
    """Formats records as ``time | level | logger | message`` lines."""

    def __init__(self, **kwargs: t.Any) -> None:
        kwargs.setdefault("fmt", DEFAULT_FORMAT)
        kwargs.setdefault("style", "{")
        super().__init__(**kwargs)


class StructuredFormatter(logging.Formatter):
    """Formats each record as a single line JSON object.

    Besides the usual level, logger and timestamp fields, the object carries
    ``app_name`` and ``stream_name`` (taken from ``extra`` when given), the
    exception chain under ``exception``, metric points under ``metric_info`` and
    every remaining ``extra`` value under ``extra``.
    """

    def __init__(
        self,
        *,
        defaults: dict[str, t.Any] | None = None,
        **kwargs: t.Any,
    ) -> None:
        """Create a structured formatter.

        Args:
            defaults: Fields merged into ``extra`` of every record.
            **kwargs: Passed on to :class:`logging.Formatter`.
        """
        super().__init__(**kwargs)
        self._defaults = defaults or {}

    def _extra(self, record: logging.LogRecord) -> dict[str, t.Any]:
        extra = dict(self._defaults)
        extra.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        )
        return extra

    def format(self, record: logging.LogRecord) -> str:
        """Render the record as JSON.

        Args:
            record: The log record.

        Returns:
            A JSON object, without a trailing newline.
        """
        extra = self._extra(record)
        payload: dict[str, t.Any] = {
            "level": record.levelname.lower(),
            "pid": record.process,
            "logger_name": record.name,
            "ts": record.created,
            "thread_name": record.threadName,
            "app_name": extra.pop("app_name", DEFAULT_APP_NAME),
            "stream_name": extra.pop("stream_name", None),
        }

        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = describe_exception(record.exc_info[1])

        point = _metric_point(record)
        if point is not None:
            payload["message"] = "METRIC"
            payload["metric_info"] = point.to_dict()
        else:
            try:
                payload["message"] = record.getMessage()
            except (TypeError, ValueError):
                # Arguments that don't match the format string.
                payload["message"] = str(record.msg)

        payload["extra"] = extra
        return json.dumps(payload, default=str, separators=(",", ":"))
