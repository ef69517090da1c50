"""Abstract base classes for all Singer messages IO operations."""

from __future__ import annotations

import abc
import logging
import typing as t
from collections import Counter, defaultdict
from dataclasses import dataclass

from singer_protocol.exceptions import InvalidInputLine, IoFailure, MalformedMessage
from singer_protocol.messages import (
    ActivateVersionMessage,
    RecordMessage,
    SchemaMessage,
    parse_message,
)
from singer_protocol.registry import SchemaRegistry

if t.TYPE_CHECKING:
    from singer_protocol.messages import Message

logger = logging.getLogger(__name__)


Callback = t.Callable[["Message"], None]
ErrorHandler = t.Callable[["DecodeResult"], None]


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one non-blank input line.

    Exactly one of ``message`` and ``error`` is set.
    """

    line_number: int
    """1-based position of the line in the input."""

    line: str
    """The line as read."""

    message: Message | None = None
    """The decoded message."""

    error: InvalidInputLine | None = None
    """Why the line could not be decoded."""

    @property
    def ok(self) -> bool:
        """Whether the line decoded to a valid message."""
        return self.error is None

    def unwrap(self) -> Message:
        """Get the message or raise the decoding error.

        Returns:
            The decoded message.

        Raises:
            InvalidInputLine: The error this line produced.
        """
        if self.error is not None:
            raise self.error
        return self.message  # type: ignore[return-value]


def _iter_lines(file_input: t.Iterable[str]) -> t.Iterator[str]:
    """Iterate over lines, turning read failures into :class:`IoFailure`."""
    try:
        for line in file_input:
            yield line
    except (OSError, ValueError) as exc:
        msg = f"Unable to read from input: {exc}"
        raise IoFailure(msg) from exc


class GenericSingerReader(metaclass=abc.ABCMeta):
    """Interface for all readers of Singer messages from text lines.

    A reader owns a :class:`~singer_protocol.registry.SchemaRegistry` that it
    updates as SCHEMA messages arrive and uses to check RECORD and
    ACTIVATE_VERSION messages.
    """

    def __init__(
        self,
        *,
        registry: SchemaRegistry | None = None,
        batch_enabled: bool = True,
        require_key_properties: bool = False,
    ) -> None:
        """Initialize the reader.

        Args:
            registry: Registry to use. A new one is created when omitted.
            batch_enabled: Decode BATCH messages. When disabled they are returned
                as unknown messages.
            require_key_properties: Reject records missing a key property. Only
                used when no registry is given.
        """
        super().__init__()
        self.registry = (
            registry
            if registry is not None
            else SchemaRegistry(require_key_properties=require_key_properties)
        )
        self.batch_enabled = batch_enabled

    @property
    @abc.abstractmethod
    def default_input(self) -> t.IO[str]:
        """Default input stream for the reader."""

    @abc.abstractmethod
    def deserialize_json(self, line: str) -> t.Any:  # noqa: ANN401
        """Deserialize a line of json.

        Implementations must raise
        :class:`~singer_protocol.exceptions.MalformedMessage` on invalid JSON.
        """

    @staticmethod
    def _raw_text(line: str) -> str:
        return line.rstrip("\r\n")

    def decode_message(self, line: str) -> Message:
        """Decode one line and check it against the registry.

        Args:
            line: A single line of json.

        Returns:
            The decoded message.

        Raises:
            MalformedMessage: If the line does not hold a JSON object.
        """
        data = self.deserialize_json(line)
        if not isinstance(data, dict):
            raise MalformedMessage(self._raw_text(line), "not a JSON object")

        message = parse_message(data, batch_enabled=self.batch_enabled)

        if isinstance(message, SchemaMessage):
            self.registry.declare(message)
        elif isinstance(message, RecordMessage):
            self.registry.check_record(message)
        elif isinstance(message, ActivateVersionMessage):
            self.registry.check_activate_version(message)

        return message

    def decode_line(self, line: str, line_number: int = 0) -> DecodeResult | None:
        """Decode one line into a result.

        Args:
            line: A single line of json.
            line_number: Position of the line in its input.

        Returns:
            The decoding result, or None for a blank line.
        """
        if not line.strip():
            return None

        try:
            message = self.decode_message(line)
        except InvalidInputLine as exc:
            return DecodeResult(line_number, line, error=exc)

        return DecodeResult(line_number, line, message=message)

    def read_messages(
        self,
        file_input: t.Iterable[str] | None = None,
    ) -> t.Iterator[DecodeResult]:
        """Lazily decode messages from an input.

        Blank lines are skipped. Lines that cannot be decoded produce a result
        carrying the error and the iteration goes on.

        Args:
            file_input: Readable stream of messages, each on a separate line.
                Defaults to standard in.

        Yields:
            One result per non-blank line.
        """
        lines = file_input if file_input is not None else self.default_input
        for line_number, line in enumerate(_iter_lines(lines), start=1):
            result = self.decode_line(line, line_number)
            if result is not None:
                yield result

        logger.debug("End of pipe reached")

    def process_lines(
        self,
        file_input: t.Iterable[str] | None,
        callbacks: t.Mapping[str, Callback],
        on_error: ErrorHandler | None = None,
    ) -> t.Counter[str]:
        """Dispatch every decoded message to the callback of its type.

        Args:
            file_input: Readable stream of messages, each on a separate line.
            callbacks: Dictionary of message type to callback function.
            on_error: Called with every result that holds an error. When
                omitted, the first error is raised.

        Returns:
            A counter of the processed messages by type.

        Raises:
            InvalidInputLine: If a line cannot be decoded and no ``on_error``
                handler is given.
        """
        stats: dict[str, int] = defaultdict(int)
        for result in self.read_messages(file_input):
            if result.error is not None:
                if on_error is None:
                    raise result.error
                on_error(result)
                continue

            message = result.unwrap()
            message_type = str(message.type)
            if callback := callbacks.get(message_type):
                callback(message)
            else:
                self._process_unhandled_message(message)

            stats[message_type] += 1

        return Counter(stats)

    def _process_unhandled_message(self, message: Message) -> None:  # noqa: PLR6301
        logger.debug("No handler for message of type '%s', skipping", message.type)


class GenericSingerWriter(metaclass=abc.ABCMeta):
    """Interface for all writers of Singer messages as text lines."""

    def format_message(self, message: Message) -> str:
        """Format a message as a JSON string.

        Args:
            message: The message to format.

        Returns:
            The formatted message.
        """
        return self.serialize_message(message)

    @abc.abstractmethod
    def serialize_message(self, message: Message) -> str:
        """Serialize a message into a line of json."""

    @abc.abstractmethod
    def write_message(self, message: Message) -> None:
        """Write a message to the output."""

    def write_messages(self, messages: t.Iterable[Message]) -> int:
        """Write messages in order.

        Args:
            messages: The messages to write.

        Returns:
            The number of messages written.
        """
        count = 0
        for message in messages:
            self.write_message(message)
            count += 1
        return count
