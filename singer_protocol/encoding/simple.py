"""Singer reader and writer for text streams."""

from __future__ import annotations

import sys
import typing as t
from pathlib import Path

from singer_protocol.exceptions import IoFailure, MalformedMessage
from singer_protocol.json import deserialize_json, serialize_json

from .base import DecodeResult, GenericSingerReader, GenericSingerWriter

if t.TYPE_CHECKING:
    import os

    from singer_protocol.messages import Message


class SingerReader(GenericSingerReader):
    """Reader of Singer messages from text lines, by default standard in."""

    @property
    def default_input(self) -> t.IO[str]:  # noqa: PLR6301
        """Standard in."""
        return sys.stdin

    def deserialize_json(self, line: str) -> t.Any:  # noqa: ANN401
        """Deserialize a line of json.

        Args:
            line: A single line of json.

        Returns:
            The deserialized value.

        Raises:
            MalformedMessage: If the line is not valid JSON.
        """
        try:
            return deserialize_json(line)
        except RecursionError as exc:
            raise MalformedMessage(self._raw_text(line), "nesting too deep") from exc
        except ValueError as exc:
            # JSONDecodeError, NaN or Infinity, or an integer over the
            # interpreter's digit limit.
            raise MalformedMessage(self._raw_text(line), str(exc)) from exc

    def read_path(self, path: str | os.PathLike[str]) -> t.Iterator[DecodeResult]:
        """Lazily decode messages from a file.

        The file is opened on the first iteration and closed when the iteration
        finishes or the generator is closed.

        Args:
            path: Path of a UTF-8 encoded file of messages.

        Yields:
            One result per non-blank line.

        Raises:
            IoFailure: If the file cannot be opened.
        """
        try:
            file_input = Path(path).open(encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            msg = f"Unable to open '{path}': {exc}"
            raise IoFailure(msg) from exc

        with file_input:
            yield from self.read_messages(file_input)


class SingerWriter(GenericSingerWriter):
    """Writer of Singer messages as text lines, by default to standard out."""

    def __init__(self, output: t.TextIO | None = None) -> None:
        """Initialize the writer.

        Args:
            output: Destination of the messages. Defaults to standard out.
        """
        super().__init__()
        self._output = output

    @property
    def output(self) -> t.TextIO:
        """The destination of the messages."""
        return self._output if self._output is not None else sys.stdout

    def serialize_message(self, message: Message) -> str:  # noqa: PLR6301
        """Serialize a message into a line of json.

        Args:
            message: A Singer message object.

        Returns:
            A string of serialized json, without the line terminator.
        """
        return serialize_json(message.to_dict())

    def write_message(self, message: Message) -> None:
        """Write a message as a single line and flush the output.

        Args:
            message: The message to write.

        Raises:
            IoFailure: If the output cannot be written to.
        """
        line = self.format_message(message) + "\n"
        output = self.output
        try:
            output.write(line)
            output.flush()
        except (OSError, ValueError) as exc:
            msg = f"Unable to write message: {exc}"
            raise IoFailure(msg) from exc
