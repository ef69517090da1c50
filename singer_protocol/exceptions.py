"""Defines the errors raised and returned by the Singer protocol library."""

from __future__ import annotations

import typing as t


class SingerProtocolError(Exception):
    """Base class for all errors raised by this library."""


class InvalidInputLine(SingerProtocolError):
    """A single input line could not be turned into a valid message.

    Errors of this kind are recoverable: the reader reports them per line and
    decoding can continue with the next one.
    """


class MalformedMessage(InvalidInputLine):
    """The line is not a JSON object."""

    def __init__(self, raw_line: str, diagnostic: str) -> None:
        """Initialize a MalformedMessage.

        Args:
            raw_line: The offending line, as read.
            diagnostic: The parser's description of the problem.
        """
        super().__init__(
            f"Unable to parse line as a JSON object ({diagnostic}): {raw_line}",
        )
        self.raw_line = raw_line
        self.diagnostic = diagnostic


class MissingField(InvalidInputLine):
    """A message lacks a field required by its type."""

    def __init__(self, field: str, message_type: str | None) -> None:
        """Initialize a MissingField error.

        Args:
            field: Name of the missing field.
            message_type: The declared message type, if any.
        """
        if message_type:
            msg = f"{message_type} message is missing required field '{field}'"
        else:
            msg = f"Message is missing required field '{field}'"
        super().__init__(msg)
        self.field = field
        self.message_type = message_type


class InvalidMessage(InvalidInputLine, ValueError):
    """A message field holds a value its type does not allow."""


class UnknownStream(InvalidInputLine):
    """A message references a stream that has no SCHEMA yet."""

    def __init__(self, stream: str, message_type: str) -> None:
        """Initialize an UnknownStream error.

        Args:
            stream: The undeclared stream name.
            message_type: Type of the offending message.
        """
        super().__init__(
            f"{message_type} message for stream '{stream}' received before any "
            "SCHEMA message for that stream",
        )
        self.stream = stream
        self.message_type = message_type


class MissingKeyProperties(InvalidInputLine):
    """A record lacks one or more of its stream's key properties."""

    def __init__(self, stream: str, missing: t.Sequence[str]) -> None:
        """Initialize a MissingKeyProperties error.

        Args:
            stream: The stream name.
            missing: Key properties absent from the record.
        """
        super().__init__(
            f"Record for stream '{stream}' is missing key properties: "
            f"{', '.join(missing)}",
        )
        self.stream = stream
        self.missing = list(missing)


class IoFailure(SingerProtocolError):
    """Reading from the source or writing to the destination failed."""


class InvalidJSONSchema(SingerProtocolError):
    """A declared schema is not a valid JSON Schema document."""


class InvalidRecord(SingerProtocolError):
    """Raised when a record does not match its stream's JSON Schema."""

    def __init__(
        self,
        error_message: str,
        record: dict,
        stream: str | None = None,
    ) -> None:
        """Initialize an InvalidRecord exception.

        Args:
            error_message: A message describing the error.
            record: The invalid record.
            stream: The stream the record belongs to.
        """
        super().__init__(f"Record Message Validation Error: {error_message}")
        self.error_message = error_message
        self.record = record
        self.stream = stream


class ConfigValidationError(SingerProtocolError):
    """Raised when the configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize a ConfigValidationError.

        Args:
            message: A message describing the error.
            errors: A list of errors which caused the validation error.
        """
        super().__init__(message)
        self.errors = errors or []
