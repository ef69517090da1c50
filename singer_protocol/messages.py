"""Singer message types and utilities.

Every Singer message is one of a closed set of variants. Each variant is a
frozen dataclass, and :data:`Message` is the union of all of them, including the
:class:`UnknownMessage` catch-all that keeps message types this library does not
know about.
"""

from __future__ import annotations

import enum
import typing as t
from dataclasses import dataclass, field
from datetime import datetime, timezone

from singer_protocol._compat import parse_timestamp
from singer_protocol.exceptions import InvalidMessage, MissingField
from singer_protocol.json import normalize_numbers

__all__ = [
    "ActivateVersionMessage",
    "BatchFileEncoding",
    "BatchMessage",
    "Message",
    "RecordMessage",
    "SchemaMessage",
    "SingerMessageType",
    "StateMessage",
    "UnknownMessage",
    "exclude_null_dict",
    "parse_message",
]


class SingerMessageType(str, enum.Enum):
    """Singer specification message types."""

    RECORD = "RECORD"
    SCHEMA = "SCHEMA"
    STATE = "STATE"
    ACTIVATE_VERSION = "ACTIVATE_VERSION"
    BATCH = "BATCH"

    def __str__(self) -> str:
        return self.value


def exclude_null_dict(pairs: t.Iterable[tuple[str, t.Any]]) -> dict[str, t.Any]:
    """Exclude null values from a dictionary.

    Args:
        pairs: The dictionary key-value pairs.

    Returns:
        The filtered key-value pairs.
    """
    return {key: value for key, value in pairs if value is not None}


def _require(data: t.Mapping[str, t.Any], key: str, message_type: str) -> t.Any:  # noqa: ANN401
    try:
        return data[key]
    except KeyError:
        raise MissingField(key, message_type) from None


def _check_stream(stream: object, message_type: str) -> None:
    if not isinstance(stream, str) or not stream:
        msg = f"{message_type} message 'stream' must be a non-empty string"
        raise InvalidMessage(msg)


def _check_object(value: object, name: str, message_type: str) -> None:
    if not isinstance(value, dict):
        msg = f"{message_type} message '{name}' must be a JSON object"
        raise InvalidMessage(msg)


def _json_value(value: dict[str, t.Any], name: str, message_type: str) -> t.Any:  # noqa: ANN401
    try:
        return normalize_numbers(value)
    except ValueError as exc:
        msg = f"{message_type} message '{name}' holds an invalid number: {exc}"
        raise InvalidMessage(msg) from exc
    except RecursionError as exc:
        msg = f"{message_type} message '{name}' is nested too deep"
        raise InvalidMessage(msg) from exc


def _check_version(value: object, message_type: str) -> None:
    # bool is a subclass of int but never a valid version
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{message_type} message 'version' must be an integer"
        raise InvalidMessage(msg)


def _string_list(value: object, name: str, message_type: str) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        msg = f"{message_type} message '{name}' must be a list of strings"
        raise InvalidMessage(msg)
    if not all(isinstance(item, str) for item in value):
        msg = f"{message_type} message '{name}' must be a list of strings"
        raise InvalidMessage(msg)
    return list(value)


@dataclass(frozen=True)
class RecordMessage:
    """Singer record message."""

    type: t.ClassVar[SingerMessageType] = SingerMessageType.RECORD

    stream: str
    """The stream name."""

    record: dict[str, t.Any]
    """The record data."""

    version: int | None = None
    """The record version."""

    time_extracted: datetime | None = None
    """The time the record was extracted."""

    def __post_init__(self) -> None:
        """Post-init processing.

        Raises:
            InvalidMessage: If the time_extracted is not timezone-aware or the
                record holds a NaN or infinite number.
        """
        _check_stream(self.stream, self.type)
        _check_object(self.record, "record", self.type)
        object.__setattr__(
            self,
            "record",
            _json_value(self.record, "record", self.type),
        )
        if self.version is not None:
            _check_version(self.version, self.type)

        if self.time_extracted is None:
            return

        if (
            not isinstance(self.time_extracted, datetime)
            or self.time_extracted.tzinfo is None
            or self.time_extracted.utcoffset() is None
        ):
            msg = (
                "'time_extracted' must be either None or an aware datetime (with a "
                "time zone)"
            )
            raise InvalidMessage(msg)

        object.__setattr__(
            self,
            "time_extracted",
            self.time_extracted.astimezone(timezone.utc),
        )

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> RecordMessage:
        """Create a record message from a dictionary.

        Args:
            data: The dictionary to create the message from.

        Returns:
            The created message.

        Raises:
            InvalidMessage: If ``time_extracted`` is not an ISO-8601 timestamp.
        """
        time_extracted = data.get("time_extracted")
        if time_extracted is not None:
            try:
                time_extracted = parse_timestamp(time_extracted)
            except (TypeError, ValueError) as exc:
                msg = f"'time_extracted' is not an ISO-8601 timestamp: {exc}"
                raise InvalidMessage(msg) from exc

        return cls(
            stream=_require(data, "stream", cls.type),
            record=_require(data, "record", cls.type),
            version=data.get("version"),
            time_extracted=time_extracted,
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the message.

        Returns:
            A dictionary with the defined message fields.
        """
        result: dict[str, t.Any] = {
            "type": self.type.value,
            "stream": self.stream,
            "record": self.record,
        }
        if self.version is not None:
            result["version"] = self.version
        if self.time_extracted is not None:
            result["time_extracted"] = self.time_extracted
        return result


@dataclass(frozen=True)
class SchemaMessage:
    """Singer schema message."""

    type: t.ClassVar[SingerMessageType] = SingerMessageType.SCHEMA

    stream: str
    """The stream name."""

    schema: dict[str, t.Any]
    """The schema definition."""

    key_properties: list[str] = field(default_factory=list)
    """The key properties."""

    bookmark_properties: list[str] | None = None
    """The bookmark properties."""

    def __post_init__(self) -> None:
        """Post-init processing.

        Raises:
            InvalidMessage: If bookmark_properties is not a string or list of strings.
        """
        _check_stream(self.stream, self.type)
        _check_object(self.schema, "schema", self.type)
        object.__setattr__(
            self,
            "schema",
            _json_value(self.schema, "schema", self.type),
        )

        key_properties = self.key_properties if self.key_properties is not None else []
        object.__setattr__(
            self,
            "key_properties",
            _string_list(key_properties, "key_properties", self.type),
        )

        bookmark_properties = self.bookmark_properties
        if bookmark_properties is None:
            return
        if isinstance(bookmark_properties, str):
            bookmark_properties = [bookmark_properties]
        try:
            bookmark_properties = _string_list(
                bookmark_properties,
                "bookmark_properties",
                self.type,
            )
        except InvalidMessage:
            msg = "bookmark_properties must be a string or list of strings"
            raise InvalidMessage(msg) from None
        object.__setattr__(self, "bookmark_properties", bookmark_properties)

    @property
    def undeclared_key_properties(self) -> list[str]:
        """Key properties that the schema does not declare.

        Only checked when the schema has a ``properties`` mapping.
        """
        properties = self.schema.get("properties")
        if not isinstance(properties, dict):
            return []
        return [key for key in self.key_properties if key not in properties]

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> SchemaMessage:
        """Create a schema message from a dictionary.

        Args:
            data: The dictionary to create the message from.

        Returns:
            The created message.
        """
        return cls(
            stream=_require(data, "stream", cls.type),
            schema=_require(data, "schema", cls.type),
            key_properties=_require(data, "key_properties", cls.type),
            bookmark_properties=data.get("bookmark_properties"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the message.

        Returns:
            A dictionary with the defined message fields.
        """
        return exclude_null_dict(
            [
                ("type", self.type.value),
                ("stream", self.stream),
                ("schema", self.schema),
                ("key_properties", self.key_properties),
                ("bookmark_properties", self.bookmark_properties),
            ],
        )


@dataclass(frozen=True)
class StateMessage:
    """Singer state message."""

    type: t.ClassVar[SingerMessageType] = SingerMessageType.STATE

    value: dict[str, t.Any]
    """The state value."""

    def __post_init__(self) -> None:
        _check_object(self.value, "value", self.type)
        object.__setattr__(self, "value", _json_value(self.value, "value", self.type))

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> StateMessage:
        """Create a state message from a dictionary.

        Args:
            data: The dictionary to create the message from.

        Returns:
            The created message.
        """
        return cls(value=_require(data, "value", cls.type))

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the message.

        Returns:
            A dictionary with the defined message fields.
        """
        return {"type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class ActivateVersionMessage:
    """Singer activate version message."""

    type: t.ClassVar[SingerMessageType] = SingerMessageType.ACTIVATE_VERSION

    stream: str
    """The stream name."""

    version: int
    """The version to activate."""

    def __post_init__(self) -> None:
        _check_stream(self.stream, self.type)
        _check_version(self.version, self.type)

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> ActivateVersionMessage:
        """Create an activate version message from a dictionary.

        Args:
            data: The dictionary to create the message from.

        Returns:
            The created message.
        """
        return cls(
            stream=_require(data, "stream", cls.type),
            version=_require(data, "version", cls.type),
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the message.

        Returns:
            A dictionary with the defined message fields.
        """
        return {
            "type": self.type.value,
            "stream": self.stream,
            "version": self.version,
        }


@dataclass(frozen=True)
class BatchFileEncoding:
    """File encoding of the files referenced by a BATCH message."""

    format: str
    """The format of the batch files, e.g. ``jsonl``."""

    compression: str | None = None
    """The compression of the batch files, e.g. ``gzip``."""

    def __post_init__(self) -> None:
        if not isinstance(self.format, str) or not self.format:
            msg = "BATCH message 'encoding.format' must be a non-empty string"
            raise InvalidMessage(msg)
        if self.compression is not None and not isinstance(self.compression, str):
            msg = "BATCH message 'encoding.compression' must be a string"
            raise InvalidMessage(msg)

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> BatchFileEncoding:
        """Create an encoding from a dictionary.

        Args:
            data: The dictionary to create the encoding from.

        Returns:
            The created encoding.
        """
        _check_object(data, "encoding", SingerMessageType.BATCH)
        return cls(
            format=_require(data, "format", SingerMessageType.BATCH),
            compression=data.get("compression"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the encoding.

        Returns:
            A dictionary with the non-null encoding fields.
        """
        return exclude_null_dict(
            [("format", self.format), ("compression", self.compression)],
        )


@dataclass(frozen=True)
class BatchMessage:
    """Singer batch message.

    Points the consumer to files holding the records of a stream instead of
    sending them inline.
    """

    type: t.ClassVar[SingerMessageType] = SingerMessageType.BATCH

    stream: str
    """The stream name."""

    encoding: BatchFileEncoding
    """The file encoding of the batch."""

    manifest: list[str] = field(default_factory=list)
    """The manifest of files in the batch."""

    version: int | None = None
    """If syncing in FULL_TABLE mode, the start time as an epoch timestamp int."""

    def __post_init__(self) -> None:
        _check_stream(self.stream, self.type)
        if isinstance(self.encoding, dict):
            object.__setattr__(
                self,
                "encoding",
                BatchFileEncoding.from_dict(self.encoding),
            )
        if not isinstance(self.encoding, BatchFileEncoding):
            msg = "BATCH message 'encoding' must be a JSON object"
            raise InvalidMessage(msg)
        object.__setattr__(
            self,
            "manifest",
            _string_list(self.manifest, "manifest", self.type),
        )
        if self.version is not None:
            _check_version(self.version, self.type)

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> BatchMessage:
        """Create a batch message from a dictionary.

        Args:
            data: The dictionary to create the message from.

        Returns:
            The created message.
        """
        return cls(
            stream=_require(data, "stream", cls.type),
            encoding=BatchFileEncoding.from_dict(
                _require(data, "encoding", cls.type),
            ),
            manifest=_require(data, "manifest", cls.type),
            version=data.get("version"),
        )

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the message.

        Returns:
            A dictionary with the defined message fields.
        """
        return exclude_null_dict(
            [
                ("type", self.type.value),
                ("stream", self.stream),
                ("encoding", self.encoding.to_dict()),
                ("manifest", self.manifest),
                ("version", self.version),
            ],
        )


# BATCH is absent: a reader with BATCH support turned off keeps them as unknown.
_ALWAYS_KNOWN_TYPES = frozenset(
    message_type.value
    for message_type in SingerMessageType
    if message_type is not SingerMessageType.BATCH
)


@dataclass(frozen=True)
class UnknownMessage:
    """A message whose type this library does not recognize.

    The raw object is kept so that it can be passed through unchanged. Floats in
    it are turned into decimals, as the decoder reads them. Known message types
    other than BATCH are rejected, since they would decode as their own variant.
    """

    raw: dict[str, t.Any]
    """The message as decoded, including its ``type``."""

    def __post_init__(self) -> None:
        if not isinstance(self.raw, dict):
            msg = "Unknown message must be a JSON object"
            raise InvalidMessage(msg)
        if "type" not in self.raw:
            raise MissingField("type", None)
        if not isinstance(self.raw["type"], str):
            msg = "Message 'type' must be a string"
            raise InvalidMessage(msg)
        if self.raw["type"] in _ALWAYS_KNOWN_TYPES:
            msg = f"{self.raw['type']} message cannot be kept as an unknown message"
            raise InvalidMessage(msg)
        object.__setattr__(self, "raw", _json_value(self.raw, "raw", "Unknown"))

    @property
    def type(self) -> str:
        """The message type, verbatim."""
        return self.raw["type"]  # type: ignore[no-any-return]

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> UnknownMessage:
        """Wrap a raw message dictionary.

        Args:
            data: The dictionary to wrap.

        Returns:
            The created message.
        """
        return cls(raw=dict(data))

    def to_dict(self) -> dict[str, t.Any]:
        """Return the raw message with its ``type`` first.

        Returns:
            A copy of the raw message.
        """
        return {"type": self.type, **self.raw}


Message = t.Union[
    RecordMessage,
    SchemaMessage,
    StateMessage,
    ActivateVersionMessage,
    BatchMessage,
    UnknownMessage,
]
"""Any Singer message."""

_MESSAGE_CLASSES: dict[str, t.Any] = {
    SingerMessageType.RECORD.value: RecordMessage,
    SingerMessageType.SCHEMA.value: SchemaMessage,
    SingerMessageType.STATE.value: StateMessage,
    SingerMessageType.ACTIVATE_VERSION.value: ActivateVersionMessage,
    SingerMessageType.BATCH.value: BatchMessage,
}


def parse_message(
    data: t.Mapping[str, t.Any],
    *,
    batch_enabled: bool = True,
) -> Message:
    """Build the message variant matching the ``type`` of a raw message.

    Args:
        data: A decoded message object.
        batch_enabled: Whether BATCH messages are supported. When they are not,
            BATCH messages are returned as :class:`UnknownMessage`.

    Returns:
        The typed message.

    Raises:
        MissingField: If ``type`` or a field required by the type is missing.
        InvalidMessage: If ``type`` is not a string or a field has a bad value.
    """
    if "type" not in data:
        raise MissingField("type", None)

    message_type = data["type"]
    if not isinstance(message_type, str):
        msg = "Message 'type' must be a string"
        raise InvalidMessage(msg)

    if message_type == SingerMessageType.BATCH.value and not batch_enabled:
        return UnknownMessage.from_dict(data)

    message_class = _MESSAGE_CLASSES.get(message_type)
    if message_class is None:
        return UnknownMessage.from_dict(data)
    return message_class.from_dict(data)  # type: ignore[no-any-return]
