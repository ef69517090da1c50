"""Data structures, reader and writer for the Singer tap/target protocol."""

from __future__ import annotations

from singer_protocol.catalog import (
    Catalog,
    CatalogEntry,
    Metadata,
    MetadataMapping,
    SelectionMask,
    StreamMetadata,
)
from singer_protocol.encoding import DecodeResult, SingerReader, SingerWriter
from singer_protocol.exceptions import (
    InvalidInputLine,
    InvalidMessage,
    IoFailure,
    MalformedMessage,
    MissingField,
    MissingKeyProperties,
    SingerProtocolError,
    UnknownStream,
)
from singer_protocol.messages import (
    ActivateVersionMessage,
    BatchFileEncoding,
    BatchMessage,
    Message,
    RecordMessage,
    SchemaMessage,
    SingerMessageType,
    StateMessage,
    UnknownMessage,
    exclude_null_dict,
    parse_message,
)
from singer_protocol.registry import SchemaRegistry

WRITER = SingerWriter()
format_message = WRITER.format_message
write_message = WRITER.write_message

__all__ = [
    "ActivateVersionMessage",
    "BatchFileEncoding",
    "BatchMessage",
    "Catalog",
    "CatalogEntry",
    "DecodeResult",
    "InvalidInputLine",
    "InvalidMessage",
    "IoFailure",
    "MalformedMessage",
    "Message",
    "Metadata",
    "MetadataMapping",
    "MissingField",
    "MissingKeyProperties",
    "RecordMessage",
    "SchemaMessage",
    "SchemaRegistry",
    "SelectionMask",
    "SingerMessageType",
    "SingerProtocolError",
    "SingerReader",
    "SingerWriter",
    "StateMessage",
    "StreamMetadata",
    "UnknownMessage",
    "UnknownStream",
    "exclude_null_dict",
    "format_message",
    "parse_message",
    "write_message",
]
