"""Per-stream tracking of declared schemas."""

from __future__ import annotations

import logging
import typing as t

from singer_protocol.exceptions import MissingKeyProperties, UnknownStream

if t.TYPE_CHECKING:
    from singer_protocol.messages import (
        ActivateVersionMessage,
        RecordMessage,
        SchemaMessage,
    )

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Latest SCHEMA message of every stream seen on one message stream.

    The last SCHEMA for a stream always wins; no history is kept. A registry
    belongs to a single reader and must not be shared between readers.
    """

    def __init__(self, *, require_key_properties: bool = False) -> None:
        """Initialize the registry.

        Args:
            require_key_properties: Also reject records that lack any of the key
                properties declared for their stream.
        """
        self.require_key_properties = require_key_properties
        self._schemas: dict[str, SchemaMessage] = {}

    def __contains__(self, stream: object) -> bool:
        return stream in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(streams={self.streams!r})"

    @property
    def streams(self) -> list[str]:
        """Names of the declared streams, in declaration order."""
        return list(self._schemas)

    def get(self, stream: str) -> SchemaMessage | None:
        """Get the active declaration of a stream.

        Args:
            stream: The stream name.

        Returns:
            The latest SCHEMA message for the stream, or None.
        """
        return self._schemas.get(stream)

    def declare(self, schema_message: SchemaMessage) -> None:
        """Insert or replace the declaration of a stream.

        Args:
            schema_message: The SCHEMA message to register.
        """
        stream = schema_message.stream
        if stream in self._schemas:
            logger.debug("Replacing schema of stream '%s'", stream)
        else:
            logger.debug("Registering schema of stream '%s'", stream)

        if undeclared := schema_message.undeclared_key_properties:
            logger.debug(
                "Key properties of stream '%s' not found in its schema: %s",
                stream,
                undeclared,
            )

        self._schemas[stream] = schema_message

    def _lookup(self, stream: str, message_type: str) -> SchemaMessage:
        try:
            return self._schemas[stream]
        except KeyError:
            raise UnknownStream(stream, message_type) from None

    def check_record(self, record_message: RecordMessage) -> SchemaMessage:
        """Check that a record belongs to a declared stream.

        Args:
            record_message: The RECORD message to check.

        Returns:
            The declaration the record is checked against.

        Raises:
            MissingKeyProperties: If key properties are required and the record
                does not carry all of them.
        """
        schema_message = self._lookup(record_message.stream, record_message.type)

        if self.require_key_properties:
            missing = [
                key
                for key in schema_message.key_properties
                if key not in record_message.record
            ]
            if missing:
                raise MissingKeyProperties(record_message.stream, missing)

        return schema_message

    def check_activate_version(self, message: ActivateVersionMessage) -> SchemaMessage:
        """Check that an ACTIVATE_VERSION message targets a declared stream.

        Args:
            message: The ACTIVATE_VERSION message to check.

        Returns:
            The active declaration of the stream.
        """
        return self._lookup(message.stream, message.type)
