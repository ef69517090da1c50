"""Optional validation of record bodies against their stream's JSON Schema.

The stream codec only checks that records belong to a declared stream. The
classes here add a separate, more expensive pass for consumers that want to
check record payloads too.
"""

from __future__ import annotations

import typing as t

import jsonschema

from singer_protocol.exceptions import InvalidJSONSchema, InvalidRecord

if t.TYPE_CHECKING:
    from singer_protocol.messages import RecordMessage, SchemaMessage
    from singer_protocol.registry import SchemaRegistry

__all__ = [
    "JSONSchemaValidator",
    "RecordValidator",
]


class JSONSchemaValidator:
    """Checks dicts against one JSON Schema (draft 7).

    String formats such as ``email`` are ignored unless ``validate_formats`` is
    set.
    """

    validator_class: t.ClassVar[type[jsonschema.protocols.Validator]] = (
        jsonschema.Draft7Validator
    )

    def __init__(
        self,
        schema: dict,
        *,
        validate_formats: bool = False,
        format_checker: jsonschema.FormatChecker | None = None,
    ) -> None:
        """Compile a schema.

        Args:
            schema: The JSON Schema.
            validate_formats: Whether to check string formats.
            format_checker: Format checker to use instead of the draft's default.

        Raises:
            InvalidJSONSchema: If ``schema`` is not itself valid JSON Schema.
        """
        cls = self.validator_class
        try:
            cls.check_schema(schema)
        except jsonschema.SchemaError as exc:
            msg = f"Schema Validation Error: {exc.message}"
            raise InvalidJSONSchema(msg) from exc

        if not validate_formats:
            format_checker = jsonschema.FormatChecker(formats=())
        elif format_checker is None:
            format_checker = cls.FORMAT_CHECKER

        self.schema = schema
        self.validator = cls(schema, format_checker=format_checker)

    def validate(self, record: dict, stream: str | None = None) -> None:
        """Check a record, reporting the most relevant error.

        Args:
            record: The record body.
            stream: The record's stream, attached to the error.

        Raises:
            InvalidRecord: If the record does not match the schema.
        """
        error = jsonschema.exceptions.best_match(self.validator.iter_errors(record))
        if error is not None:
            raise InvalidRecord(error.message, record, stream) from error


class RecordValidator:
    """Validate RECORD messages against the active schema of their stream.

    Validators are compiled lazily and rebuilt whenever the registry holds a new
    declaration for the stream.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        validate_formats: bool = False,
    ) -> None:
        """Initialize the record validator.

        Args:
            registry: Registry holding the stream declarations.
            validate_formats: Whether JSON string formats should be validated.
        """
        self.registry = registry
        self.validate_formats = validate_formats
        self._validators: dict[str, tuple[SchemaMessage, JSONSchemaValidator]] = {}

    def _get_validator(self, schema_message: SchemaMessage) -> JSONSchemaValidator:
        cached = self._validators.get(schema_message.stream)
        if cached is not None and cached[0] is schema_message:
            return cached[1]

        validator = JSONSchemaValidator(
            schema_message.schema,
            validate_formats=self.validate_formats,
        )
        self._validators[schema_message.stream] = (schema_message, validator)
        return validator

    def validate(self, record_message: RecordMessage) -> None:
        """Validate the body of a record.

        Args:
            record_message: The RECORD message to validate.

        Raises:
            UnknownStream: If the record's stream has not been declared.
            MissingKeyProperties: If the registry requires key properties and the
                record lacks some.
            InvalidJSONSchema: If the declared schema is not valid JSON Schema.
            InvalidRecord: If the record does not match the schema.
        """
        schema_message = self.registry.check_record(record_message)
        validator = self._get_validator(schema_message)
        validator.validate(record_message.record, record_message.stream)
