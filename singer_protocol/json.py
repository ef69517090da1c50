"""JSON serialization and deserialization utilities."""

from __future__ import annotations

import datetime
import decimal
import json
import typing as t

import simplejson

__all__ = [
    "deserialize_json",
    "normalize_numbers",
    "serialize_json",
]


def _default_encoding(obj: t.Any) -> str:  # noqa: ANN401
    """Default JSON encoder.

    Args:
        obj: The object to encode.

    Returns:
        The encoded object.
    """
    if isinstance(obj, (datetime.datetime, datetime.date, datetime.time)):
        return obj.isoformat()
    return str(obj)


def _reject_constant(name: str) -> t.NoReturn:
    msg = f"{name} is not a valid JSON number"
    raise ValueError(msg)


def deserialize_json(json_str: str | bytes, **kwargs: t.Any) -> t.Any:  # noqa: ANN401
    """Deserialize a line of json.

    Numbers with a fractional part are parsed as :class:`decimal.Decimal` so that
    no precision is lost between a tap and a target.

    Args:
        json_str: A single line of json.
        **kwargs: Optional key word arguments.

    Returns:
        The deserialized value, usually a dictionary.

    Raises:
        ValueError: If the line is not valid JSON, holds ``NaN`` or ``Infinity``
            or an integer too long to convert.
    """
    return json.loads(
        json_str,
        parse_float=decimal.Decimal,
        parse_constant=_reject_constant,
        **kwargs,
    )


def normalize_numbers(value: t.Any) -> t.Any:  # noqa: ANN401
    """Bring a JSON-like value to the form :func:`deserialize_json` produces.

    Floats become :class:`decimal.Decimal` (via their shortest repr) and tuples
    become lists, so that a value compares equal to itself after a round trip.

    Args:
        value: A value made of dicts, lists and scalars.

    Returns:
        A normalized copy of the value.

    Raises:
        ValueError: If the value holds a NaN or infinite number.
    """
    if isinstance(value, dict):
        return {key: normalize_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_numbers(item) for item in value]
    if isinstance(value, float):
        value = decimal.Decimal(repr(value))
    if isinstance(value, decimal.Decimal) and not value.is_finite():
        msg = f"{value} is not a valid JSON number"
        raise ValueError(msg)
    return value


def serialize_json(obj: object, **kwargs: t.Any) -> str:
    """Serialize a dictionary into a line of json.

    Args:
        obj: A Python object usually a dict.
        **kwargs: Optional key word arguments.

    Returns:
        A string of serialized json.

    Raises:
        ValueError: If the object holds a NaN or infinite float.
    """
    return simplejson.dumps(
        obj,
        use_decimal=True,
        allow_nan=False,
        default=_default_encoding,
        separators=(",", ":"),
        **kwargs,
    )
