from __future__ import annotations

import datetime
import decimal
import json

import pytest

from singer_protocol.json import deserialize_json, normalize_numbers, serialize_json


@pytest.mark.parametrize(
    "value,expected",
    [
        pytest.param(
            {"a": decimal.Decimal("0.1"), "b": 2},
            '{"a":0.1,"b":2}',
            id="decimal",
        ),
        pytest.param(
            {"at": datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc)},
            '{"at":"2021-01-01T00:00:00+00:00"}',
            id="datetime",
        ),
        pytest.param({"d": datetime.date(2021, 1, 2)}, '{"d":"2021-01-02"}', id="date"),
        pytest.param({"t": datetime.time(12, 30)}, '{"t":"12:30:00"}', id="time"),
        pytest.param({"s": "café"}, '{"s":"caf\\u00e9"}', id="non-ascii"),
    ],
)
def test_serialize_json(value, expected):
    assert serialize_json(value) == expected


def test_deserialize_json_decimal():
    data = deserialize_json('{"price": 10.000000000000000001, "qty": 3}')
    assert data == {"price": decimal.Decimal("10.000000000000000001"), "qty": 3}
    assert isinstance(data["qty"], int)


def test_deserialize_invalid_json():
    with pytest.raises(json.JSONDecodeError):
        deserialize_json("{")


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_deserialize_rejects_non_finite(constant: str):
    with pytest.raises(ValueError, match="not a valid JSON number"):
        deserialize_json(f'{{"x": {constant}}}')


def test_serialize_rejects_non_finite_float():
    with pytest.raises(ValueError):  # noqa: PT011
        serialize_json({"x": float("nan")})


def test_normalize_numbers():
    assert normalize_numbers({"a": 0.1, "b": (1, [2.5]), "c": "x"}) == {
        "a": decimal.Decimal("0.1"),
        "b": [1, [decimal.Decimal("2.5")]],
        "c": "x",
    }

    with pytest.raises(ValueError, match="not a valid JSON number"):
        normalize_numbers([float("inf")])
