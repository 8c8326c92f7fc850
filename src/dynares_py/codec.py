"""Conversion between generic documents and DynamoDB attribute values.

A document is a ``dict[str, Value]`` where a value is one of: ``str``,
``int``, ``float``, ``bool``, ``None``, a list of values, or a string-keyed
map of values. Anything else is rejected rather than guessed at.

Numbers travel as decimal strings. Floats use ``repr`` (the shortest string
that round-trips to the same float); DynamoDB may normalise the stored form
(``2.0`` comes back as ``2``), so floats with an integral value can decode as
``int``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from .errors import AttributeParseError

type Value = str | int | float | bool | None | list[Value] | dict[str, Value]
type Document = dict[str, Value]
type AttributeValue = dict[str, Any]
type Item = dict[str, AttributeValue]

_INTEGER = re.compile(r"[+-]?\d+")


def _format_number(value: int | float | Decimal) -> str:
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise AttributeParseError(f"cannot map non-finite number {value} to a dynamo attribute")
        return str(value)
    if not math.isfinite(value):
        raise AttributeParseError(f"cannot map non-finite number {value!r} to a dynamo attribute")
    return repr(value)


def _parse_number(raw: Any) -> int | float:
    if not isinstance(raw, str):
        raise AttributeParseError(f"invalid number {raw!r}")
    text = raw.strip()
    if _INTEGER.fullmatch(text):
        return int(text)
    try:
        number = float(text)
    except ValueError as err:
        raise AttributeParseError(f"invalid number {raw}") from err
    if not math.isfinite(number):
        raise AttributeParseError(f"invalid number {raw}")
    return number


def encode_value(value: Any) -> AttributeValue:
    # bool is an int subclass, check it first
    if isinstance(value, bool):
        return {"BOOL": value}
    if isinstance(value, str):
        return {"S": value}
    if isinstance(value, (int, float, Decimal)):
        return {"N": _format_number(value)}
    if value is None:
        return {"NULL": True}
    if isinstance(value, (list, tuple)):
        return {"L": [encode_value(v) for v in value]}
    if isinstance(value, Mapping):
        out: dict[str, AttributeValue] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise AttributeParseError(f"map keys must be strings, got {type(k).__name__}")
            out[k] = encode_value(v)
        return {"M": out}

    raise AttributeParseError(f"cannot map value of type {type(value).__name__} to a dynamo attribute")


def decode_value(attr: Any) -> Value:
    if not isinstance(attr, Mapping) or len(attr) != 1:
        raise AttributeParseError(f"error parsing attribute value {attr!r}")
    (kind, raw), *_ = attr.items()

    if kind == "S":
        if not isinstance(raw, str):
            raise AttributeParseError("S value must be a string")
        return raw
    if kind == "N":
        return _parse_number(raw)
    if kind == "BOOL":
        if not isinstance(raw, bool):
            raise AttributeParseError("BOOL value must be a boolean")
        return raw
    if kind == "NULL":
        return None
    if kind == "L":
        if not isinstance(raw, list):
            raise AttributeParseError("L value must be a list")
        return [decode_value(v) for v in raw]
    if kind == "M":
        if not isinstance(raw, Mapping):
            raise AttributeParseError("M value must be a map")
        return {str(k): decode_value(v) for k, v in raw.items()}

    raise AttributeParseError(f"error parsing attribute value of unsupported type {kind}")


def encode_document(document: Mapping[str, Any]) -> Item:
    item: Item = {}
    for name, value in document.items():
        if not isinstance(name, str):
            raise AttributeParseError(f"field names must be strings, got {type(name).__name__}")
        item[name] = encode_value(value)
    return item


def decode_document(item: Mapping[str, Any]) -> Document:
    return {str(name): decode_value(attr) for name, attr in item.items()}
