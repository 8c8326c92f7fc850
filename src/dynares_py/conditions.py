from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .codec import AttributeValue, encode_value
from .errors import InvalidRequestError
from .model import PK, SK


class Operator(Enum):
    EQ = "="
    NOT_EQ = "<>"
    GT = ">"
    GT_EQ = ">="
    LT = "<"
    LT_EQ = "<="

    def __str__(self) -> str:
        return self.value


class Placeholders:
    """Hands out placeholder tokens that are unique for the lifetime of the sequence."""

    def __init__(self, prefix: str = "c") -> None:
        if not prefix.isidentifier():
            raise InvalidRequestError(f"invalid placeholder prefix: {prefix!r}")
        self._prefix = prefix
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            return f"{self._prefix}{next(self._counter)}"


_default_placeholders = Placeholders()


@dataclass(frozen=True)
class ConditionCheck:
    expression: str = ""
    names: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[str, AttributeValue] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.expression

    def merge(self, others: Iterable[ConditionCheck]) -> ConditionCheck:
        expression = self.expression
        names = dict(self.names)
        values = dict(self.values)

        for other in others:
            _union(names, other.names, kind="name")
            _union(values, other.values, kind="value")

            if other.is_empty():
                continue
            if not expression:
                expression = other.expression
                continue
            expression = f"{_wrap(expression)} and {_wrap(other.expression)}"

        return ConditionCheck(expression=expression, names=names, values=values)

    def to_request(self) -> dict[str, Any]:
        if self.is_empty():
            return {}
        req: dict[str, Any] = {"ConditionExpression": self.expression}
        if self.names:
            req["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            req["ExpressionAttributeValues"] = dict(self.values)
        return req


def _union(target: dict[str, Any], incoming: Mapping[str, Any], *, kind: str) -> None:
    for k, v in incoming.items():
        existing = target.get(k)
        if existing is not None and existing != v:
            raise InvalidRequestError(f"expression attribute {kind} collision: {k}")
        target[k] = v


def _is_single_group(expression: str) -> bool:
    if not (expression.startswith("(") and expression.endswith(")")):
        return False
    depth = 0
    for i, ch in enumerate(expression):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            # the opening paren closed before the end: "(a) and (b)"
            if depth == 0 and i != len(expression) - 1:
                return False
    return depth == 0


def _wrap(expression: str) -> str:
    if _is_single_group(expression):
        return expression
    return f"({expression})"


def merge(base: ConditionCheck, checks: Iterable[ConditionCheck]) -> ConditionCheck:
    return base.merge(checks)


def exists() -> ConditionCheck:
    return ConditionCheck(
        expression="attribute_exists(#pk) and attribute_exists(#sk)",
        names={"#pk": PK, "#sk": SK},
    )


def not_exists() -> ConditionCheck:
    return ConditionCheck(
        expression="attribute_not_exists(#pk) and attribute_not_exists(#sk)",
        names={"#pk": PK, "#sk": SK},
    )


def field_exists(attr: str, *, placeholders: Placeholders | None = None) -> ConditionCheck:
    key = (placeholders or _default_placeholders).next()
    return ConditionCheck(expression=f"attribute_exists(#{key})", names={f"#{key}": attr})


def field_not_exists(attr: str, *, placeholders: Placeholders | None = None) -> ConditionCheck:
    key = (placeholders or _default_placeholders).next()
    return ConditionCheck(expression=f"attribute_not_exists(#{key})", names={f"#{key}": attr})


def compare(
    attr: str,
    operator: Operator | str,
    value: Any,
    *,
    placeholders: Placeholders | None = None,
) -> ConditionCheck:
    op = _resolve_operator(operator)
    if not attr:
        raise InvalidRequestError("attribute name is required")

    encoded = encode_value(value)
    key = (placeholders or _default_placeholders).next()
    return ConditionCheck(
        expression=f"#{key} {op} :{key}",
        names={f"#{key}": attr},
        values={f":{key}": encoded},
    )


def compare_number(
    attr: str,
    operator: Operator | str,
    value: int | float | Decimal,
    *,
    placeholders: Placeholders | None = None,
) -> ConditionCheck:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidRequestError(f"compare_number requires a number, got {type(value).__name__}")
    return compare(attr, operator, value, placeholders=placeholders)


def compare_string(
    attr: str,
    operator: Operator | str,
    value: str,
    *,
    placeholders: Placeholders | None = None,
) -> ConditionCheck:
    if not isinstance(value, str):
        raise InvalidRequestError(f"compare_string requires a string, got {type(value).__name__}")
    return compare(attr, operator, value, placeholders=placeholders)


def _resolve_operator(operator: Operator | str) -> Operator:
    if isinstance(operator, Operator):
        return operator

    op = str(operator or "").strip().upper()
    aliases = {
        "=": Operator.EQ,
        "EQ": Operator.EQ,
        "<>": Operator.NOT_EQ,
        "!=": Operator.NOT_EQ,
        "NE": Operator.NOT_EQ,
        ">": Operator.GT,
        "GT": Operator.GT,
        ">=": Operator.GT_EQ,
        "GE": Operator.GT_EQ,
        "<": Operator.LT,
        "LT": Operator.LT,
        "<=": Operator.LT_EQ,
        "LE": Operator.LT_EQ,
    }
    resolved = aliases.get(op)
    if resolved is None:
        raise InvalidRequestError(f"unsupported condition operator: {operator}")
    return resolved
