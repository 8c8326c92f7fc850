from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .aws_errors import CALL_ERRORS
from .aws_errors import map_transaction_error as _map_transaction_error
from .codec import AttributeValue, Item
from .conditions import ConditionCheck
from .errors import InvalidRequestError, TransactionCanceledError
from .model import Key, key_item

logger = logging.getLogger(__name__)

MAX_TRANSACTION_ITEMS = 100


@dataclass(frozen=True)
class TransactPut:
    table_name: str
    key: Key
    item: Item
    condition: ConditionCheck = field(default_factory=ConditionCheck)

    def to_transact_item(self) -> dict[str, Any]:
        req: dict[str, Any] = {"TableName": self.table_name, "Item": dict(self.item)}
        req.update(self.condition.to_request())
        return {"Put": req}


@dataclass(frozen=True)
class TransactUpdate:
    table_name: str
    key: Key
    update_expression: str
    names: Mapping[str, str]
    values: Mapping[str, AttributeValue]
    condition: ConditionCheck = field(default_factory=ConditionCheck)

    def to_transact_item(self) -> dict[str, Any]:
        return {"Update": build_update_request(self)}


@dataclass(frozen=True)
class TransactDelete:
    table_name: str
    key: Key
    condition: ConditionCheck = field(default_factory=ConditionCheck)

    def to_transact_item(self) -> dict[str, Any]:
        req: dict[str, Any] = {"TableName": self.table_name, "Key": key_item(*self.key)}
        req.update(self.condition.to_request())
        return {"Delete": req}


@dataclass(frozen=True)
class TransactConditionCheck:
    table_name: str
    key: Key
    condition: ConditionCheck

    def to_transact_item(self) -> dict[str, Any]:
        if self.condition.is_empty():
            raise InvalidRequestError("a condition check requires a condition expression")
        req: dict[str, Any] = {"TableName": self.table_name, "Key": key_item(*self.key)}
        req.update(self.condition.to_request())
        return {"ConditionCheck": req}


type TransactWriteAction = TransactPut | TransactUpdate | TransactDelete | TransactConditionCheck


def build_update_request(update: TransactUpdate) -> dict[str, Any]:
    names = dict(update.names)
    values = dict(update.values)
    for k, v in update.condition.names.items():
        if k in names and names[k] != v:
            raise InvalidRequestError(f"expression attribute name collision: {k}")
        names[k] = v
    for k, v in update.condition.values.items():
        if k in values:
            raise InvalidRequestError(f"expression attribute value collision: {k}")
        values[k] = v

    req: dict[str, Any] = {
        "TableName": update.table_name,
        "Key": key_item(*update.key),
        "UpdateExpression": update.update_expression,
        "ExpressionAttributeNames": names,
    }
    if values:
        req["ExpressionAttributeValues"] = values
    if not update.condition.is_empty():
        req["ConditionExpression"] = update.condition.expression
    return req


class TransactionContext:
    def __init__(self) -> None:
        self._operations: list[TransactWriteAction] = []
        self._consumed = False

    def push(self, operation: TransactWriteAction) -> None:
        if self._consumed:
            raise InvalidRequestError("transaction context was already executed")
        if not isinstance(operation, (TransactPut, TransactUpdate, TransactDelete, TransactConditionCheck)):
            raise InvalidRequestError(f"unsupported transaction action: {type(operation).__name__}")
        self._operations.append(operation)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[TransactWriteAction]:
        return iter(tuple(self._operations))

    def build(self) -> list[dict[str, Any]]:
        if not self._operations:
            raise InvalidRequestError("transaction context is empty")
        if len(self._operations) > MAX_TRANSACTION_ITEMS:
            raise InvalidRequestError(f"a transaction supports at most {MAX_TRANSACTION_ITEMS} operations")
        return [operation.to_transact_item() for operation in self._operations]

    def _consume(self) -> list[dict[str, Any]]:
        if self._consumed:
            raise InvalidRequestError("transaction context was already executed")
        items = self.build()
        self._consumed = True
        self._operations = []
        return items


def begin_transaction() -> TransactionContext:
    return TransactionContext()


def execute_transaction(client: Any, context: TransactionContext) -> None:
    transact_items = context._consume()
    logger.debug("transact_write_items: %d operations", len(transact_items))

    try:
        client.transact_write_items(TransactItems=transact_items)
    except CALL_ERRORS as err:
        mapped = _map_transaction_error(err)
        if isinstance(mapped, TransactionCanceledError):
            logger.warning("transaction canceled: %s", ", ".join(mapped.reason_codes) or mapped.message)
        raise mapped from err
