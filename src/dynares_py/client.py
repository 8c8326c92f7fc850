from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from .aws_errors import CALL_ERRORS
from .aws_errors import map_client_error as _map_client_error
from .codec import AttributeValue, encode_value
from .conditions import ConditionCheck, exists, not_exists
from .errors import InvalidRequestError, UnexpectedError
from .model import (
    RESERVED_ATTRIBUTES,
    Key,
    Resource,
    document_as_resource,
    item_to_resource,
    key_item,
    resource_as_document,
    resource_key,
    resource_to_item,
)
from .query import ListOptions, build_list_request
from .runtime import ClientSettings, create_dynamodb_client, local_settings
from .schema import CreateTableOptions, create_table
from .transaction import (
    TransactConditionCheck,
    TransactDelete,
    TransactionContext,
    TransactPut,
    TransactUpdate,
    build_update_request,
)
from .transaction import begin_transaction as _begin_transaction
from .transaction import execute_transaction as _execute_transaction

logger = logging.getLogger(__name__)

MAX_BATCH_GET_KEYS = 100


def _table_of(resource_type: type[Any]) -> str:
    table = resource_type.table()
    if not isinstance(table, str) or not table:
        raise InvalidRequestError(f"{resource_type.__name__}.table() must return a table name")
    return table


def _checked_key(pk_sk: Key) -> Key:
    if not isinstance(pk_sk, tuple) or len(pk_sk) != 2:
        raise InvalidRequestError("expected key tuple (pk, sk)")
    pk, sk = pk_sk
    if not isinstance(pk, str) or not isinstance(sk, str):
        raise InvalidRequestError("pk and sk must be strings")
    return pk, sk


def _build_put(resource: Resource, condition: ConditionCheck) -> TransactPut:
    return TransactPut(
        table_name=_table_of(type(resource)),
        key=resource_key(resource),
        item=resource_to_item(resource),
        condition=condition,
    )


def _build_update[T: Resource](
    resource: T,
    patch: Mapping[str, Any],
    checks: Sequence[ConditionCheck],
) -> tuple[T, TransactUpdate | None]:
    if not isinstance(patch, Mapping):
        raise InvalidRequestError("patch must be a mapping of field name to value")

    reserved = RESERVED_ATTRIBUTES.intersection(patch)
    if reserved:
        raise InvalidRequestError(f"cannot update key attributes: {sorted(reserved)}")

    document = resource_as_document(resource)
    for field_name, value in patch.items():
        if not isinstance(field_name, str):
            raise InvalidRequestError("patch field names must be strings")
        document[field_name] = value

    updated = document_as_resource(type(resource), document)
    if not patch:
        return updated, None

    original_key = resource_key(resource)
    if resource_key(updated) != original_key:
        raise InvalidRequestError("the patch changes the resource key (PrimaryKey, SecondaryKey)")

    normalized = resource_as_document(updated)
    names: dict[str, str] = {}
    values: dict[str, AttributeValue] = {}
    set_parts: list[str] = []
    for i, (field_name, value) in enumerate(patch.items()):
        name_ref = f"#alias{i}"
        value_ref = f":value{i}"
        names[name_ref] = field_name
        values[value_ref] = encode_value(normalized.get(field_name, value))
        set_parts.append(f"{name_ref} = {value_ref}")

    operation = TransactUpdate(
        table_name=_table_of(type(resource)),
        key=original_key,
        update_expression="SET " + ", ".join(set_parts),
        names=names,
        values=values,
        condition=exists().merge(checks),
    )
    return updated, operation


def _build_delete(resource_type: type[Any], pk_sk: Key, checks: Sequence[ConditionCheck]) -> TransactDelete:
    return TransactDelete(
        table_name=_table_of(resource_type),
        key=_checked_key(pk_sk),
        condition=ConditionCheck().merge(checks),
    )


class Client:
    def __init__(self, *, client: Any | None = None) -> None:
        self._client: Any = client if client is not None else create_dynamodb_client(ClientSettings.from_env())

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> Client:
        return cls(client=create_dynamodb_client(settings))

    @classmethod
    def from_env(cls) -> Client:
        return cls.from_settings(ClientSettings.from_env())

    @classmethod
    def local(cls, endpoint_url: str = "http://localhost:8000") -> Client:
        return cls.from_settings(local_settings(endpoint_url))

    @property
    def dynamodb(self) -> Any:
        return self._client

    # -- provisioning --------------------------------------------------------

    def create_table(
        self,
        resource_type: type[Resource],
        options: CreateTableOptions | None = None,
        *,
        exist_ok: bool = True,
        wait_for_active: bool = True,
    ) -> None:
        create_table(
            self._client,
            resource_type,
            options,
            exist_ok=exist_ok,
            wait_for_active=wait_for_active,
        )

    # -- create --------------------------------------------------------------

    def create[T: Resource](self, resource: T) -> T:
        return self.create_with_checks(resource, [])

    def create_with_checks[T: Resource](self, resource: T, checks: Sequence[ConditionCheck]) -> T:
        put = _build_put(resource, not_exists().merge(checks))
        self._put(put)
        return resource

    def force_create[T: Resource](self, resource: T) -> T:
        self._put(_build_put(resource, ConditionCheck()))
        return resource

    def _put(self, put: TransactPut) -> None:
        req: dict[str, Any] = {"TableName": put.table_name, "Item": put.item}
        req.update(put.condition.to_request())
        logger.debug("put_item %s %s", put.table_name, put.key)
        try:
            self._client.put_item(**req)
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err

    # -- read ----------------------------------------------------------------

    def get[T: Resource](self, resource_type: type[T], pk_sk: Key) -> T | None:
        table = _table_of(resource_type)
        pk, sk = _checked_key(pk_sk)
        logger.debug("get_item %s %s", table, (pk, sk))
        try:
            resp = self._client.get_item(TableName=table, Key=key_item(pk, sk))
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err

        item = resp.get("Item")
        if not item:
            return None
        return item_to_resource(resource_type, item)

    def batch_get[T: Resource](self, resource_type: type[T], keys: Sequence[Key]) -> dict[Key, T]:
        if not keys:
            raise InvalidRequestError("the list of keys for batch_get is required")
        if len(keys) > MAX_BATCH_GET_KEYS:
            raise InvalidRequestError(f"batch_get supports at most {MAX_BATCH_GET_KEYS} keys")

        table = _table_of(resource_type)
        request_keys = [key_item(*_checked_key(key)) for key in keys]
        logger.debug("batch_get_item %s: %d keys", table, len(request_keys))
        try:
            resp = self._client.batch_get_item(RequestItems={table: {"Keys": request_keys}})
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err

        unprocessed = resp.get("UnprocessedKeys", {}).get(table, {}).get("Keys") or []
        if unprocessed:
            logger.warning("batch_get_item %s: %d keys left unprocessed", table, len(unprocessed))

        responses = resp.get("Responses")
        if not responses:
            return {}
        if table not in responses:
            raise UnexpectedError("table was not returned in the batch get response")

        out: dict[Key, T] = {}
        for item in responses[table]:
            resource = item_to_resource(resource_type, item)
            out[resource_key(resource)] = resource
        return out

    def list[T: Resource](
        self,
        resource_type: type[T],
        pk: str,
        options: ListOptions | None = None,
    ) -> list[T]:
        options = options or ListOptions()
        req = build_list_request(_table_of(resource_type), pk, options)
        logger.debug("query %s pk=%s options=%s", req["TableName"], pk, options)
        try:
            resp = self._client.query(**req)
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err

        return [item_to_resource(resource_type, item) for item in resp.get("Items", [])]

    def list_all[T: Resource](
        self,
        resource_type: type[T],
        pk: str,
        options: ListOptions | None = None,
    ) -> Iterator[list[T]]:
        options = options or ListOptions()
        while True:
            page = self.list(resource_type, pk, options)
            if page:
                yield page
            if len(page) < options.limit:
                return
            options = options.after(page[-1])

    # -- update --------------------------------------------------------------

    def update[T: Resource](self, resource: T, patch: Mapping[str, Any]) -> T:
        return self.update_with_checks(resource, patch, [])

    def update_with_checks[T: Resource](
        self,
        resource: T,
        patch: Mapping[str, Any],
        checks: Sequence[ConditionCheck],
    ) -> T:
        updated, operation = _build_update(resource, patch, checks)
        if operation is None:
            return updated

        req = build_update_request(operation)
        logger.debug("update_item %s %s", operation.table_name, operation.key)
        try:
            self._client.update_item(**req)
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err
        return updated

    # -- delete --------------------------------------------------------------

    def delete(self, resource_type: type[Resource], pk_sk: Key) -> None:
        self.delete_with_checks(resource_type, pk_sk, [])

    def delete_with_checks(
        self,
        resource_type: type[Resource],
        pk_sk: Key,
        checks: Sequence[ConditionCheck],
    ) -> None:
        delete = _build_delete(resource_type, pk_sk, checks)
        req: dict[str, Any] = {"TableName": delete.table_name, "Key": key_item(*delete.key)}
        req.update(delete.condition.to_request())
        logger.debug("delete_item %s %s", delete.table_name, delete.key)
        try:
            self._client.delete_item(**req)
        except CALL_ERRORS as err:
            raise _map_client_error(err) from err

    # -- transactions --------------------------------------------------------

    @staticmethod
    def begin_transaction() -> TransactionContext:
        return _begin_transaction()

    def execute_transaction(self, context: TransactionContext) -> None:
        _execute_transaction(self._client, context)

    @staticmethod
    def transact_create[T: Resource](resource: T, context: TransactionContext) -> T:
        return Client.transact_create_with_checks(resource, [], context)

    @staticmethod
    def transact_create_with_checks[T: Resource](
        resource: T,
        checks: Sequence[ConditionCheck],
        context: TransactionContext,
    ) -> T:
        context.push(_build_put(resource, not_exists().merge(checks)))
        return resource

    @staticmethod
    def transact_update[T: Resource](resource: T, patch: Mapping[str, Any], context: TransactionContext) -> T:
        return Client.transact_update_with_checks(resource, patch, [], context)

    @staticmethod
    def transact_update_with_checks[T: Resource](
        resource: T,
        patch: Mapping[str, Any],
        checks: Sequence[ConditionCheck],
        context: TransactionContext,
    ) -> T:
        updated, operation = _build_update(resource, patch, checks)
        if operation is not None:
            context.push(operation)
        return updated

    @staticmethod
    def transact_delete(resource_type: type[Resource], pk_sk: Key, context: TransactionContext) -> None:
        Client.transact_delete_with_checks(resource_type, pk_sk, [], context)

    @staticmethod
    def transact_delete_with_checks(
        resource_type: type[Resource],
        pk_sk: Key,
        checks: Sequence[ConditionCheck],
        context: TransactionContext,
    ) -> None:
        context.push(_build_delete(resource_type, pk_sk, checks))

    @staticmethod
    def transact_condition_check(
        resource_type: type[Resource],
        pk_sk: Key,
        check: ConditionCheck,
        context: TransactionContext,
    ) -> None:
        context.push(
            TransactConditionCheck(
                table_name=_table_of(resource_type),
                key=_checked_key(pk_sk),
                condition=check,
            )
        )
