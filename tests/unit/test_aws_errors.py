from __future__ import annotations

from botocore.exceptions import ClientError, ConnectTimeoutError

from dynares_py.aws_errors import map_client_error, map_create_table_error, map_transaction_error
from dynares_py.errors import (
    ConditionFailedError,
    StoreConnectionError,
    StoreError,
    TableAlreadyExistsError,
    TransactionCanceledError,
    TransactionConditionFailedError,
)
from dynares_py.mocks import client_error, conditional_check_failed, transaction_canceled


def test_conditional_check_failure_maps_to_condition_failed() -> None:
    err = map_client_error(conditional_check_failed("put_item"))
    assert isinstance(err, ConditionFailedError)
    assert err.message == "The conditional request failed"


def test_connection_errors_map_to_store_connection_error() -> None:
    err = map_client_error(ConnectTimeoutError(endpoint_url="http://localhost:8000"))
    assert isinstance(err, StoreConnectionError)


def test_unknown_codes_become_store_errors() -> None:
    err = map_client_error(client_error("query", "ValidationException", "bad expression"))
    assert type(err) is StoreError
    assert err.code == "ValidationException"
    assert err.message == "bad expression"

    bare = map_client_error(ClientError({}, "Query"))
    assert isinstance(bare, StoreError)
    assert bare.code == "UnknownError"


def test_non_aws_errors_pass_through() -> None:
    boom = RuntimeError("boom")
    assert map_client_error(boom) is boom


def test_transaction_cancellation_through_generic_mapping() -> None:
    err = map_client_error(transaction_canceled(["ConditionalCheckFailed"]))
    assert isinstance(err, TransactionConditionFailedError)


def test_transaction_cancellation_without_reasons_uses_message() -> None:
    raw = client_error(
        "transact_write_items",
        "TransactionCanceledException",
        "Transaction cancelled, please refer cancellation reasons for specific reasons [ConditionalCheckFailed]",
    )
    err = map_transaction_error(raw)
    assert isinstance(err, TransactionConditionFailedError)
    assert err.reasons == ()

    conflict = map_transaction_error(
        client_error("transact_write_items", "TransactionCanceledException", "conflict")
    )
    assert type(conflict) is TransactionCanceledError


def test_transaction_reasons_default_missing_codes_to_none() -> None:
    raw = client_error(
        "transact_write_items",
        "TransactionCanceledException",
        "cancelled",
        CancellationReasons=[{}, {"Code": "ConditionalCheckFailed", "Message": "nope"}],
    )
    err = map_transaction_error(raw)
    assert isinstance(err, TransactionCanceledError)
    assert err.reason_codes == ("None", "ConditionalCheckFailed")
    assert err.reasons[1].message == "nope"
    assert err.reasons[1].index == 1


def test_map_transaction_error_falls_back_for_other_codes() -> None:
    err = map_transaction_error(client_error("transact_write_items", "ValidationException", "bad"))
    assert type(err) is StoreError


def test_map_create_table_error() -> None:
    err = map_create_table_error(client_error("create_table", "ResourceInUseException", "Table already exists"))
    assert isinstance(err, TableAlreadyExistsError)

    other = map_create_table_error(client_error("create_table", "LimitExceededException", "slow down"))
    assert isinstance(other, StoreError)
    assert other.code == "LimitExceededException"
