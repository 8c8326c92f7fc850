from __future__ import annotations

from botocore.exceptions import ClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from .errors import (
    CancellationReason,
    ConditionFailedError,
    StoreConnectionError,
    StoreError,
    TableAlreadyExistsError,
    TransactionCanceledError,
    TransactionConditionFailedError,
)

# Errors raised by a single remote call. EndpointConnectionError, ConnectTimeoutError
# and friends all derive from botocore's ConnectionError.
CALL_ERRORS = (ClientError, BotoConnectionError)


def _code_and_message(err: ClientError) -> tuple[str, str]:
    code = str(err.response.get("Error", {}).get("Code", ""))
    message = str(err.response.get("Error", {}).get("Message", ""))
    return code, message


def map_client_error(err: Exception) -> Exception:
    if isinstance(err, BotoConnectionError):
        return StoreConnectionError(f"could not connect to dynamo: {err}")
    if not isinstance(err, ClientError):
        return err

    code, message = _code_and_message(err)
    if code == "ConditionalCheckFailedException":
        return ConditionFailedError(message or "The conditional request failed", code=code)
    if code == "TransactionCanceledException":
        return map_transaction_error(err)

    return StoreError(message or str(err), code=code or "UnknownError")


def map_transaction_error(err: Exception) -> Exception:
    if not isinstance(err, ClientError):
        return map_client_error(err)

    code, message = _code_and_message(err)
    if code != "TransactionCanceledException":
        return map_client_error(err)

    reasons_raw = err.response.get("CancellationReasons") or []
    reasons = tuple(
        CancellationReason(
            index=i,
            code=str(reason.get("Code") or "None"),
            message=str(reason.get("Message") or ""),
        )
        for i, reason in enumerate(reasons_raw)
        if isinstance(reason, dict)
    )
    message = message or "transaction canceled"

    if any(reason.code == "ConditionalCheckFailed" for reason in reasons) or (
        not reasons and "ConditionalCheckFailed" in message
    ):
        return TransactionConditionFailedError(message, reasons=reasons)

    return TransactionCanceledError(message, reasons=reasons)


def map_create_table_error(err: Exception) -> Exception:
    if isinstance(err, ClientError):
        code, message = _code_and_message(err)
        if code == "ResourceInUseException":
            return TableAlreadyExistsError(message or "table already exists")
    return map_client_error(err)
