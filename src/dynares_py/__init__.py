from __future__ import annotations

import json
import re
from importlib.resources import files
from typing import TYPE_CHECKING, Any

from .codec import decode_document, decode_value, encode_document, encode_value
from .conditions import (
    ConditionCheck,
    Operator,
    Placeholders,
    compare,
    compare_number,
    compare_string,
    exists,
    field_exists,
    field_not_exists,
    merge,
    not_exists,
)
from .errors import (
    AttributeParseError,
    AttributeSerializeError,
    CancellationReason,
    ConditionFailedError,
    DynaresError,
    InvalidRequestError,
    ResourceDeserializeError,
    StoreConnectionError,
    StoreError,
    TableAlreadyExistsError,
    TransactionCanceledError,
    TransactionConditionFailedError,
    UnexpectedError,
)
from .model import PK, SK, Key, Resource, document_as_resource, resource_as_document
from .query import ASCENDING_SENTINEL, DEFAULT_LIST_LIMIT, DESCENDING_SENTINEL, ListOptions
from .transaction import (
    TransactConditionCheck,
    TransactDelete,
    TransactionContext,
    TransactPut,
    TransactUpdate,
    TransactWriteAction,
    begin_transaction,
)

if TYPE_CHECKING:
    from .client import Client
    from .runtime import ClientSettings, create_boto3_config, create_dynamodb_client
    from .schema import CreateTableOptions, build_create_table_request, create_sam_resource, create_table


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


def __getattr__(name: str) -> Any:
    if name == "Client":
        from .client import Client

        return Client
    if name in {"ClientSettings", "create_boto3_config", "create_dynamodb_client"}:
        from . import runtime

        return getattr(runtime, name)
    if name in {"CreateTableOptions", "build_create_table_request", "create_sam_resource", "create_table"}:
        from . import schema

        return getattr(schema, name)
    raise AttributeError(name)


__all__ = [
    "ASCENDING_SENTINEL",
    "AttributeParseError",
    "AttributeSerializeError",
    "CancellationReason",
    "Client",
    "ClientSettings",
    "ConditionCheck",
    "ConditionFailedError",
    "CreateTableOptions",
    "DEFAULT_LIST_LIMIT",
    "DESCENDING_SENTINEL",
    "DynaresError",
    "InvalidRequestError",
    "Key",
    "ListOptions",
    "Operator",
    "PK",
    "Placeholders",
    "Resource",
    "ResourceDeserializeError",
    "SK",
    "StoreConnectionError",
    "StoreError",
    "TableAlreadyExistsError",
    "TransactConditionCheck",
    "TransactDelete",
    "TransactPut",
    "TransactUpdate",
    "TransactWriteAction",
    "TransactionCanceledError",
    "TransactionConditionFailedError",
    "TransactionContext",
    "UnexpectedError",
    "__repo_version__",
    "__version__",
    "begin_transaction",
    "build_create_table_request",
    "compare",
    "compare_number",
    "compare_string",
    "create_boto3_config",
    "create_dynamodb_client",
    "create_sam_resource",
    "create_table",
    "decode_document",
    "decode_value",
    "document_as_resource",
    "encode_document",
    "encode_value",
    "exists",
    "field_exists",
    "field_not_exists",
    "merge",
    "not_exists",
    "resource_as_document",
]
