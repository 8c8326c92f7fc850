from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import yaml

from .aws_errors import CALL_ERRORS, map_create_table_error
from .aws_errors import map_client_error as _map_client_error
from .errors import InvalidRequestError, TableAlreadyExistsError, UnexpectedError
from .model import PK, SK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateTableOptions:
    read_capacity: int = 5
    write_capacity: int = 5


def _resolve(resource_type: type[Any], options: CreateTableOptions | None) -> tuple[str, CreateTableOptions]:
    table_name = resource_type.table()
    if not isinstance(table_name, str) or not table_name:
        raise InvalidRequestError(f"{resource_type.__name__}.table() must return a table name")

    options = options or CreateTableOptions()
    if options.read_capacity <= 0 or options.write_capacity <= 0:
        raise InvalidRequestError("read_capacity and write_capacity must be > 0")
    return table_name, options


def build_create_table_request(
    resource_type: type[Any],
    options: CreateTableOptions | None = None,
) -> dict[str, Any]:
    table_name, options = _resolve(resource_type, options)
    return {
        "TableName": table_name,
        "AttributeDefinitions": [
            {"AttributeName": PK, "AttributeType": "S"},
            {"AttributeName": SK, "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": PK, "KeyType": "HASH"},
            {"AttributeName": SK, "KeyType": "RANGE"},
        ],
        "ProvisionedThroughput": {
            "ReadCapacityUnits": options.read_capacity,
            "WriteCapacityUnits": options.write_capacity,
        },
    }


def create_table(
    client: Any,
    resource_type: type[Any],
    options: CreateTableOptions | None = None,
    *,
    exist_ok: bool = True,
    wait_for_active: bool = True,
    wait_timeout_seconds: float = 300.0,
    poll_interval_seconds: float = 0.25,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    req = build_create_table_request(resource_type, options)
    table_name = req["TableName"]

    try:
        client.create_table(**req)
        logger.info("created table %s", table_name)
    except CALL_ERRORS as err:
        mapped = map_create_table_error(err)
        if not (exist_ok and isinstance(mapped, TableAlreadyExistsError)):
            raise mapped from err
        logger.debug("table %s already exists", table_name)

    if wait_for_active:
        _wait_for_table_active(
            client,
            table_name,
            timeout_seconds=wait_timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
            sleep=sleep,
        )


def _wait_for_table_active(
    client: Any,
    table_name: str,
    *,
    timeout_seconds: float,
    poll_interval_seconds: float,
    sleep: Callable[[float], None],
) -> None:
    deadline = time.monotonic() + timeout_seconds
    while True:
        try:
            resp = client.describe_table(TableName=table_name)
        except CALL_ERRORS as err:
            mapped = _map_client_error(err)
            if getattr(mapped, "code", "") != "ResourceNotFoundException":
                raise mapped from err
            resp = {}

        status = str(resp.get("Table", {}).get("TableStatus", ""))
        if status == "ACTIVE":
            return
        if time.monotonic() >= deadline:
            raise UnexpectedError(f"timed out waiting for table ACTIVE: {table_name}")
        sleep(poll_interval_seconds)


def create_sam_resource(resource_type: type[Any], options: CreateTableOptions | None = None) -> str:
    req = build_create_table_request(resource_type, options)
    table_name = req["TableName"]
    resource = {
        f"{table_name}DynamoDBTable": {
            "Type": "AWS::DynamoDB::Table",
            "Properties": {
                "TableName": table_name,
                "AttributeDefinitions": req["AttributeDefinitions"],
                "KeySchema": req["KeySchema"],
                "ProvisionedThroughput": req["ProvisionedThroughput"],
            },
        }
    }
    return yaml.safe_dump(resource, sort_keys=False)
