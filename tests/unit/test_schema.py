from __future__ import annotations

from dataclasses import dataclass

import pytest
import yaml

from dynares_py.errors import InvalidRequestError, StoreError, TableAlreadyExistsError, UnexpectedError
from dynares_py.mocks import FakeDynamoDBClient, client_error
from dynares_py.schema import (
    CreateTableOptions,
    build_create_table_request,
    create_sam_resource,
    create_table,
)


@dataclass(frozen=True)
class Order:
    customer: str
    order_id: str

    @classmethod
    def table(cls) -> str:
        return "Orders"

    def pk_sk(self) -> tuple[str, str]:
        return self.customer, self.order_id


@dataclass(frozen=True)
class Nameless:
    @classmethod
    def table(cls) -> str:
        return ""

    def pk_sk(self) -> tuple[str, str]:
        return "a", "b"


def _no_sleep(_: float) -> None:
    return None


def test_build_create_table_request_uses_fixed_key_schema() -> None:
    req = build_create_table_request(Order)

    assert req == {
        "TableName": "Orders",
        "AttributeDefinitions": [
            {"AttributeName": "PrimaryKey", "AttributeType": "S"},
            {"AttributeName": "SecondaryKey", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "PrimaryKey", "KeyType": "HASH"},
            {"AttributeName": "SecondaryKey", "KeyType": "RANGE"},
        ],
        "ProvisionedThroughput": {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5},
    }


def test_build_create_table_request_validates_options() -> None:
    req = build_create_table_request(Order, CreateTableOptions(read_capacity=10, write_capacity=2))
    assert req["ProvisionedThroughput"] == {"ReadCapacityUnits": 10, "WriteCapacityUnits": 2}

    with pytest.raises(InvalidRequestError, match="must be > 0"):
        build_create_table_request(Order, CreateTableOptions(read_capacity=0))
    with pytest.raises(InvalidRequestError, match="must return a table name"):
        build_create_table_request(Nameless)


def test_create_table_waits_until_active() -> None:
    fake = FakeDynamoDBClient()
    fake.expect("create_table", {"TableName": "Orders"})
    fake.expect("describe_table", {"TableName": "Orders"}, response={"Table": {"TableStatus": "CREATING"}})
    fake.expect("describe_table", {"TableName": "Orders"}, response={"Table": {"TableStatus": "ACTIVE"}})

    create_table(fake, Order, sleep=_no_sleep)
    fake.assert_no_pending()


def test_create_table_tolerates_not_found_while_waiting() -> None:
    fake = FakeDynamoDBClient()
    fake.expect("create_table")
    fake.expect("describe_table", error=client_error("describe_table", "ResourceNotFoundException", "not yet"))
    fake.expect("describe_table", response={"Table": {"TableStatus": "ACTIVE"}})

    create_table(fake, Order, sleep=_no_sleep)
    fake.assert_no_pending()


def test_create_table_times_out() -> None:
    fake = FakeDynamoDBClient()
    fake.expect("create_table")
    fake.expect("describe_table", response={"Table": {"TableStatus": "CREATING"}})

    with pytest.raises(UnexpectedError, match="timed out waiting for table ACTIVE: Orders"):
        create_table(fake, Order, wait_timeout_seconds=0, sleep=_no_sleep)


def test_create_table_existing_table() -> None:
    exists = client_error("create_table", "ResourceInUseException", "Table already exists: Orders")

    fake = FakeDynamoDBClient()
    fake.expect("create_table", error=exists)
    create_table(fake, Order, wait_for_active=False)
    fake.assert_no_pending()

    fake.expect("create_table", error=exists)
    with pytest.raises(TableAlreadyExistsError, match="Table already exists"):
        create_table(fake, Order, exist_ok=False, wait_for_active=False)


def test_create_table_propagates_other_errors() -> None:
    fake = FakeDynamoDBClient()
    fake.expect("create_table", error=client_error("create_table", "LimitExceededException", "too many tables"))

    with pytest.raises(StoreError, match="too many tables"):
        create_table(fake, Order, wait_for_active=False)


def test_create_sam_resource_renders_table_definition() -> None:
    rendered = create_sam_resource(Order, CreateTableOptions(read_capacity=1, write_capacity=1))
    doc = yaml.safe_load(rendered)

    assert list(doc) == ["OrdersDynamoDBTable"]
    resource = doc["OrdersDynamoDBTable"]
    assert resource["Type"] == "AWS::DynamoDB::Table"
    assert resource["Properties"]["TableName"] == "Orders"
    assert resource["Properties"]["KeySchema"][0] == {"AttributeName": "PrimaryKey", "KeyType": "HASH"}
    assert resource["Properties"]["ProvisionedThroughput"] == {"ReadCapacityUnits": 1, "WriteCapacityUnits": 1}
    assert rendered.startswith("OrdersDynamoDBTable:\n")
