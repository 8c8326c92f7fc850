from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from moto import mock_aws

from dynares_py import Client, ClientSettings

# Runs against moto unless DYNAMODB_ENDPOINT points at a real DynamoDB Local.


@pytest.fixture()
def client() -> Iterator[Client]:
    endpoint = (os.environ.get("DYNAMODB_ENDPOINT") or "").strip()
    if endpoint:
        yield Client.from_settings(
            ClientSettings(
                region=os.environ.get("AWS_REGION", "us-east-1"),
                endpoint_url=endpoint,
                aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
                aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
            )
        )
        return

    with mock_aws():
        yield Client.from_settings(ClientSettings(region="us-east-1"))
