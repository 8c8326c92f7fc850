from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, cast

import boto3
from botocore.config import Config

from .errors import InvalidRequestError

DEFAULT_REGION = "us-east-1"
LOCAL_ENDPOINT = "http://localhost:8000"


@dataclass(frozen=True)
class ClientSettings:
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None
    connect_timeout: float = 1.0
    read_timeout: float = 3.0
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> ClientSettings:
        return cls(
            region=environ.get("AWS_REGION") or DEFAULT_REGION,
            endpoint_url=(environ.get("DYNAMODB_ENDPOINT") or "").strip() or None,
            connect_timeout=_float_env(environ, "DYNARES_CONNECT_TIMEOUT", 1.0),
            read_timeout=_float_env(environ, "DYNARES_READ_TIMEOUT", 3.0),
        )


def _float_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as err:
        raise InvalidRequestError(f"{name} must be a number, got {raw!r}") from err
    if value <= 0:
        raise InvalidRequestError(f"{name} must be > 0")
    return value


def local_settings(endpoint_url: str = LOCAL_ENDPOINT) -> ClientSettings:
    # DynamoDB Local accepts any credentials, it only needs some to sign with.
    return ClientSettings(
        region=DEFAULT_REGION,
        endpoint_url=endpoint_url,
        aws_access_key_id=".",
        aws_secret_access_key=".",
    )


def create_boto3_config(*, connect_timeout: float = 1.0, read_timeout: float = 3.0) -> Config:
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )


def create_dynamodb_client(settings: ClientSettings, *, session: Any | None = None) -> Any:
    kwargs: dict[str, Any] = {
        "region_name": settings.region,
        "config": create_boto3_config(
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        ),
    }
    if settings.endpoint_url is not None:
        kwargs["endpoint_url"] = settings.endpoint_url
    if settings.aws_access_key_id is not None:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key is not None:
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    sess = session or boto3.session.Session()
    return cast(Any, sess).client("dynamodb", **kwargs)
