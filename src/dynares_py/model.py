from __future__ import annotations

from collections.abc import Mapping
from functools import cache
from typing import Any, Protocol, runtime_checkable

from pydantic import PydanticSchemaGenerationError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from .codec import Document, Item, decode_document, encode_document
from .errors import AttributeSerializeError, ResourceDeserializeError

PK = "PrimaryKey"
SK = "SecondaryKey"
RESERVED_ATTRIBUTES = frozenset({PK, SK})


@runtime_checkable
class Resource(Protocol):
    @classmethod
    def table(cls) -> str: ...

    def pk_sk(self) -> tuple[str, str]: ...


type Key = tuple[str, str]


@cache
def _adapter(resource_type: type[Any]) -> TypeAdapter[Any]:
    try:
        return TypeAdapter(resource_type)
    except PydanticSchemaGenerationError as err:
        raise AttributeSerializeError(f"unsupported resource type: {resource_type.__name__}") from err


def resource_key(resource: Resource) -> Key:
    pk, sk = resource.pk_sk()
    if not isinstance(pk, str) or not isinstance(sk, str):
        raise AttributeSerializeError("pk_sk() must return a pair of strings")
    return pk, sk


def resource_as_document(resource: Resource) -> Document:
    try:
        dumped = _adapter(type(resource)).dump_python(resource, mode="json")
    except PydanticSerializationError as err:
        raise AttributeSerializeError(f"resource cannot be serialized to a document: {err}") from err

    if not isinstance(dumped, dict):
        raise AttributeSerializeError("passed resource did not serialize to a document")
    return dumped


def document_as_resource[T](resource_type: type[T], document: Mapping[str, Any]) -> T:
    try:
        return _adapter(resource_type).validate_python(dict(document))
    except PydanticValidationError as err:
        raise ResourceDeserializeError(str(err)) from err


def resource_to_item(resource: Resource) -> Item:
    document = resource_as_document(resource)
    reserved = RESERVED_ATTRIBUTES.intersection(document)
    if reserved:
        raise AttributeSerializeError(f"resource uses reserved attribute names: {sorted(reserved)}")

    pk, sk = resource_key(resource)
    item = encode_document(document)
    item[PK] = {"S": pk}
    item[SK] = {"S": sk}
    return item


def item_to_resource[T](resource_type: type[T], item: Mapping[str, Any]) -> T:
    document = decode_document(item)
    for name in RESERVED_ATTRIBUTES:
        document.pop(name, None)
    return document_as_resource(resource_type, document)


def key_item(pk: str, sk: str) -> Item:
    return {PK: {"S": pk}, SK: {"S": sk}}
