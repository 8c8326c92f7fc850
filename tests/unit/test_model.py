from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from dynares_py.errors import AttributeParseError, AttributeSerializeError, ResourceDeserializeError
from dynares_py.model import (
    PK,
    SK,
    Resource,
    document_as_resource,
    item_to_resource,
    key_item,
    resource_as_document,
    resource_key,
    resource_to_item,
)


@dataclass(frozen=True)
class Nested:
    code: int
    msg: str


@dataclass(frozen=True)
class Note:
    pk: str
    sk: str
    value: int = 0
    ratio: float = 0.5
    tags: list[str] = field(default_factory=list)
    nested: Nested | None = None

    @classmethod
    def table(cls) -> str:
        return "notes"

    def pk_sk(self) -> tuple[str, str]:
        return self.pk, self.sk


@dataclass(frozen=True)
class Clashing:
    PrimaryKey: str

    @classmethod
    def table(cls) -> str:
        return "clashing"

    def pk_sk(self) -> tuple[str, str]:
        return self.PrimaryKey, "x"


@dataclass(frozen=True)
class BadKey:
    pk: int

    @classmethod
    def table(cls) -> str:
        return "bad"

    def pk_sk(self) -> tuple[str, str]:
        return self.pk, "x"  # type: ignore[return-value]


def test_dataclass_satisfies_resource_protocol() -> None:
    assert isinstance(Note(pk="A", sk="B"), Resource)
    assert Note.table() == "notes"


def test_resource_as_document_and_back() -> None:
    note = Note(pk="A", sk="B", value=2, tags=["x"], nested=Nested(code=1, msg="m"))
    document = resource_as_document(note)

    assert document == {
        "pk": "A",
        "sk": "B",
        "value": 2,
        "ratio": 0.5,
        "tags": ["x"],
        "nested": {"code": 1, "msg": "m"},
    }
    assert document_as_resource(Note, document) == note


def test_document_as_resource_rejects_invalid_documents() -> None:
    with pytest.raises(ResourceDeserializeError):
        document_as_resource(Note, {"pk": "A"})
    with pytest.raises(ResourceDeserializeError):
        document_as_resource(Note, {"pk": "A", "sk": "B", "value": "not a number"})


def test_resource_to_item_adds_key_attributes() -> None:
    item = resource_to_item(Note(pk="A", sk="B", value=1))

    assert item[PK] == {"S": "A"}
    assert item[SK] == {"S": "B"}
    assert item["value"] == {"N": "1"}
    assert item["tags"] == {"L": []}
    assert item["nested"] == {"NULL": True}


def test_item_to_resource_drops_key_attributes() -> None:
    note = Note(pk="A", sk="B", value=7)
    assert item_to_resource(Note, resource_to_item(note)) == note


def test_reserved_attribute_names_are_rejected() -> None:
    with pytest.raises(AttributeSerializeError, match="reserved attribute names"):
        resource_to_item(Clashing(PrimaryKey="A"))


def test_resource_key_requires_strings() -> None:
    assert resource_key(Note(pk="A", sk="B")) == ("A", "B")
    with pytest.raises(AttributeSerializeError, match="pair of strings"):
        resource_key(BadKey(pk=1))


def test_key_item() -> None:
    assert key_item("A", "B") == {"PrimaryKey": {"S": "A"}, "SecondaryKey": {"S": "B"}}


@pytest.mark.parametrize("ratio", [float("nan"), float("inf"), float("-inf")])
def test_resource_to_item_rejects_non_finite_numbers(ratio: float) -> None:
    with pytest.raises(AttributeParseError, match="non-finite"):
        resource_to_item(Note(pk="A", sk="B", ratio=ratio))
