from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass

from dynares_py import Client, ConditionFailedError, ListOptions, compare_number


@dataclass(frozen=True)
class Note:
    owner: str
    slug: str
    value: int

    @classmethod
    def table(cls) -> str:
        return "DynaresExampleNotes"

    def pk_sk(self) -> tuple[str, str]:
        return self.owner, self.slug


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    client = Client.local(os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000"))
    client.create_table(Note)

    owner = f"example-{uuid.uuid4().hex[:12]}"
    for slug, value in (("001", 1), ("010", 10), ("100", 100)):
        client.create(Note(owner=owner, slug=slug, value=value))

    note = client.get(Note, (owner, "010"))
    print("get:", note)

    if note is not None:
        try:
            client.update_with_checks(note, {"value": 11}, [compare_number("value", ">", 50)])
        except ConditionFailedError:
            print("update skipped: value is not > 50")
        print("update:", client.update(note, {"value": 11}))

    print("list desc:", client.list(Note, owner, ListOptions(sort_desc=True, limit=2)))

    ctx = client.begin_transaction()
    for slug in ("001", "010", "100"):
        client.transact_delete(Note, (owner, slug), ctx)
    client.execute_transaction(ctx)
    print("after delete:", client.list(Note, owner))


if __name__ == "__main__":
    main()
