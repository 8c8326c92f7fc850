from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .errors import InvalidRequestError
from .model import PK, SK, Resource, resource_key

DEFAULT_LIST_LIMIT = 25

# Stand-ins for "no lower bound" / "no upper bound" on the sort key. Sort keys starting
# with "\x00", equal to ASCENDING_SENTINEL, or sorting after DESCENDING_SENTINEL
# cannot be reached from a first page.
ASCENDING_SENTINEL = "\x01"
DESCENDING_SENTINEL = "\U0010ffff" * 8


@dataclass(frozen=True)
class ListOptions:
    """Pagination options for listing resources under one PrimaryKey.

    ``from_`` is the exclusive sort key to continue from; ``None`` starts from the
    beginning (or the end when ``sort_desc`` is set).
    """

    from_: str | None = None
    limit: int = DEFAULT_LIST_LIMIT
    sort_desc: bool = False

    def after(self, resource: Resource) -> ListOptions:
        _, sk = resource_key(resource)
        return replace(self, from_=sk)


def sort_key_bound(options: ListOptions) -> tuple[str, str]:
    operator = "<" if options.sort_desc else ">"
    if options.from_ is not None:
        return operator, options.from_
    return operator, DESCENDING_SENTINEL if options.sort_desc else ASCENDING_SENTINEL


def build_list_request(table_name: str, pk: str, options: ListOptions) -> dict[str, Any]:
    if not isinstance(pk, str):
        raise InvalidRequestError("pk must be a string")
    if isinstance(options.limit, bool) or not isinstance(options.limit, int) or options.limit <= 0:
        raise InvalidRequestError("limit must be > 0")
    if options.from_ is not None and not options.from_:
        raise InvalidRequestError("from_ must be a non-empty sort key")

    operator, bound = sort_key_bound(options)
    return {
        "TableName": table_name,
        "KeyConditionExpression": f"#pk = :pk AND #sk {operator} :sk",
        "ExpressionAttributeNames": {"#pk": PK, "#sk": SK},
        "ExpressionAttributeValues": {":pk": {"S": pk}, ":sk": {"S": bound}},
        "Limit": options.limit,
        "ScanIndexForward": not options.sort_desc,
    }
