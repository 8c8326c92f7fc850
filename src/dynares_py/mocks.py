from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError, EndpointConnectionError


class _AnyValue:
    def __repr__(self) -> str:  # pragma: no cover
        return "ANY"


ANY: Any = _AnyValue()


@dataclass(frozen=True)
class Exact:
    """Expected mapping that must carry exactly its own keys, no more."""

    value: Mapping[str, Any]


def exact(value: Mapping[str, Any]) -> Exact:
    return Exact(dict(value))


_OPERATION_NAMES = {
    "put_item": "PutItem",
    "get_item": "GetItem",
    "update_item": "UpdateItem",
    "delete_item": "DeleteItem",
    "query": "Query",
    "batch_get_item": "BatchGetItem",
    "transact_write_items": "TransactWriteItems",
    "create_table": "CreateTable",
    "describe_table": "DescribeTable",
}


def _mismatch(expected: Any, actual: Any, path: str) -> str | None:
    """Describe the first difference between ``expected`` and ``actual``.

    Mappings match as subsets unless wrapped with ``exact``; lists match
    element-wise and must have the same length.
    """
    if expected is ANY:
        return None

    strict = isinstance(expected, Exact)
    if strict:
        expected = expected.value

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            return f"{path}: expected dict, got {type(actual).__name__}"
        missing = [key for key in expected if key not in actual]
        if missing:
            return f"{path}: missing key {missing[0]!r}"
        extra = sorted(str(key) for key in actual if key not in expected) if strict else []
        if extra:
            return f"{path}: unexpected keys {extra}"
        for key, value in expected.items():
            found = _mismatch(value, actual[key], f"{path}.{key}")
            if found:
                return found
        return None

    if isinstance(expected, list):
        if not isinstance(actual, list):
            return f"{path}: expected list, got {type(actual).__name__}"
        if len(expected) != len(actual):
            return f"{path}: expected {len(expected)} items, got {len(actual)}"
        for i, (e, a) in enumerate(zip(expected, actual, strict=True)):
            found = _mismatch(e, a, f"{path}[{i}]")
            if found:
                return found
        return None

    if expected != actual:
        return f"{path}: expected {expected!r}, got {actual!r}"
    return None


def client_error(method: str, code: str, message: str = "", **extra: Any) -> ClientError:
    response: dict[str, Any] = {"Error": {"Code": code, "Message": message}}
    response.update(extra)
    return ClientError(response, _OPERATION_NAMES.get(method, method))  # type: ignore[arg-type]


def conditional_check_failed(method: str) -> ClientError:
    return client_error(method, "ConditionalCheckFailedException", "The conditional request failed")


def transaction_canceled(codes: Sequence[str]) -> ClientError:
    message = (
        "Transaction cancelled, please refer cancellation reasons for specific reasons "
        f"[{', '.join(codes)}]"
    )
    reasons = [
        {"Code": code, "Message": "The conditional request failed"} if code == "ConditionalCheckFailed" else {"Code": code}
        for code in codes
    ]
    return client_error("transact_write_items", "TransactionCanceledException", message, CancellationReasons=reasons)


def connection_refused(endpoint_url: str = "http://localhost:8000") -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url=endpoint_url)


@dataclass(frozen=True)
class ExpectedCall:
    method: str
    expected: Mapping[str, Any] | Exact | Callable[[Mapping[str, Any]], None] | None = None
    response: Mapping[str, Any] | None = None
    error: Exception | None = None

    def check(self, method: str, req: Mapping[str, Any]) -> None:
        if method != self.method:
            raise AssertionError(f"expected {self.method}, got {method}")
        if self.expected is None:
            return
        if callable(self.expected):
            self.expected(req)
            return
        found = _mismatch(self.expected, req, method)
        if found:
            raise AssertionError(found)

    def reply(self) -> Mapping[str, Any]:
        if self.error is not None:
            raise self.error
        return dict(self.response or {})


class FakeDynamoDBClient:
    """Scripted stand-in for a boto3 DynamoDB client.

    Every call must have been announced with ``expect`` in order; the request is
    checked against the expectation and the canned response (or error) returned.
    """

    def __init__(self) -> None:
        self._expected: list[ExpectedCall] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def expect(
        self,
        method: str,
        expected: Mapping[str, Any] | Exact | Callable[[Mapping[str, Any]], None] | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        if method not in _OPERATION_NAMES:
            raise ValueError(f"unsupported method: {method}")
        self._expected.append(ExpectedCall(method=method, expected=expected, response=response, error=error))

    def assert_no_pending(self) -> None:
        if self._expected:
            raise AssertionError(f"pending expected calls: {self._expected!r}")

    def methods_called(self) -> list[str]:
        return [method for method, _ in self.calls]

    def _handle(self, method: str, req: dict[str, Any]) -> Mapping[str, Any]:
        self.calls.append((method, dict(req)))
        if not self._expected:
            raise AssertionError(f"unexpected call: {method}")

        call = self._expected.pop(0)
        call.check(method, req)
        return call.reply()

    def put_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("put_item", kwargs)

    def get_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("get_item", kwargs)

    def update_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("update_item", kwargs)

    def delete_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("delete_item", kwargs)

    def query(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("query", kwargs)

    def batch_get_item(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("batch_get_item", kwargs)

    def transact_write_items(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("transact_write_items", kwargs)

    def create_table(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("create_table", kwargs)

    def describe_table(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("describe_table", kwargs)
