from __future__ import annotations

from dataclasses import dataclass


class DynaresError(Exception):
    pass


class StoreConnectionError(DynaresError):
    pass


class TableAlreadyExistsError(DynaresError):
    pass


class UnexpectedError(DynaresError):
    pass


class InvalidRequestError(DynaresError):
    pass


class AttributeParseError(DynaresError):
    pass


class AttributeSerializeError(DynaresError):
    pass


class ResourceDeserializeError(DynaresError):
    pass


class StoreError(DynaresError):
    def __init__(self, message: str, *, code: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ConditionFailedError(StoreError):
    pass


@dataclass(frozen=True)
class CancellationReason:
    index: int
    code: str
    message: str = ""


class TransactionCanceledError(StoreError):
    def __init__(self, message: str, *, reasons: tuple[CancellationReason, ...] = ()) -> None:
        super().__init__(message, code="TransactionCanceledException")
        self.reasons = reasons

    @property
    def reason_codes(self) -> tuple[str, ...]:
        return tuple(reason.code for reason in self.reasons)

    @property
    def failed_condition_indexes(self) -> tuple[int, ...]:
        return tuple(reason.index for reason in self.reasons if reason.code == "ConditionalCheckFailed")


class TransactionConditionFailedError(TransactionCanceledError, ConditionFailedError):
    pass
