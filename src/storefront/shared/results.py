"""Typed outcomes for storefront operations.

Stock shortfalls, rejected transitions and missing records are everyday
outcomes, so services return a ``Result`` instead of raising. Only unexpected
conditions (storage failures, broken invariants) propagate as exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_TRANSITION = "invalid_transition"
    FORBIDDEN = "forbidden"
    EMPTY_CART = "empty_cart"
    VALIDATION_FAILED = "validation_failed"


@dataclass(frozen=True)
class Failure:
    """Why an operation was rejected, with a human-readable message."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Result:
    """Outcome of a service operation."""

    ok: bool
    value: Any = None
    error: Failure | None = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, **details: Any) -> "Result":
        return cls(ok=False, error=Failure(code=code, message=message, details=details))

    @property
    def code(self) -> ErrorCode | None:
        return self.error.code if self.error else None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None


def not_found(entity: str, identifier: Any) -> Result:
    return Result.failure(ErrorCode.NOT_FOUND, f"{entity} {identifier} not found", entity=entity, id=identifier)
