"""
stock_services.outcome -- Map engine calls to transport-neutral outcomes.

A request layer (HTTP, RPC, a CLI) wants one value per call that says
whether the call succeeded, was rejected for a caller-correctable reason, or
failed internally.  ``OperationOutcome.from_exception`` is that mapping:

    ValidationError, NotFoundError, ConflictError -> REJECTED, reason = message
    StoreError                                    -> FAILED, reason = "internal error"

Store failure details are logged, never returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from stock_kernel.exceptions import (
    ConflictError,
    NotFoundError,
    StockKernelError,
    StoreError,
    ValidationError,
)

INTERNAL_ERROR_REASON = "internal error"


class OperationStatus(str, Enum):
    """Status of one engine operation."""

    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    FAILED = "failed"


class RejectionKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class OperationOutcome:
    """Result of an engine operation for a transport layer."""

    status: OperationStatus
    operation: str
    value: Any = None
    code: str | None = None
    reason: str | None = None
    kind: RejectionKind | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, operation: str, value: Any = None) -> OperationOutcome:
        return cls(status=OperationStatus.SUCCEEDED, operation=operation, value=value)

    @classmethod
    def from_exception(cls, operation: str, exc: StockKernelError) -> OperationOutcome:
        if isinstance(exc, StoreError):
            return cls(
                status=OperationStatus.FAILED,
                operation=operation,
                code=exc.code,
                reason=INTERNAL_ERROR_REASON,
            )

        # ReturnExceedsLoanError is both; a conflict with the loan's state wins.
        if isinstance(exc, ConflictError):
            kind = RejectionKind.CONFLICT
        elif isinstance(exc, NotFoundError):
            kind = RejectionKind.NOT_FOUND
        elif isinstance(exc, ValidationError):
            kind = RejectionKind.VALIDATION
        else:
            return cls(
                status=OperationStatus.FAILED,
                operation=operation,
                code=exc.code,
                reason=INTERNAL_ERROR_REASON,
            )

        return cls(
            status=OperationStatus.REJECTED,
            operation=operation,
            code=exc.code,
            reason=str(exc),
            kind=kind,
        )
