"""
Pure domain layer.

Snapshots, request DTOs and value objects with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)

All domain objects are immutable and deterministic.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.dtos import (
    CheckoutLine,
    LoanRequest,
    LowStockReport,
    ProductSnapshot,
    ReceiveStockRequest,
    ReturnRequest,
    ServiceLogSnapshot,
    ServiceLogStatus,
)
from stock_kernel.domain.values import (
    SourceRoute,
    TrancheLevels,
    coerce_decimal,
    coerce_quantity,
    coerce_uuid,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CheckoutLine",
    "LoanRequest",
    "LowStockReport",
    "ProductSnapshot",
    "ReceiveStockRequest",
    "ReturnRequest",
    "ServiceLogSnapshot",
    "ServiceLogStatus",
    "SourceRoute",
    "TrancheLevels",
    "coerce_decimal",
    "coerce_quantity",
    "coerce_uuid",
]
