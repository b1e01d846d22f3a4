"""Database layer - engine handle, base classes, and cost rounding."""

from stock_kernel.db.base import UUID, Base, TimestampedBase, UUIDString
from stock_kernel.db.engine import DatabaseHandle
from stock_kernel.db.types import round_cost

__all__ = [
    "DatabaseHandle",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "UUID",
    "round_cost",
]
