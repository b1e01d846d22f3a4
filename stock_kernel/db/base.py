"""
Module: stock_kernel.db.base
Responsibility: Declarative base shared by the products and product_logs
    tables: string-stored UUID primary keys, the Decimal -> Numeric(38, 9)
    type map and the row timestamp mixin.
Architecture position: Kernel > DB, lowest layer.  Imported by models/ only;
    imports nothing from the kernel.

Invariants enforced:
    - Every row has a uuid4 primary key, stored as a 36-character string so
      the same schema works on PostgreSQL and SQLite.
    - Prices, rates and averages are Numeric(38, 9); floats never reach a
      money column.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID in Python, String(36) in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base with a uuid4 ``id`` and the stock column type map."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TimestampedBase(Base):
    """
    Adds ``created_at`` and ``updated_at``, both filled by the database.

    ``updated_at`` moves on every UPDATE issued through the ORM.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )


UUID = PyUUID
