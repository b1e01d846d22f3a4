"""
Module: stock_kernel.models.service_log
Responsibility: ORM persistence for service loans: units taken out of the
    sellable pool for repair or damage handling, and how many are still out.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.

Invariants enforced:
    S1 -- qty >= 0; qty is what remains on loan, not what was loaned.
    S2 -- status is 'active' or 'returned'; a 'returned' row has qty = 0 and
          is never modified again (enforced by the service ledger).
    S3 -- return_cost is the unit cost snapshot taken at loan time.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base, UUIDString
from stock_kernel.domain.dtos import ServiceLogSnapshot, ServiceLogStatus


class ServiceLogModel(Base):
    """Persistent service loan entry."""

    __tablename__ = "product_logs"

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_product_logs_qty"),
        CheckConstraint(
            "status IN ('active', 'returned')", name="ck_product_logs_status"
        ),
        # Query: active loans, newest first
        Index("idx_product_logs_status_created", "status", "created_at"),
        Index("idx_product_logs_product", "product_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )
    model: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # INVARIANT S1: remaining quantity still out on loan
    qty: Mapped[int] = mapped_column(Integer, nullable=False)

    type: Mapped[str] = mapped_column(String(50), nullable=False, default="Repair")

    # INVARIANT S3: unit cost snapshot at loan time
    return_cost: Mapped[Decimal] = mapped_column(nullable=False)

    # INVARIANT S2
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ServiceLogStatus.ACTIVE.value
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_dto(self) -> ServiceLogSnapshot:
        return ServiceLogSnapshot(
            log_id=self.id,
            product_id=self.product_id,
            model=self.model or "",
            qty=self.qty,
            loan_type=self.type,
            return_cost=self.return_cost,
            status=ServiceLogStatus(self.status),
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: ServiceLogSnapshot) -> ServiceLogModel:
        return cls(
            id=dto.log_id,
            product_id=dto.product_id,
            model=dto.model,
            qty=dto.qty,
            type=dto.loan_type,
            return_cost=dto.return_cost,
            status=dto.status.value,
            created_at=dto.created_at,
        )

    def __repr__(self) -> str:
        return f"<ServiceLog {self.id}: product={self.product_id} qty={self.qty} {self.status}>"
