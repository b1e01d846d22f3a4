"""
Module: stock_kernel.selectors.service_log_selector
Responsibility: Read-only listing of service loans.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import select

from stock_kernel.domain.dtos import ServiceLogSnapshot, ServiceLogStatus
from stock_kernel.models.service_log import ServiceLogModel
from stock_kernel.selectors.base import BaseSelector


class ServiceLogSelector(BaseSelector):
    """Queries over product_logs."""

    def active_loans(self) -> list[ServiceLogSnapshot]:
        """Loans still out (status active), newest first."""
        rows = self.session.execute(
            select(ServiceLogModel)
            .where(ServiceLogModel.status == ServiceLogStatus.ACTIVE.value)
            .order_by(ServiceLogModel.created_at.desc(), ServiceLogModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]
