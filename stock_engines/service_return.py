"""
Module: stock_engines.service_return
Responsibility:
    State machine of a service loan: open a loan entry, and plan a partial
    or full return against it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The ServiceLedger in
    stock_services applies the plans inside a unit of work.

States:
    active (qty > 0) --return k < qty--> active (qty - k)
    active (qty > 0) --return k == qty--> returned (qty 0, terminal)

Invariants enforced:
    - A returned entry is terminal; any further return is a conflict.
    - A return never exceeds what is still out on loan.
    - Returned units always re-enter stock through the local tranche.

Failure modes:
    - InvalidQuantityError for qty <= 0.
    - ServiceLogAlreadyReturnedError for a return against a returned entry.
    - ReturnExceedsLoanError for qty > remaining.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from stock_kernel.domain.dtos import ServiceLogSnapshot, ServiceLogStatus
from stock_kernel.exceptions import (
    InvalidQuantityError,
    ReturnExceedsLoanError,
    ServiceLogAlreadyReturnedError,
)


@dataclass(frozen=True)
class ReturnPlan:
    """How a return changes one loan entry."""

    before: ServiceLogSnapshot
    after: ServiceLogSnapshot
    returned_qty: int

    @property
    def closes_loan(self) -> bool:
        return self.after.status == ServiceLogStatus.RETURNED


def open_loan(
    product_id: UUID,
    qty: int,
    unit_cost: Decimal,
    loan_type: str,
    label: str,
    created_at: datetime,
    log_id: UUID | None = None,
) -> ServiceLogSnapshot:
    """Build a new active loan entry."""
    if qty <= 0:
        raise InvalidQuantityError("qty", qty)
    return ServiceLogSnapshot(
        log_id=log_id or uuid4(),
        product_id=product_id,
        model=label,
        qty=qty,
        loan_type=loan_type,
        return_cost=unit_cost,
        status=ServiceLogStatus.ACTIVE,
        created_at=created_at,
    )


def plan_return(log: ServiceLogSnapshot, qty: int) -> ReturnPlan:
    """
    Validate a return and compute the entry after it.

    Checks run in order: quantity, terminal state, remaining quantity.
    """
    if qty <= 0:
        raise InvalidQuantityError("qty", qty)
    if not log.is_active:
        raise ServiceLogAlreadyReturnedError(str(log.log_id))
    if qty > log.qty:
        raise ReturnExceedsLoanError(str(log.log_id), requested=qty, remaining=log.qty)

    remaining = log.qty - qty
    status = ServiceLogStatus.RETURNED if remaining == 0 else ServiceLogStatus.ACTIVE
    return ReturnPlan(
        before=log,
        after=replace(log, qty=remaining, status=status),
        returned_qty=qty,
    )
