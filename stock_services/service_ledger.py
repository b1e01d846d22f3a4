"""
stock_services.service_ledger -- Service loans and returns.

Responsibility:
    Take units out of the sellable pool for repair or damage handling,
    record them as an active loan, and bring them back in full or in part.

Architecture position:
    Services -- imperative shell over TrancheAllocator and the
    service_return state machine.  Timestamps come from the injected Clock.

Invariants enforced:
    - Loan: the product is locked, deducted through the waterfall (oversell
      policy applies) and the active loan entry is inserted, all in the
      caller's transaction.  The entry holds the units actually deducted.
    - Return: the loan entry is locked first, then its product.  Returned
      units always re-enter through the local tranche.
    - A returned entry is terminal (qty 0); further returns are conflicts.

Failure modes:
    - ProductNotFoundError when loaning an unknown product.
    - ServiceLogNotFoundError, ServiceLogAlreadyReturnedError,
      ReturnExceedsLoanError on returns.
    - InsufficientStockError on loans under the REJECT oversell policy, and
      on any loan against a product with no stock.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from stock_config.schema import OversellPolicy
from stock_engines.service_return import open_loan, plan_return
from stock_engines.tranche import TrancheAllocator, TrancheDeduction
from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import LoanRequest, ReturnRequest, ServiceLogSnapshot
from stock_kernel.exceptions import InsufficientStockError
from stock_kernel.logging_config import get_logger
from stock_kernel.selectors.service_log_selector import ServiceLogSelector
from stock_kernel.services.inventory_store import InventoryStore
from stock_services.deduction import deduct_stock

logger = get_logger("services.service_ledger")


@dataclass(frozen=True)
class ServiceLoanResult:
    log: ServiceLogSnapshot
    deduction: TrancheDeduction
    stock_qty: int


@dataclass(frozen=True)
class ServiceReturnResult:
    log: ServiceLogSnapshot
    returned_qty: int
    local_qty: int
    stock_qty: int

    @property
    def closed(self) -> bool:
        return not self.log.is_active


class ServiceLedger:
    """
    Loans stock out to service and takes it back.

    Contract:
        Receives Session and Clock via constructor injection; flushes but
        never commits.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        oversell_policy: OversellPolicy = OversellPolicy.CLAMP,
        default_service_type: str = "Repair",
        allocator: TrancheAllocator | None = None,
    ):
        self.session = session
        self._clock = clock
        self._store = InventoryStore(session)
        self._allocator = allocator or TrancheAllocator()
        self._policy = oversell_policy
        self._default_type = default_service_type

    def loan(self, request: LoanRequest) -> ServiceLoanResult:
        """
        Move ``request.qty`` units from stock into a new active loan.

        The loan label defaults to the product's model and the loan type to
        the configured default service type.

        Under the CLAMP policy a loan larger than the stock on hand records
        only the units actually taken, so a full return restores exactly what
        left.  A loan that would take nothing at all is refused.

        Raises:
            InsufficientStockError: If the product has no stock, or under the
                REJECT policy if the stock cannot cover ``request.qty``.
        """
        product = self._store.get_product_for_update(request.product_id)

        applied = deduct_stock(
            self._allocator,
            product,
            request.qty,
            self._policy,
            reason="service_loan",
        )
        taken = applied.deduction.deducted
        if taken == 0:
            raise InsufficientStockError(
                str(product.product_id), requested=request.qty, available=0,
            )
        self._store.save_product(applied.product)

        label = request.label if request.label else (product.model or "")
        entry = open_loan(
            product_id=product.product_id,
            qty=taken,
            unit_cost=request.unit_cost,
            loan_type=request.loan_type or self._default_type,
            label=label,
            created_at=self._clock.now(),
        )
        entry = self._store.add_service_log(entry)

        logger.info("service_loan_created", extra={
            "service_log_id": str(entry.log_id),
            "product_id": str(product.product_id),
            "qty": entry.qty,
            "loan_type": entry.loan_type,
            "return_cost": str(entry.return_cost),
            "stock_qty": applied.product.stock_qty,
        })

        return ServiceLoanResult(
            log=entry,
            deduction=applied.deduction,
            stock_qty=applied.product.stock_qty,
        )

    def return_units(self, request: ReturnRequest) -> ServiceReturnResult:
        """Bring ``request.qty`` units back from a loan into the local tranche."""
        entry = self._store.get_service_log(request.log_id, lock=True)
        plan = plan_return(entry, request.qty)

        product = self._store.get_product_for_update(entry.product_id)
        restocked = product.with_tranches(product.tranches.plus(local=plan.returned_qty))
        self._store.save_product(restocked)
        self._store.save_service_log(plan.after)

        logger.info("service_loan_returned", extra={
            "service_log_id": str(entry.log_id),
            "product_id": str(entry.product_id),
            "returned_qty": plan.returned_qty,
            "remaining_qty": plan.after.qty,
            "status": plan.after.status.value,
        })

        return ServiceReturnResult(
            log=plan.after,
            returned_qty=plan.returned_qty,
            local_qty=restocked.local_qty,
            stock_qty=restocked.stock_qty,
        )

    def list_active(self) -> list[ServiceLogSnapshot]:
        """Active loans, newest first."""
        return ServiceLogSelector(self.session).active_loans()
