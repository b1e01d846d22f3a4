"""
stock_services.receiving_service -- Stock receipts with weighted-average repricing.

Responsibility:
    Receive sea, air and local units for one product: lock the row, price
    the imported routes at their landed cost, recompute the pool average
    with the ValuationEngine, add each route's units to its own tranche,
    and optionally record a new shipment date.

Architecture position:
    Services -- imperative shell over stock_engines + stock_kernel.
    Runs inside the caller's unit of work; never commits.

Invariants enforced:
    - The product row is read FOR UPDATE before the average is computed, so
      two concurrent receipts cannot both price off the same old quantity.
    - Average and tranche increments are written together in one flush.
    - stock_qty is rewritten as the tranche total.

Failure modes:
    - ProductNotFoundError for an unknown product.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from stock_engines.valuation import PoolPosition, ValuationEngine, receipt_batches
from stock_kernel.domain.dtos import ReceiveStockRequest
from stock_kernel.logging_config import get_logger
from stock_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.receiving")


@dataclass(frozen=True)
class ReceiptResult:
    """Outcome of one receipt."""

    product_id: UUID
    applied: bool
    total_received: int = 0
    new_average_cost: Decimal | None = None
    stock_qty: int | None = None
    shipment_date_updated: bool = False

    @classmethod
    def noop(cls, product_id: UUID) -> ReceiptResult:
        return cls(product_id=product_id, applied=False)


@dataclass(frozen=True)
class BulkReceiptResult:
    """Outcome of a bulk receipt; ``processed`` counts every request handled."""

    receipts: tuple[ReceiptResult, ...]
    batches: int = 0

    @property
    def processed(self) -> int:
        return len(self.receipts)


class ReceivingService:
    """
    Receives stock for one product at a time.

    Contract:
        Receives a Session from the caller.  ``receive`` flushes but never
        commits.
    """

    def __init__(self, session: Session, valuation: ValuationEngine | None = None):
        self.session = session
        self._store = InventoryStore(session)
        self._valuation = valuation or ValuationEngine()

    def receive(self, request: ReceiveStockRequest) -> ReceiptResult:
        """
        Apply one receipt.

        A request with no units and no shipment date does not touch the
        store.  A request with only a shipment date updates the date and
        leaves quantities and the average alone.
        """
        if request.is_empty:
            logger.debug("stock_receipt_empty", extra={
                "product_id": str(request.product_id),
            })
            return ReceiptResult.noop(request.product_id)

        product = self._store.get_product_for_update(request.product_id)

        current = PoolPosition(
            quantity=product.tranches.total,
            average_cost=product.avg_purchase_price,
        )
        valuation = self._valuation.receive(
            current=current,
            batches=receipt_batches(
                product,
                sea_qty=request.sea_qty,
                air_qty=request.air_qty,
                local_qty=request.local_qty,
                local_unit_price=request.local_unit_price,
            ),
        )

        levels = product.tranches.plus(
            local=request.local_qty,
            air=request.air_qty,
            sea=request.sea_qty,
        )
        updated = replace(
            product.with_tranches(levels),
            avg_purchase_price=valuation.new_average_cost,
        )
        if request.shipment_date is not None:
            updated = replace(updated, shipment_date=request.shipment_date)

        self._store.save_product(updated)

        logger.info("stock_received", extra={
            "product_id": str(product.product_id),
            "sea_qty": request.sea_qty,
            "air_qty": request.air_qty,
            "local_qty": request.local_qty,
            "previous_average_cost": str(product.avg_purchase_price),
            "new_average_cost": str(updated.avg_purchase_price),
            "stock_qty": updated.stock_qty,
            "shipment_date": request.shipment_date,
        })

        return ReceiptResult(
            product_id=product.product_id,
            applied=True,
            total_received=request.total_incoming,
            new_average_cost=updated.avg_purchase_price,
            stock_qty=updated.stock_qty,
            shipment_date_updated=request.shipment_date is not None,
        )
