"""
stock_services.checkout_service -- Point-of-sale deductions.

Responsibility:
    Deduct sold quantities from each product's tranches (local -> air ->
    sea) for a batch of line items inside one transaction.

Architecture position:
    Services -- imperative shell.  The InventoryEngine splits long carts
    into batches and calls ``checkout_batch`` once per unit of work.

Invariants enforced:
    - Every product in the batch is locked FOR UPDATE before any line is
      applied, in ascending id order, so concurrent batches touching the
      same products cannot deadlock.
    - Lines are applied in the order given; several lines for the same
      product see each other's deductions.
    - The configured oversell policy decides whether a shortfall is
      clamped (logged) or rejected (the whole batch rolls back).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from stock_config.schema import OversellPolicy
from stock_engines.tranche import TrancheAllocator, TrancheDeduction
from stock_kernel.domain.dtos import CheckoutLine, ProductSnapshot
from stock_kernel.logging_config import get_logger
from stock_kernel.services.inventory_store import InventoryStore
from stock_services.deduction import deduct_stock

logger = get_logger("services.checkout")


@dataclass(frozen=True)
class CheckoutLineResult:
    product_id: UUID
    qty: int
    deduction: TrancheDeduction
    stock_qty: int


@dataclass(frozen=True)
class CheckoutResult:
    """All lines of a checkout, in request order."""

    lines: tuple[CheckoutLineResult, ...]
    batches: int = 0

    @property
    def total_shortfall(self) -> int:
        return sum(line.deduction.shortfall for line in self.lines)

    @property
    def oversold_products(self) -> tuple[UUID, ...]:
        return tuple(line.product_id for line in self.lines if line.deduction.is_oversold)


class CheckoutService:
    """Applies checkout lines to locked products."""

    def __init__(
        self,
        session: Session,
        oversell_policy: OversellPolicy = OversellPolicy.CLAMP,
        allocator: TrancheAllocator | None = None,
    ):
        self.session = session
        self._store = InventoryStore(session)
        self._allocator = allocator or TrancheAllocator()
        self._policy = oversell_policy

    def checkout_batch(self, lines: Sequence[CheckoutLine]) -> list[CheckoutLineResult]:
        """Deduct every line of one batch.  Flushes, never commits."""
        products: dict[UUID, ProductSnapshot] = {}
        for product_id in sorted({line.product_id for line in lines}, key=str):
            products[product_id] = self._store.get_product_for_update(product_id)

        results: list[CheckoutLineResult] = []
        for line in lines:
            applied = deduct_stock(
                self._allocator,
                products[line.product_id],
                line.qty,
                self._policy,
                reason="checkout",
            )
            products[line.product_id] = applied.product
            results.append(CheckoutLineResult(
                product_id=line.product_id,
                qty=line.qty,
                deduction=applied.deduction,
                stock_qty=applied.product.stock_qty,
            ))

        for snapshot in products.values():
            self._store.save_product(snapshot)

        logger.info("checkout_batch_applied", extra={
            "line_count": len(lines),
            "product_count": len(products),
            "shortfall": sum(r.deduction.shortfall for r in results),
        })
        return results
