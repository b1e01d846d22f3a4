"""
stock_services.deduction -- Apply a waterfall deduction to a locked product.

Shared by checkout and service loans so that both honour the same oversell
policy.  The product snapshot must have been read under a row lock in the
current transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from stock_config.schema import OversellPolicy
from stock_engines.tranche import TrancheAllocator, TrancheDeduction
from stock_kernel.domain.dtos import ProductSnapshot
from stock_kernel.exceptions import InsufficientStockError
from stock_kernel.logging_config import get_logger

logger = get_logger("services.deduction")


@dataclass(frozen=True)
class AppliedDeduction:
    """A product snapshot after a deduction, with the waterfall detail."""

    product: ProductSnapshot
    deduction: TrancheDeduction


def deduct_stock(
    allocator: TrancheAllocator,
    product: ProductSnapshot,
    quantity: int,
    policy: OversellPolicy,
    reason: str,
) -> AppliedDeduction:
    """
    Deduct ``quantity`` from a product's tranches under ``policy``.

    Raises:
        InsufficientStockError: If the tranches cannot cover the quantity and
            the policy is REJECT.
    """
    deduction = allocator.deduct(product.tranches, quantity)

    if deduction.is_oversold:
        if policy is OversellPolicy.REJECT:
            logger.warning("stock_oversell_rejected", extra={
                "product_id": str(product.product_id),
                "requested": quantity,
                "available": deduction.before.total,
                "reason": reason,
            })
            raise InsufficientStockError(
                str(product.product_id),
                requested=quantity,
                available=deduction.before.total,
            )
        logger.warning("stock_oversold", extra={
            "product_id": str(product.product_id),
            "requested": quantity,
            "available": deduction.before.total,
            "shortfall": deduction.shortfall,
            "reason": reason,
        })

    return AppliedDeduction(
        product=product.with_tranches(deduction.after),
        deduction=deduction,
    )
