"""
Module: stock_engines.valuation
Responsibility:
    Weighted-average cost (WAC) recomputation when stock arrives from a mix
    of routes, and the landed unit cost formula for imported stock.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain, stock_kernel.db.types and
    stock_kernel.logging_config.

Invariants enforced:
    - Non-negative average: inputs are non-negative, so the new average is
      too.
    - Empty pool is costless: if the resulting quantity is zero the average
      resets to 0 (no division by zero).
    - Storage precision: averages are quantized with round_cost (9 places,
      ROUND_HALF_UP).
    - Purity: no clock access, no I/O.

Failure modes:
    - ValueError from PoolPosition / IncomingBatch on negative quantities or
      costs.  Services validate caller input earlier and raise typed
      ValidationErrors; reaching these means a programming error.

Usage:
    engine = ValuationEngine()
    result = engine.receive(
        current=PoolPosition(quantity=0, average_cost=Decimal("0")),
        batches=[
            IncomingBatch(SourceRoute.SEA, 10, Decimal("5")),
            IncomingBatch(SourceRoute.AIR, 5, Decimal("8")),
        ],
    )
    result.new_average_cost  # Decimal("6.000000000")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from stock_engines.tracer import traced_engine
from stock_kernel.db.types import ZERO, round_cost
from stock_kernel.domain.dtos import ProductSnapshot
from stock_kernel.domain.values import SourceRoute
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")


def landed_unit_cost(
    yuan: Decimal,
    currency: Decimal,
    weight: Decimal,
    freight_rate: Decimal,
) -> Decimal:
    """Source price converted at the FX multiplier plus per-weight freight."""
    return yuan * currency + weight * freight_rate


def import_unit_costs(
    product: ProductSnapshot,
    currency: Decimal | None = None,
) -> tuple[Decimal, Decimal]:
    """
    Sea and air landed unit costs of a product.

    Args:
        product: Source of yuan, weight and the two freight rates.
        currency: FX multiplier to price at; defaults to the product's own.

    Returns:
        (sea_unit_cost, air_unit_cost)
    """
    rate = product.currency if currency is None else currency
    sea = landed_unit_cost(product.yuan, rate, product.weight, product.shipmenttax)
    air = landed_unit_cost(product.yuan, rate, product.weight, product.shipmenttaxair)
    return sea, air


@dataclass(frozen=True)
class PoolPosition:
    """Quantity and average unit cost of the commingled pool before a receipt."""

    quantity: int
    average_cost: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Pool quantity cannot be negative: {self.quantity}")
        if self.average_cost < 0:
            raise ValueError(f"Average cost cannot be negative: {self.average_cost}")

    @property
    def value(self) -> Decimal:
        return self.quantity * self.average_cost


@dataclass(frozen=True)
class IncomingBatch:
    """Units arriving by one route at one unit cost."""

    route: SourceRoute
    quantity: int
    unit_cost: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Batch quantity cannot be negative: {self.quantity}")
        if self.unit_cost < 0:
            raise ValueError(f"Batch unit cost cannot be negative: {self.unit_cost}")

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True)
class ValuationResult:
    """Outcome of one receipt against the pool."""

    previous_quantity: int
    previous_average_cost: Decimal
    incoming_quantity: int
    incoming_value: Decimal
    new_quantity: int
    new_average_cost: Decimal

    @property
    def is_noop(self) -> bool:
        return self.incoming_quantity == 0


def receipt_batches(
    product: ProductSnapshot,
    sea_qty: int,
    air_qty: int,
    local_qty: int,
    local_unit_price: Decimal,
) -> tuple[IncomingBatch, ...]:
    """Price the three routes of one receipt for a product."""
    sea_cost, air_cost = import_unit_costs(product)
    return (
        IncomingBatch(SourceRoute.SEA, sea_qty, sea_cost),
        IncomingBatch(SourceRoute.AIR, air_qty, air_cost),
        IncomingBatch(SourceRoute.LOCAL, local_qty, local_unit_price),
    )


class ValuationEngine:
    """
    Pure weighted-average cost calculator.

    Contract:
        ``receive`` is a function of its arguments only.  Applying the new
        average together with the tranche increments is the caller's job.
    """

    @traced_engine("valuation", "1.0", fingerprint_fields=("current", "batches"))
    def receive(
        self,
        current: PoolPosition,
        batches: Sequence[IncomingBatch],
    ) -> ValuationResult:
        """
        Recompute the pool average after a receipt.

        Args:
            current: Pool before the receipt.
            batches: Arriving batches; zero-quantity batches contribute nothing.

        Returns:
            ValuationResult.  When no batch carries units the result is a
            no-op with the average unchanged.
        """
        incoming_quantity = sum(batch.quantity for batch in batches)

        if incoming_quantity == 0:
            return ValuationResult(
                previous_quantity=current.quantity,
                previous_average_cost=current.average_cost,
                incoming_quantity=0,
                incoming_value=ZERO,
                new_quantity=current.quantity,
                new_average_cost=current.average_cost,
            )

        incoming_value = sum((batch.value for batch in batches), ZERO)
        new_quantity = current.quantity + incoming_quantity

        if new_quantity > 0:
            new_average = round_cost((current.value + incoming_value) / new_quantity)
        else:
            new_average = ZERO

        logger.debug("valuation_computed", extra={
            "previous_quantity": current.quantity,
            "previous_average_cost": str(current.average_cost),
            "incoming_quantity": incoming_quantity,
            "incoming_value": str(incoming_value),
            "new_average_cost": str(new_average),
        })

        return ValuationResult(
            previous_quantity=current.quantity,
            previous_average_cost=current.average_cost,
            incoming_quantity=incoming_quantity,
            incoming_value=incoming_value,
            new_quantity=new_quantity,
            new_average_cost=new_average,
        )
