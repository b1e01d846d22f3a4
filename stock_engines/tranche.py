"""
Module: stock_engines.tranche
Responsibility:
    Waterfall deduction of stock across the three provenance tranches when
    units leave the pool (sale, service loan).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Fixed priority local -> air -> sea.  A later tranche is touched only
      once every earlier tranche is empty.
    - No tranche goes negative; the uncovered remainder is reported as
      ``shortfall`` and never taken from anywhere.
    - The total never grows: ``after.total <= before.total``.

Failure modes:
    - ValueError on a negative quantity.

Whether a shortfall is tolerated is decided by the caller (the checkout and
service-loan services apply the configured oversell policy).
"""

from __future__ import annotations

from dataclasses import dataclass

from stock_engines.tracer import traced_engine
from stock_kernel.domain.values import SourceRoute, TrancheLevels

DEDUCTION_ORDER: tuple[SourceRoute, ...] = (
    SourceRoute.LOCAL,
    SourceRoute.AIR,
    SourceRoute.SEA,
)


@dataclass(frozen=True)
class TrancheDeduction:
    """Result of one waterfall deduction."""

    requested: int
    before: TrancheLevels
    after: TrancheLevels
    from_local: int
    from_air: int
    from_sea: int
    shortfall: int

    @property
    def deducted(self) -> int:
        return self.from_local + self.from_air + self.from_sea

    @property
    def is_oversold(self) -> bool:
        return self.shortfall > 0


class TrancheAllocator:
    """Stateless waterfall over TrancheLevels."""

    @traced_engine("tranche_allocator", "1.0", fingerprint_fields=("levels", "quantity"))
    def deduct(self, levels: TrancheLevels, quantity: int) -> TrancheDeduction:
        """
        Take ``quantity`` units out of the tranches, local first.

        Args:
            levels: Tranche levels before the deduction.
            quantity: Units leaving the pool (>= 0).

        Returns:
            TrancheDeduction with the new levels, the per-tranche amounts and
            the shortfall not covered by any tranche.
        """
        if quantity < 0:
            raise ValueError(f"Deduction quantity cannot be negative: {quantity}")

        remaining = quantity
        taken: dict[SourceRoute, int] = {}
        for route in DEDUCTION_ORDER:
            take = min(levels.level(route), remaining)
            taken[route] = take
            remaining -= take

        after = TrancheLevels(
            local=levels.local - taken[SourceRoute.LOCAL],
            air=levels.air - taken[SourceRoute.AIR],
            sea=levels.sea - taken[SourceRoute.SEA],
        )

        return TrancheDeduction(
            requested=quantity,
            before=levels,
            after=after,
            from_local=taken[SourceRoute.LOCAL],
            from_air=taken[SourceRoute.AIR],
            from_sea=taken[SourceRoute.SEA],
            shortfall=remaining,
        )
