"""
Module: stock_engines.revaluation
Responsibility:
    Re-derive the cached landed unit costs and the weighted-average cost of
    every importing product when the FX multiplier changes, leaving the value
    of the local tranche untouched.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only rows with import pricing (yuan > 0) are revalued; the rest are
      counted as skipped.
    - The pool quantity is the tranche total, so a drifted stock_qty is
      repaired by the write-back.
    - Local value preservation: the local tranche's share of the pool value
      (old pool value minus old import value) is carried over unchanged.
    - Idempotence: revaluing at the rate the row already carries leaves the
      average unchanged.
    - Average is never negative.  A row whose average under-values its own
      import tranches would compute a negative local value; the new average
      is floored at 0 and the row is flagged.

Failure modes:
    - ValueError if the new rate is not positive.

Algorithm per row:
    old_import = sea_qty * sea_cost(old rate) + air_qty * air_cost(old rate)
    local_value = stock_qty * avg - old_import
    new_import = sea_qty * sea_cost(new rate) + air_qty * air_cost(new rate)
    new_avg = (local_value + new_import) / stock_qty   (0 when stock_qty == 0)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal

from stock_engines.tracer import traced_engine
from stock_engines.valuation import import_unit_costs
from stock_kernel.db.types import ZERO, round_cost
from stock_kernel.domain.dtos import ProductSnapshot
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.revaluation")


@dataclass(frozen=True)
class RevaluationLine:
    """One product before and after revaluation."""

    before: ProductSnapshot
    after: ProductSnapshot
    local_value: Decimal
    old_import_value: Decimal
    new_import_value: Decimal
    floored: bool = False


@dataclass(frozen=True)
class RevaluationResult:
    """All revalued rows plus how many were skipped for lacking import pricing."""

    new_currency: Decimal
    lines: tuple[RevaluationLine, ...]
    skipped: int

    @property
    def revalued(self) -> int:
        return len(self.lines)

    @property
    def snapshots(self) -> tuple[ProductSnapshot, ...]:
        return tuple(line.after for line in self.lines)


class CurrencyRevaluator:
    """Pure set-wide revaluation."""

    @traced_engine("currency_revaluator", "1.0", fingerprint_fields=("new_currency",))
    def revalue(
        self,
        rows: Iterable[ProductSnapshot],
        new_currency: Decimal,
    ) -> RevaluationResult:
        if new_currency <= 0:
            raise ValueError(f"Currency rate must be positive: {new_currency}")

        lines: list[RevaluationLine] = []
        skipped = 0
        for row in rows:
            if not row.has_import_pricing:
                skipped += 1
                continue
            lines.append(self.revalue_one(row, new_currency))

        floored = sum(1 for line in lines if line.floored)
        if floored:
            logger.warning("revaluation_average_floored", extra={
                "new_currency": str(new_currency),
                "floored_count": floored,
            })

        return RevaluationResult(
            new_currency=new_currency,
            lines=tuple(lines),
            skipped=skipped,
        )

    def revalue_one(self, row: ProductSnapshot, new_currency: Decimal) -> RevaluationLine:
        old_sea, old_air = import_unit_costs(row)
        new_sea, new_air = import_unit_costs(row, new_currency)

        quantity = row.tranches.total

        old_import_value = row.sea_stock_qty * old_sea + row.air_stock_qty * old_air
        local_value = quantity * row.avg_purchase_price - old_import_value
        new_import_value = row.sea_stock_qty * new_sea + row.air_stock_qty * new_air

        floored = False
        if quantity > 0:
            new_average = round_cost((local_value + new_import_value) / quantity)
            if new_average < 0:
                new_average = ZERO
                floored = True
        else:
            new_average = ZERO

        after = replace(
            row.with_tranches(row.tranches),
            currency=new_currency,
            sea=round_cost(new_sea),
            air=round_cost(new_air),
            avg_purchase_price=new_average,
        )

        return RevaluationLine(
            before=row,
            after=after,
            local_value=local_value,
            old_import_value=old_import_value,
            new_import_value=new_import_value,
            floored=floored,
        )
