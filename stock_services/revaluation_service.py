"""
stock_services.revaluation_service -- Catalog-wide FX revaluation.

Responsibility:
    Apply a new FX multiplier to every product with import pricing,
    re-deriving its cached sea/air landed costs and its average cost while
    preserving the value of its local tranche.

Architecture position:
    Services -- imperative shell over CurrencyRevaluator.

Invariants enforced:
    - All qualifying rows are rewritten in the caller's single transaction
      (all or nothing).
    - Rows are read without row locks.  Only the price columns (currency,
      sea, air, avg_purchase_price) are written back, so a stock movement
      that commits during revaluation keeps its quantities; its average may
      be computed from the pre-movement tranches.

Failure modes:
    - InvalidCurrencyRateError if the new rate is not positive.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from stock_engines.revaluation import CurrencyRevaluator
from stock_kernel.domain.values import coerce_decimal
from stock_kernel.exceptions import InvalidCurrencyRateError, InvalidPriceError
from stock_kernel.logging_config import get_logger
from stock_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.revaluation")


@dataclass(frozen=True)
class RevaluationSummary:
    new_currency: Decimal
    revalued: int
    floored: int = 0


def parse_currency_rate(value: object) -> Decimal:
    """Coerce an FX multiplier, rejecting anything not strictly positive."""
    try:
        rate = coerce_decimal(value, "currency")
    except InvalidPriceError:
        raise InvalidCurrencyRateError(value) from None
    if rate <= 0:
        raise InvalidCurrencyRateError(value)
    return rate


class RevaluationService:
    """Rewrites importing products at a new FX multiplier."""

    def __init__(self, session: Session, revaluator: CurrencyRevaluator | None = None):
        self.session = session
        self._store = InventoryStore(session)
        self._revaluator = revaluator or CurrencyRevaluator()

    def revalue(self, new_currency: object) -> RevaluationSummary:
        rate = parse_currency_rate(new_currency)

        rows = self._store.list_importing_products()
        result = self._revaluator.revalue(rows, rate)
        self._store.save_revaluation(result.snapshots)

        summary = RevaluationSummary(
            new_currency=rate,
            revalued=result.revalued,
            floored=sum(1 for line in result.lines if line.floored),
        )
        logger.info("currency_revalued", extra={
            "new_currency": str(rate),
            "revalued": summary.revalued,
            "floored": summary.floored,
        })
        return summary
