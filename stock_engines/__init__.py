"""
Module: stock_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines.  This is
    the import surface for stock_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain, stock_kernel.db.types,
    stock_kernel.exceptions and stock_kernel.logging_config.
    MUST NOT import stock_services.

Invariants enforced:
    - Purity: engines never read the clock or touch the database.
      Timestamps are passed in by the caller.
    - Decimal-only arithmetic for prices, rates and averages.
    - Determinism: identical inputs always produce identical outputs.

Every public engine call is traced via ``@traced_engine`` (see
``stock_engines.tracer``), emitting a STOCK_ENGINE_TRACE log record.
"""

from stock_engines.revaluation import (
    CurrencyRevaluator,
    RevaluationLine,
    RevaluationResult,
)
from stock_engines.service_return import ReturnPlan, open_loan, plan_return
from stock_engines.tracer import compute_input_fingerprint, traced_engine
from stock_engines.tranche import DEDUCTION_ORDER, TrancheAllocator, TrancheDeduction
from stock_engines.valuation import (
    IncomingBatch,
    PoolPosition,
    ValuationEngine,
    ValuationResult,
    import_unit_costs,
    landed_unit_cost,
    receipt_batches,
)

__all__ = [
    # Valuation
    "ValuationEngine",
    "ValuationResult",
    "PoolPosition",
    "IncomingBatch",
    "landed_unit_cost",
    "import_unit_costs",
    "receipt_batches",
    # Tranche
    "TrancheAllocator",
    "TrancheDeduction",
    "DEDUCTION_ORDER",
    # Revaluation
    "CurrencyRevaluator",
    "RevaluationLine",
    "RevaluationResult",
    # Service loans
    "ReturnPlan",
    "open_loan",
    "plan_return",
    # Tracing
    "traced_engine",
    "compute_input_fingerprint",
]
