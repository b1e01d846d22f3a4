"""
Module: stock_kernel.db.types
Responsibility: Rounding utilities for stock valuation columns.  Centralizes
    precision so that every model, engine and service rounds identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and the engines.  MUST NOT import from any of those.

Invariants enforced:
    - No floats for prices, FX multipliers or average costs.  All such values
      are Decimal, stored as Numeric(38, 9).
    - round_cost() is the ONLY sanctioned rounding function for derived unit
      costs (weighted averages, landed costs written back to storage).
"""

from decimal import ROUND_HALF_UP, Decimal

COST_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

_COST_QUANTUM = Decimal(1).scaleb(-COST_DECIMAL_PLACES)


def round_cost(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """
    Round a unit cost to storage precision.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized to COST_DECIMAL_PLACES.
    """
    return value.quantize(_COST_QUANTUM, rounding=rounding)


ZERO = Decimal("0")
