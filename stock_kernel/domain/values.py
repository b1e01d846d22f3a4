"""
Values -- Immutable, self-validating stock value objects and boundary coercion.

Responsibility:
    Provides the provenance route enum, the three-tranche quantity vector
    used by every engine, and the coercion helpers that turn loosely typed
    caller input into ints, Decimals and UUIDs (or typed ValidationErrors).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the DTOs, the engines and the services.

Invariants enforced:
    - Tranche levels are non-negative integers.
    - Prices and rates are Decimal, never float, once past the boundary.
    - Quantities are real ints (bool is rejected even though it subclasses int).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from uuid import UUID

from stock_kernel.exceptions import (
    InvalidPriceError,
    InvalidQuantityError,
    ValidationError,
)


class SourceRoute(str, Enum):
    """Provenance of a tranche of stock."""

    LOCAL = "local"  # Locally purchased, caller-supplied unit cost
    AIR = "air"      # Imported by air freight
    SEA = "sea"      # Imported by sea freight


@dataclass(frozen=True, slots=True)
class TrancheLevels:
    """
    Quantities held in each provenance tranche of one product.

    Guarantees:
        - Every level is a non-negative int.
        - ``total`` is the sellable quantity the tranches partition.
    """

    local: int = 0
    air: int = 0
    sea: int = 0

    def __post_init__(self) -> None:
        for route, level in (("local", self.local), ("air", self.air), ("sea", self.sea)):
            if isinstance(level, bool) or not isinstance(level, int):
                raise ValueError(f"{route} tranche must be an int, got {level!r}")
            if level < 0:
                raise ValueError(f"{route} tranche cannot be negative, got {level}")

    @property
    def total(self) -> int:
        return self.local + self.air + self.sea

    def level(self, route: SourceRoute) -> int:
        return getattr(self, route.value)

    def plus(self, local: int = 0, air: int = 0, sea: int = 0) -> TrancheLevels:
        """Return new levels with the given increments added."""
        return TrancheLevels(
            local=self.local + local,
            air=self.air + air,
            sea=self.sea + sea,
        )


def coerce_quantity(value: object, field: str, *, allow_zero: bool = False) -> int:
    """
    Validate a stock quantity.

    Raises:
        InvalidQuantityError: if value is not an int, or is below the bound.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(field, value, allow_zero=allow_zero)
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidQuantityError(field, value, allow_zero=allow_zero)
    return value


def coerce_decimal(value: object, field: str) -> Decimal:
    """
    Convert a price-like input to a finite, non-negative Decimal.

    Accepts Decimal, int and numeric strings.  Floats are rejected; pass
    prices as strings or Decimals.

    Raises:
        InvalidPriceError: if value is missing, not numeric, non-finite or negative.
    """
    if value is None or isinstance(value, bool):
        raise InvalidPriceError(field, value)
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, (int, str)):
            result = Decimal(str(value).strip())
        else:
            raise InvalidPriceError(field, value)
    except InvalidOperation:
        raise InvalidPriceError(field, value) from None
    if not result.is_finite() or result < 0:
        raise InvalidPriceError(field, value)
    return result


def coerce_uuid(value: object, field: str) -> UUID:
    """
    Convert an id input to UUID.

    Raises:
        ValidationError: if value is not a UUID or a UUID string.
    """
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a UUID, got {value!r}", field)
