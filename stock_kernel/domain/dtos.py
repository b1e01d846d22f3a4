"""
Data Transfer Objects for the stock kernel.

Product and service-log snapshots are what the engines and services operate
on: a service reads a row under lock, converts it to a frozen snapshot,
computes a new snapshot with the pure engines, and writes the whole new
snapshot back.  No component keeps state between calls.

Request DTOs are the typed boundary: each validates and normalizes its
fields in ``__post_init__`` so that the engine only ever sees ints,
Decimals and UUIDs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from stock_kernel.domain.values import (
    TrancheLevels,
    coerce_decimal,
    coerce_quantity,
    coerce_uuid,
)
from stock_kernel.exceptions import ValidationError


# =============================================================================
# Snapshots
# =============================================================================


@dataclass(frozen=True)
class ProductSnapshot:
    """
    Valuation-relevant state of one product row.

    ``sea`` and ``air`` are cached landed unit costs; ``stock_qty`` is the
    sellable total the three tranches partition.
    """

    product_id: UUID
    yuan: Decimal = Decimal("0")
    currency: Decimal = Decimal("0")
    weight: Decimal = Decimal("0")
    shipmenttax: Decimal = Decimal("0")
    shipmenttaxair: Decimal = Decimal("0")
    sea: Decimal = Decimal("0")
    air: Decimal = Decimal("0")
    stock_qty: int = 0
    local_qty: int = 0
    air_stock_qty: int = 0
    sea_stock_qty: int = 0
    avg_purchase_price: Decimal = Decimal("0")
    alert_qty: int = 0
    model: str | None = None
    shipment_date: date | None = None

    @property
    def tranches(self) -> TrancheLevels:
        return TrancheLevels(
            local=self.local_qty,
            air=self.air_stock_qty,
            sea=self.sea_stock_qty,
        )

    @property
    def is_partitioned(self) -> bool:
        """True when the tranches sum to the sellable total."""
        return self.stock_qty == self.local_qty + self.air_stock_qty + self.sea_stock_qty

    @property
    def has_import_pricing(self) -> bool:
        return self.yuan > 0

    @property
    def is_low_stock(self) -> bool:
        return self.stock_qty <= self.alert_qty

    def with_tranches(self, levels: TrancheLevels) -> ProductSnapshot:
        """New snapshot with the given tranches; stock_qty follows their sum."""
        return replace(
            self,
            local_qty=levels.local,
            air_stock_qty=levels.air,
            sea_stock_qty=levels.sea,
            stock_qty=levels.total,
        )


class ServiceLogStatus(str, Enum):
    """Lifecycle of a service loan."""

    ACTIVE = "active"
    RETURNED = "returned"


@dataclass(frozen=True)
class ServiceLogSnapshot:
    """One service loan: stock taken out of the sellable pool for repair."""

    log_id: UUID
    product_id: UUID
    model: str
    qty: int
    loan_type: str
    return_cost: Decimal
    status: ServiceLogStatus
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ServiceLogStatus.ACTIVE


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class ReceiveStockRequest:
    """
    Stock arriving for one product, split by route.

    ``local_unit_price`` is the locally negotiated purchase price; sea and
    air unit costs are derived from the product's import pricing.
    """

    product_id: UUID
    sea_qty: int = 0
    air_qty: int = 0
    local_qty: int = 0
    local_unit_price: Decimal = Decimal("0")
    shipment_date: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", coerce_uuid(self.product_id, "product_id"))
        coerce_quantity(self.sea_qty, "sea_qty", allow_zero=True)
        coerce_quantity(self.air_qty, "air_qty", allow_zero=True)
        coerce_quantity(self.local_qty, "local_qty", allow_zero=True)
        object.__setattr__(
            self,
            "local_unit_price",
            coerce_decimal(self.local_unit_price, "local_unit_price"),
        )
        if self.shipment_date is not None and not isinstance(self.shipment_date, date):
            raise ValidationError(
                f"shipment_date must be a date, got {self.shipment_date!r}",
                "shipment_date",
            )

    @property
    def total_incoming(self) -> int:
        return self.sea_qty + self.air_qty + self.local_qty

    @property
    def is_empty(self) -> bool:
        """Nothing to receive and no shipment date to record."""
        return self.total_incoming == 0 and self.shipment_date is None


@dataclass(frozen=True)
class CheckoutLine:
    """One sold line item."""

    product_id: UUID
    qty: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", coerce_uuid(self.product_id, "product_id"))
        coerce_quantity(self.qty, "qty")


@dataclass(frozen=True)
class LoanRequest:
    """Take units out of the sellable pool for repair or damage handling."""

    product_id: UUID
    qty: int
    unit_cost: Decimal
    loan_type: str | None = None
    label: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", coerce_uuid(self.product_id, "product_id"))
        coerce_quantity(self.qty, "qty")
        object.__setattr__(self, "unit_cost", coerce_decimal(self.unit_cost, "unit_cost"))
        if self.loan_type is not None:
            object.__setattr__(self, "loan_type", str(self.loan_type).strip() or None)
        if self.label is not None:
            object.__setattr__(self, "label", str(self.label).strip())


@dataclass(frozen=True)
class ReturnRequest:
    """Bring units back from a service loan."""

    log_id: UUID
    qty: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_id", coerce_uuid(self.log_id, "log_id"))
        coerce_quantity(self.qty, "qty")


@dataclass(frozen=True)
class LowStockReport:
    """Products at or below their reorder threshold."""

    products: tuple[ProductSnapshot, ...] = field(default_factory=tuple)
    total: int = 0
