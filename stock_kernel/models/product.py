"""
Module: stock_kernel.models.product
Responsibility: ORM persistence for products (one row per SKU) with their
    import pricing, cached landed costs, three provenance tranches and the
    weighted-average purchase price.
Architecture position: Kernel > Models.  May import from db/ and domain/dtos.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    P1 -- stock_qty == local_qty + air_stock_qty + sea_stock_qty after every
          engine write (apply_snapshot copies a snapshot built by
          ProductSnapshot.with_tranches, which derives stock_qty).
    P2 -- Tranches are non-negative (CHECK constraints).
    P3 -- avg_purchase_price >= 0 (CHECK constraint).

Failure modes:
    - IntegrityError on a CHECK violation; surfaces as StoreError.

Non-goals:
    - name, category, brand, model, shipmentno are master data carried
      through untouched; editing them is not the engine's job.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TimestampedBase
from stock_kernel.domain.dtos import ProductSnapshot

_ZERO = Decimal("0")


class ProductModel(TimestampedBase):
    """
    Persistent product row.

    Guarantees:
        - Decimal columns are Numeric(38, 9) via the Base type map.
        - Quantity columns are NOT NULL with default 0.
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("local_qty >= 0", name="ck_products_local_qty"),
        CheckConstraint("air_stock_qty >= 0", name="ck_products_air_stock_qty"),
        CheckConstraint("sea_stock_qty >= 0", name="ck_products_sea_stock_qty"),
        CheckConstraint("avg_purchase_price >= 0", name="ck_products_avg_price"),
        # Query: low-stock shortlist
        Index("idx_products_stock_alert", "stock_qty", "alert_qty"),
        # Query: rows with import pricing (revaluation)
        Index("idx_products_yuan", "yuan"),
    )

    # Master data (pass-through)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipmentno: Mapped[int | None] = mapped_column(Integer, nullable=True)
    shipmentdate: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Import pricing
    yuan: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    currency: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    weight: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    shipmenttax: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    shipmenttaxair: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # Cached landed unit costs (derived, rewritten on revaluation)
    sea: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    air: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)

    # INVARIANT P1: stock_qty is the sum of the three tranches
    stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    local_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    air_stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sea_stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    avg_purchase_price: Mapped[Decimal] = mapped_column(nullable=False, default=_ZERO)
    alert_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    def to_dto(self) -> ProductSnapshot:
        return ProductSnapshot(
            product_id=self.id,
            yuan=self.yuan if self.yuan is not None else _ZERO,
            currency=self.currency if self.currency is not None else _ZERO,
            weight=self.weight if self.weight is not None else _ZERO,
            shipmenttax=self.shipmenttax if self.shipmenttax is not None else _ZERO,
            shipmenttaxair=self.shipmenttaxair if self.shipmenttaxair is not None else _ZERO,
            sea=self.sea if self.sea is not None else _ZERO,
            air=self.air if self.air is not None else _ZERO,
            stock_qty=self.stock_qty or 0,
            local_qty=self.local_qty or 0,
            air_stock_qty=self.air_stock_qty or 0,
            sea_stock_qty=self.sea_stock_qty or 0,
            avg_purchase_price=(
                self.avg_purchase_price if self.avg_purchase_price is not None else _ZERO
            ),
            alert_qty=self.alert_qty or 0,
            model=self.model,
            shipment_date=self.shipmentdate,
        )

    def apply_snapshot(self, snapshot: ProductSnapshot) -> None:
        """Copy every engine-owned field from a snapshot onto this row."""
        if snapshot.product_id != self.id:
            raise ValueError(
                f"Snapshot for {snapshot.product_id} cannot be applied to product {self.id}"
            )
        self.currency = snapshot.currency
        self.sea = snapshot.sea
        self.air = snapshot.air
        self.stock_qty = snapshot.stock_qty
        self.local_qty = snapshot.local_qty
        self.air_stock_qty = snapshot.air_stock_qty
        self.sea_stock_qty = snapshot.sea_stock_qty
        self.avg_purchase_price = snapshot.avg_purchase_price
        self.shipmentdate = snapshot.shipment_date

    def __repr__(self) -> str:
        return (
            f"<Product {self.id}: {self.model} stock={self.stock_qty} "
            f"(L{self.local_qty}/A{self.air_stock_qty}/S{self.sea_stock_qty}) "
            f"avg={self.avg_purchase_price}>"
        )
