"""
Module: stock_kernel.selectors.product_selector
Responsibility: Read-only product reports: the low-stock shortlist and the
    total inventory value.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Inventory value is priced per tranche: imported tranches at their
      cached landed unit cost, the local tranche at the average purchase
      price.  All arithmetic stays in Decimal.
"""

from decimal import Decimal

from sqlalchemy import Numeric, func, select

from stock_kernel.db.types import ZERO
from stock_kernel.domain.dtos import LowStockReport
from stock_kernel.models.product import ProductModel
from stock_kernel.selectors.base import BaseSelector


class ProductSelector(BaseSelector):
    """Reports over the products table."""

    def low_stock(self, limit: int | None = None, offset: int = 0) -> LowStockReport:
        """
        Products at or below their alert threshold, lowest stock first.

        ``total`` counts every matching product regardless of paging.
        """
        condition = ProductModel.stock_qty <= ProductModel.alert_qty

        query = (
            select(ProductModel)
            .where(condition)
            .order_by(ProductModel.stock_qty.asc(), ProductModel.id)
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        rows = self.session.execute(query).scalars().all()
        total = self.session.execute(
            select(func.count()).select_from(ProductModel).where(condition)
        ).scalar_one()

        return LowStockReport(
            products=tuple(row.to_dto() for row in rows),
            total=total,
        )

    def inventory_value(self) -> Decimal:
        """Sum of sea, air and local tranche values across all products."""
        value = self.session.execute(
            select(
                func.sum(
                    ProductModel.sea_stock_qty * ProductModel.sea
                    + ProductModel.air_stock_qty * ProductModel.air
                    + ProductModel.local_qty * ProductModel.avg_purchase_price,
                    type_=Numeric(38, 9),
                )
            )
        ).scalar_one()
        if value is None:
            return ZERO
        return Decimal(value)
