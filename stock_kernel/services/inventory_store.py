"""
InventoryStore -- transactional persistence of products and service logs.

Responsibility:
    Reads product and service-log rows (optionally under a row lock),
    converts them to frozen snapshots, and writes whole new snapshots back.
    Engines never see ORM instances; services never build SQL.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by the stock_services orchestrators inside a unit of work opened
    by ``DatabaseHandle.session_scope``.

Invariants enforced:
    - Row locking: ``get_product_for_update`` and ``get_service_log(lock=True)``
      issue ``SELECT ... FOR UPDATE`` so that concurrent movements on the same
      product or log are linearized (PostgreSQL; a no-op on SQLite).
    - ``populate_existing`` on locked reads, so the snapshot reflects the
      row as committed by the previous lock holder, not a stale identity-map
      copy.
    - Tranche partition: a row whose stock_qty differs from the tranche sum
      is reported (``tranche_drift_detected``) and repaired by the next write,
      because every engine write derives stock_qty from the tranches.
    - Flush-only: this class never commits.

Failure modes:
    - ProductNotFoundError / ServiceLogNotFoundError for unknown ids.
    - SQLAlchemyError on lock timeout or deadlock; translated to StoreError
      by the unit of work.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select, update

from stock_kernel.domain.dtos import ProductSnapshot, ServiceLogSnapshot
from stock_kernel.exceptions import ProductNotFoundError, ServiceLogNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.product import ProductModel
from stock_kernel.models.service_log import ServiceLogModel
from stock_kernel.services.base import BaseService

logger = get_logger("services.inventory_store")


class InventoryStore(BaseService):
    """
    Snapshot-in, snapshot-out access to the stock tables.

    Contract:
        Callers read a snapshot, compute a replacement with the pure
        engines, and hand the replacement to ``save_product`` or
        ``save_service_log`` inside the same session.
    """

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def get_product_for_update(self, product_id: UUID) -> ProductSnapshot:
        """
        Read one product under a row lock.

        The lock is held until the enclosing transaction ends.

        Raises:
            ProductNotFoundError: If no product has this id.
        """
        row = self.session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise ProductNotFoundError(str(product_id))
        return self._checked_snapshot(row)

    def get_product(self, product_id: UUID) -> ProductSnapshot:
        """Read one product without locking."""
        row = self.session.get(ProductModel, product_id)
        if row is None:
            raise ProductNotFoundError(str(product_id))
        return self._checked_snapshot(row)

    def save_product(self, snapshot: ProductSnapshot) -> None:
        """Write a full product snapshot back to its row and flush."""
        row = self.session.get(ProductModel, snapshot.product_id)
        if row is None:
            raise ProductNotFoundError(str(snapshot.product_id))
        row.apply_snapshot(snapshot)
        self.session.flush()

    def list_importing_products(self) -> list[ProductSnapshot]:
        """All products with a positive source-currency price, unlocked."""
        rows = self.session.execute(
            select(ProductModel)
            .where(ProductModel.yuan > 0)
            .order_by(ProductModel.id)
        ).scalars().all()
        return [self._checked_snapshot(row) for row in rows]

    def save_revaluation(self, snapshots: Sequence[ProductSnapshot]) -> int:
        """
        Write only the repriced columns: currency, sea, air, avg_purchase_price.

        Revaluation reads its rows unlocked, so the tranche columns in its
        snapshots may already be stale.  They are never written here; a
        checkout, receipt or loan that commits in between keeps its
        quantities.
        """
        for snapshot in snapshots:
            result = self.session.execute(
                update(ProductModel)
                .where(ProductModel.id == snapshot.product_id)
                .values(
                    currency=snapshot.currency,
                    sea=snapshot.sea,
                    air=snapshot.air,
                    avg_purchase_price=snapshot.avg_purchase_price,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ProductNotFoundError(str(snapshot.product_id))
        self.session.flush()
        return len(snapshots)

    # ------------------------------------------------------------------
    # Service logs
    # ------------------------------------------------------------------

    def add_service_log(self, snapshot: ServiceLogSnapshot) -> ServiceLogSnapshot:
        """Insert a new service log row and return it as persisted."""
        row = ServiceLogModel.from_dto(snapshot)
        self.session.add(row)
        self.session.flush()
        return row.to_dto()

    def get_service_log(self, log_id: UUID, lock: bool = False) -> ServiceLogSnapshot:
        """
        Read one service log, optionally under a row lock.

        Raises:
            ServiceLogNotFoundError: If no log has this id.
        """
        stmt = select(ServiceLogModel).where(ServiceLogModel.id == log_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise ServiceLogNotFoundError(str(log_id))
        return row.to_dto()

    def save_service_log(self, snapshot: ServiceLogSnapshot) -> None:
        """Write the mutable fields of a service log (qty, status) and flush."""
        row = self.session.get(ServiceLogModel, snapshot.log_id)
        if row is None:
            raise ServiceLogNotFoundError(str(snapshot.log_id))
        row.qty = snapshot.qty
        row.status = snapshot.status.value
        self.session.flush()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _checked_snapshot(self, row: ProductModel) -> ProductSnapshot:
        snapshot = row.to_dto()
        if not snapshot.is_partitioned:
            logger.warning(
                "tranche_drift_detected",
                extra={
                    "product_id": str(snapshot.product_id),
                    "stock_qty": snapshot.stock_qty,
                    "tranche_total": snapshot.tranches.total,
                },
            )
        return snapshot
