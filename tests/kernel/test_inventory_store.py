"""
Tests for InventoryStore.

Covers:
- Snapshot round trip through the products table
- Drift detection on read and repair on write
- Not-found errors
- Service log insert, lock read and update
"""

from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from stock_engines.service_return import open_loan, plan_return
from stock_kernel.domain.dtos import ProductSnapshot, ServiceLogStatus
from stock_kernel.domain.values import TrancheLevels
from stock_kernel.exceptions import ProductNotFoundError, ServiceLogNotFoundError
from stock_kernel.services.inventory_store import InventoryStore


class TestProducts:

    def test_snapshot_reflects_row(self, session, make_product):
        pid = make_product(
            local_qty=1, air_stock_qty=2, sea_stock_qty=3,
            avg_purchase_price=Decimal("4.5"), alert_qty=7, model="ZX-1",
        )

        snapshot = InventoryStore(session).get_product_for_update(pid)

        assert snapshot.product_id == pid
        assert snapshot.tranches == TrancheLevels(1, 2, 3)
        assert snapshot.stock_qty == 6
        assert snapshot.avg_purchase_price == Decimal("4.5")
        assert snapshot.alert_qty == 7
        assert snapshot.model == "ZX-1"

    def test_drift_is_logged(self, session, make_product, captured_logs):
        pid = make_product(local_qty=2, stock_qty=5)

        snapshot = InventoryStore(session).get_product(pid)

        assert not snapshot.is_partitioned
        drift = [r for r in captured_logs() if r["message"] == "tranche_drift_detected"]
        assert len(drift) == 1
        assert drift[0]["stock_qty"] == 5
        assert drift[0]["tranche_total"] == 2

    def test_write_repairs_drift(self, session, make_product, read_product):
        pid = make_product(local_qty=2, stock_qty=5)
        store = InventoryStore(session)

        snapshot = store.get_product_for_update(pid)
        store.save_product(snapshot.with_tranches(snapshot.tranches))
        session.commit()

        assert read_product(pid).stock_qty == 2

    def test_unknown_product(self, session):
        store = InventoryStore(session)

        with pytest.raises(ProductNotFoundError):
            store.get_product_for_update(uuid4())
        with pytest.raises(ProductNotFoundError):
            store.get_product(uuid4())

    def test_importing_products_only(self, session, make_product):
        imported = make_product(yuan=Decimal("3"))
        make_product(yuan=Decimal("0"))

        rows = InventoryStore(session).list_importing_products()

        assert [r.product_id for r in rows] == [imported]

    def test_revaluation_write_leaves_quantities(self, session, make_product, read_product):
        pid = make_product(yuan=Decimal("3"), sea_stock_qty=4, local_qty=1)
        store = InventoryStore(session)
        stale = replace(
            store.get_product(pid),
            sea_stock_qty=99, stock_qty=100,
            currency=Decimal("2"), sea=Decimal("7"), air=Decimal("8"),
            avg_purchase_price=Decimal("6.5"),
        )

        assert store.save_revaluation([stale]) == 1
        session.commit()

        product = read_product(pid)
        assert (product.currency, product.sea, product.air) == (
            Decimal("2"), Decimal("7"), Decimal("8"),
        )
        assert product.avg_purchase_price == Decimal("6.5")
        assert (product.sea_stock_qty, product.stock_qty) == (4, 5)

    def test_revaluation_write_unknown_product(self, session):
        with pytest.raises(ProductNotFoundError):
            InventoryStore(session).save_revaluation([ProductSnapshot(product_id=uuid4())])


class TestServiceLogs:

    def _entry(self, product_id, qty=4):
        return open_loan(
            product_id=product_id,
            qty=qty,
            unit_cost=Decimal("3"),
            loan_type="Repair",
            label="BP-100",
            created_at=datetime(2024, 2, 1, tzinfo=UTC),
        )

    def test_insert_and_read_back(self, session, make_product):
        pid = make_product(local_qty=4)
        store = InventoryStore(session)

        inserted = store.add_service_log(self._entry(pid))
        read = store.get_service_log(inserted.log_id, lock=True)

        assert read.log_id == inserted.log_id
        assert read.qty == 4
        assert read.status == ServiceLogStatus.ACTIVE
        assert read.return_cost == Decimal("3")

    def test_save_updates_qty_and_status(self, session, make_product):
        pid = make_product(local_qty=4)
        store = InventoryStore(session)
        entry = store.add_service_log(self._entry(pid, qty=2))

        store.save_service_log(plan_return(entry, 2).after)
        read = store.get_service_log(entry.log_id)

        assert read.qty == 0
        assert read.status == ServiceLogStatus.RETURNED

    def test_unknown_log(self, session):
        with pytest.raises(ServiceLogNotFoundError):
            InventoryStore(session).get_service_log(uuid4())
