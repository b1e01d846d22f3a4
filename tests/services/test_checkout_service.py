"""
Tests for checkout through the InventoryEngine.

Covers:
- Waterfall deduction local -> air -> sea persisted per product
- Several lines for the same product in one batch
- Oversell under the clamp and reject policies
- Batching, pauses and partial commit
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_config import EngineConfig, OversellPolicy
from stock_kernel.domain.dtos import CheckoutLine
from stock_kernel.exceptions import InsufficientStockError, ProductNotFoundError
from stock_services import InventoryEngine


@pytest.fixture
def rejecting_engine(db, clock, sleeps):
    config = EngineConfig(oversell_policy=OversellPolicy.REJECT, batch_pause_seconds=0)
    return InventoryEngine(db, config=config, clock=clock, sleep=sleeps.append)


class TestCheckout:

    def test_waterfall_persisted(self, inventory_engine, make_product, read_product):
        pid = make_product(local_qty=3, air_stock_qty=4, sea_stock_qty=10)

        result = inventory_engine.checkout([CheckoutLine(product_id=pid, qty=9)])

        product = read_product(pid)
        assert (product.local_qty, product.air_stock_qty, product.sea_stock_qty) == (0, 0, 8)
        assert product.stock_qty == 8
        assert result.lines[0].stock_qty == 8
        assert result.total_shortfall == 0

    def test_lines_for_same_product_see_each_other(
        self, inventory_engine, make_product, read_product,
    ):
        pid = make_product(local_qty=2, sea_stock_qty=5)

        result = inventory_engine.checkout([
            CheckoutLine(product_id=pid, qty=2),
            CheckoutLine(product_id=pid, qty=3),
        ])

        assert result.lines[0].deduction.from_local == 2
        assert result.lines[1].deduction.from_sea == 3
        product = read_product(pid)
        assert product.sea_stock_qty == 2
        assert product.stock_qty == 2

    def test_several_products_in_one_batch(
        self, inventory_engine, make_product, read_product,
    ):
        a = make_product(local_qty=5)
        b = make_product(air_stock_qty=5)

        inventory_engine.checkout([
            CheckoutLine(product_id=a, qty=1),
            CheckoutLine(product_id=b, qty=4),
        ])

        assert read_product(a).local_qty == 4
        assert read_product(b).air_stock_qty == 1

    def test_average_cost_is_unchanged(self, inventory_engine, make_product, read_product):
        pid = make_product(local_qty=5, avg_purchase_price=Decimal("7.25"))

        inventory_engine.checkout([CheckoutLine(product_id=pid, qty=2)])

        assert read_product(pid).avg_purchase_price == Decimal("7.25")

    def test_unknown_product_rolls_back_batch(
        self, inventory_engine, make_product, read_product,
    ):
        pid = make_product(local_qty=5)

        with pytest.raises(ProductNotFoundError):
            inventory_engine.checkout([
                CheckoutLine(product_id=pid, qty=1),
                CheckoutLine(product_id=uuid4(), qty=1),
            ])

        assert read_product(pid).local_qty == 5


class TestOversell:

    def test_clamp_floors_at_zero_and_logs(
        self, inventory_engine, make_product, read_product, captured_logs,
    ):
        pid = make_product(local_qty=1, air_stock_qty=1, sea_stock_qty=1)

        result = inventory_engine.checkout([CheckoutLine(product_id=pid, qty=5)])

        assert result.total_shortfall == 2
        assert result.oversold_products == (pid,)
        product = read_product(pid)
        assert product.stock_qty == 0
        assert product.local_qty == product.air_stock_qty == product.sea_stock_qty == 0

        warnings = [r for r in captured_logs() if r["message"] == "stock_oversold"]
        assert len(warnings) == 1
        assert warnings[0]["shortfall"] == 2
        assert warnings[0]["level"] == "WARNING"

    def test_reject_raises_and_rolls_back_batch(
        self, rejecting_engine, make_product, read_product,
    ):
        covered = make_product(local_qty=5)
        short = make_product(local_qty=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            rejecting_engine.checkout([
                CheckoutLine(product_id=covered, qty=2),
                CheckoutLine(product_id=short, qty=3),
            ])

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 1
        assert read_product(covered).local_qty == 5
        assert read_product(short).local_qty == 1

    def test_reject_allows_exact_quantity(
        self, rejecting_engine, make_product, read_product,
    ):
        pid = make_product(local_qty=1, sea_stock_qty=2)

        rejecting_engine.checkout([CheckoutLine(product_id=pid, qty=3)])

        assert read_product(pid).stock_qty == 0


class TestCheckoutBatching:

    @pytest.fixture
    def one_per_batch(self, db, clock, sleeps):
        config = EngineConfig(
            batch_size=1,
            batch_pause_seconds=0.5,
            oversell_policy=OversellPolicy.REJECT,
        )
        return InventoryEngine(db, config=config, clock=clock, sleep=sleeps.append)

    def test_pauses_between_batches(self, one_per_batch, make_product, sleeps):
        pids = [make_product(local_qty=3) for _ in range(3)]

        result = one_per_batch.checkout([CheckoutLine(product_id=p, qty=1) for p in pids])

        assert result.batches == 3
        assert len(result.lines) == 3
        assert sleeps == [0.5, 0.5]

    def test_failing_batch_keeps_earlier_batches(
        self, one_per_batch, make_product, read_product, sleeps,
    ):
        first = make_product(local_qty=3)
        short = make_product(local_qty=0)
        never = make_product(local_qty=3)

        with pytest.raises(InsufficientStockError):
            one_per_batch.checkout([
                CheckoutLine(product_id=first, qty=1),
                CheckoutLine(product_id=short, qty=1),
                CheckoutLine(product_id=never, qty=1),
            ])

        assert read_product(first).local_qty == 2
        assert read_product(never).local_qty == 3
        assert sleeps == [0.5]
