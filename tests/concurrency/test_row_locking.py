"""
Row-lock safety of concurrent stock movements.

Every test releases N threads through a Barrier so their transactions
overlap on the same product row.  Without SELECT ... FOR UPDATE the
read-modify-write cycles would lose updates; with it, the final row must
equal the serial result.

Requires PostgreSQL (SQLite ignores FOR UPDATE): set DATABASE_URL.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from stock_kernel.domain.dtos import (
    CheckoutLine,
    LoanRequest,
    ReceiveStockRequest,
    ReturnRequest,
)
from stock_kernel.exceptions import ServiceLogAlreadyReturnedError

pytestmark = [pytest.mark.postgres, pytest.mark.slow_locks]

THREADS = 8


def _race(fn, count: int = THREADS) -> list:
    """Run ``fn(i)`` on ``count`` threads released together."""
    barrier = Barrier(count)

    def _worker(i):
        barrier.wait()
        return fn(i)

    with ThreadPoolExecutor(max_workers=count) as pool:
        futures = [pool.submit(_worker, i) for i in range(count)]
        return [f.exception() or f.result() for f in futures]


class TestConcurrentMovements:

    def test_concurrent_receipts_keep_every_unit_and_average(
        self, inventory_engine, make_product, read_product,
    ):
        pid = make_product()

        results = _race(lambda i: inventory_engine.receive_stock(
            ReceiveStockRequest(product_id=pid, local_qty=1, local_unit_price=Decimal("4"))
        ))

        assert all(not isinstance(r, Exception) for r in results)
        product = read_product(pid)
        assert product.local_qty == THREADS
        assert product.stock_qty == THREADS
        assert product.avg_purchase_price == Decimal("4")

    def test_concurrent_checkouts_never_lose_a_deduction(
        self, inventory_engine, make_product, read_product,
    ):
        pid = make_product(local_qty=3, air_stock_qty=3, sea_stock_qty=10)

        _race(lambda i: inventory_engine.checkout([CheckoutLine(product_id=pid, qty=2)]))

        product = read_product(pid)
        assert product.stock_qty == 16 - 2 * THREADS
        assert product.local_qty == 0
        assert product.air_stock_qty == 0

    def test_overlapping_carts_do_not_deadlock(
        self, inventory_engine, make_product, read_product,
    ):
        a = make_product(local_qty=100)
        b = make_product(local_qty=100)

        def _cart(i):
            first, second = (a, b) if i % 2 else (b, a)
            return inventory_engine.checkout([
                CheckoutLine(product_id=first, qty=1),
                CheckoutLine(product_id=second, qty=1),
            ])

        results = _race(_cart)

        assert all(not isinstance(r, Exception) for r in results)
        assert read_product(a).local_qty == 100 - THREADS
        assert read_product(b).local_qty == 100 - THREADS

    def test_concurrent_full_returns_close_loan_once(
        self, inventory_engine, make_product, read_product,
    ):
        pid = make_product(local_qty=3)
        log_id = inventory_engine.loan_to_service(
            LoanRequest(product_id=pid, qty=3, unit_cost=Decimal("1"))
        ).log.log_id

        results = _race(lambda i: inventory_engine.return_from_service(
            ReturnRequest(log_id=log_id, qty=3)
        ))

        succeeded = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, ServiceLogAlreadyReturnedError)]
        assert len(succeeded) == 1
        assert len(rejected) == THREADS - 1
        assert read_product(pid).local_qty == 3
