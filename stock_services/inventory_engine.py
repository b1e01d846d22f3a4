"""
stock_services.inventory_engine -- The inventory engine facade.

Responsibility:
    Single entry point for every stock operation.  Owns the unit of work
    for each call (one ``session_scope`` per operation, or per batch for
    bulk operations), binds log context, and wires configuration into the
    services.

Architecture position:
    Services -- outermost layer of the engine.  A request layer (HTTP, RPC,
    scripts/stockctl.py) constructs one InventoryEngine at process start and
    calls it; ``close()`` at shutdown disposes the connection pool.

Invariants enforced:
    - Every operation is all-or-nothing within its unit of work.
    - Bulk checkout and bulk receipt commit ``batch_size`` items per
      transaction and pause ``batch_pause_seconds`` between batches.  A
      failing batch rolls back alone; earlier batches stay committed and
      later batches are not attempted.
    - No automatic retries.

Failure modes:
    - Typed StockKernelError subclasses from the services.
    - StoreError for any persistence failure (raised by session_scope).
    - ``run`` converts all of these into an OperationOutcome instead.

Usage:
    engine = InventoryEngine.from_config(load_config())
    engine.receive_stock(ReceiveStockRequest(product_id=pid, sea_qty=10))
    outcome = engine.run("return_from_service", ReturnRequest(log_id=lid, qty=2))
    engine.close()
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Sequence
from decimal import Decimal
from typing import Any, TypeVar
from uuid import uuid4

from stock_config.schema import EngineConfig
from stock_engines.revaluation import CurrencyRevaluator
from stock_engines.tranche import TrancheAllocator
from stock_engines.valuation import ValuationEngine
from stock_kernel.db.engine import DatabaseHandle
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import (
    CheckoutLine,
    LoanRequest,
    LowStockReport,
    ReceiveStockRequest,
    ReturnRequest,
    ServiceLogSnapshot,
)
from stock_kernel.domain.values import coerce_quantity
from stock_kernel.exceptions import StockKernelError, StoreError, ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.selectors.product_selector import ProductSelector
from stock_services.checkout_service import CheckoutResult, CheckoutService
from stock_services.outcome import OperationOutcome
from stock_services.receiving_service import (
    BulkReceiptResult,
    ReceiptResult,
    ReceivingService,
)
from stock_services.revaluation_service import RevaluationService, RevaluationSummary
from stock_services.service_ledger import (
    ServiceLedger,
    ServiceLoanResult,
    ServiceReturnResult,
)

logger = get_logger("services.inventory_engine")

T = TypeVar("T")


def _chunks(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class InventoryEngine:
    """
    Facade over receiving, checkout, revaluation, service loans and reports.

    Contract:
        Receives a DatabaseHandle (and optionally config, clock and sleep)
        via constructor injection.  Holds no stock state between calls.
    """

    OPERATIONS = frozenset({
        "receive_stock",
        "receive_stock_bulk",
        "checkout",
        "revalue_currency",
        "loan_to_service",
        "return_from_service",
        "list_active_service_loans",
        "low_stock",
        "inventory_value",
    })

    def __init__(
        self,
        database: DatabaseHandle,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._db = database
        self._config = config or EngineConfig()
        self._clock = clock or SystemClock()
        self._sleep = sleep

        self._valuation = ValuationEngine()
        self._allocator = TrancheAllocator()
        self._revaluator = CurrencyRevaluator()

    @classmethod
    def from_config(cls, config: EngineConfig, clock: Clock | None = None) -> InventoryEngine:
        """Build the database handle from config and wrap it."""
        database = DatabaseHandle.from_url(
            config.database_url,
            echo=config.echo_sql,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
        )
        return cls(database, config=config, clock=clock)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def database(self) -> DatabaseHandle:
        return self._db

    def close(self) -> None:
        self._db.dispose()

    # =========================================================================
    # Receiving
    # =========================================================================

    def receive_stock(self, request: ReceiveStockRequest) -> ReceiptResult:
        """Receive stock for one product and reprice its average."""
        if request.is_empty:
            return ReceiptResult.noop(request.product_id)

        with LogContext.bind(operation="receive_stock", product_id=request.product_id):
            with self._db.session_scope("receive_stock") as session:
                return ReceivingService(session, self._valuation).receive(request)

    def receive_stock_bulk(self, requests: Sequence[ReceiveStockRequest]) -> BulkReceiptResult:
        """Receive many products, ``batch_size`` receipts per transaction."""
        receipts: list[ReceiptResult] = []
        batches = 0
        with LogContext.bind(operation="receive_stock_bulk", correlation_id=self._correlation_id()):
            for batch in self._batches(requests):
                batches += 1
                with self._db.session_scope("receive_stock_bulk") as session:
                    service = ReceivingService(session, self._valuation)
                    receipts.extend(service.receive(request) for request in batch)

            logger.info("bulk_receipt_completed", extra={
                "processed": len(receipts),
                "batches": batches,
            })
        return BulkReceiptResult(receipts=tuple(receipts), batches=batches)

    # =========================================================================
    # Checkout
    # =========================================================================

    def checkout(self, lines: Sequence[CheckoutLine]) -> CheckoutResult:
        """Deduct sold quantities, ``batch_size`` lines per transaction."""
        results = []
        batches = 0
        with LogContext.bind(operation="checkout", correlation_id=self._correlation_id()):
            for batch in self._batches(lines):
                batches += 1
                with self._db.session_scope("checkout") as session:
                    service = CheckoutService(
                        session,
                        oversell_policy=self._config.oversell_policy,
                        allocator=self._allocator,
                    )
                    results.extend(service.checkout_batch(batch))

            logger.info("checkout_completed", extra={
                "line_count": len(results),
                "batches": batches,
            })
        return CheckoutResult(lines=tuple(results), batches=batches)

    # =========================================================================
    # Revaluation
    # =========================================================================

    def revalue_currency(self, new_currency: Decimal | int | str) -> RevaluationSummary:
        """Reprice every importing product at a new FX multiplier."""
        with LogContext.bind(operation="revalue_currency"):
            with self._db.session_scope("revalue_currency") as session:
                return RevaluationService(session, self._revaluator).revalue(new_currency)

    # =========================================================================
    # Service loans
    # =========================================================================

    def loan_to_service(self, request: LoanRequest) -> ServiceLoanResult:
        with LogContext.bind(operation="loan_to_service", product_id=request.product_id):
            with self._db.session_scope("loan_to_service") as session:
                return self._ledger(session).loan(request)

    def return_from_service(self, request: ReturnRequest) -> ServiceReturnResult:
        with LogContext.bind(operation="return_from_service", service_log_id=request.log_id):
            with self._db.session_scope("return_from_service") as session:
                return self._ledger(session).return_units(request)

    def list_active_service_loans(self) -> list[ServiceLogSnapshot]:
        with self._db.session_scope("list_active_service_loans") as session:
            return self._ledger(session).list_active()

    # =========================================================================
    # Reports
    # =========================================================================

    def low_stock(self, limit: int | None = None, offset: int = 0) -> LowStockReport:
        """Products at or below their alert quantity, lowest stock first."""
        if limit is not None:
            coerce_quantity(limit, "limit")
        coerce_quantity(offset, "offset", allow_zero=True)
        with self._db.session_scope("low_stock") as session:
            return ProductSelector(session).low_stock(limit=limit, offset=offset)

    def inventory_value(self) -> Decimal:
        """Total value of all tranches across the catalog."""
        with self._db.session_scope("inventory_value") as session:
            return ProductSelector(session).inventory_value()

    # =========================================================================
    # Outcome mapping
    # =========================================================================

    def run(self, operation: str, *args: Any, **kwargs: Any) -> OperationOutcome:
        """
        Invoke an operation by name and return an OperationOutcome.

        Raises nothing for kernel errors; programming errors (TypeError,
        AttributeError, ...) still propagate.
        """
        if operation not in self.OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")

        try:
            value = getattr(self, operation)(*args, **kwargs)
        except StoreError as exc:
            logger.error("operation_failed", extra={
                "operation": operation,
                "error_code": exc.code,
                "detail": exc.detail,
            })
            return OperationOutcome.from_exception(operation, exc)
        except StockKernelError as exc:
            logger.info("operation_rejected", extra={
                "operation": operation,
                "error_code": exc.code,
                "reason": str(exc),
            })
            return OperationOutcome.from_exception(operation, exc)

        return OperationOutcome.succeeded(operation, value)

    # =========================================================================
    # Internal
    # =========================================================================

    def _ledger(self, session) -> ServiceLedger:
        return ServiceLedger(
            session,
            self._clock,
            oversell_policy=self._config.oversell_policy,
            default_service_type=self._config.default_service_type,
            allocator=self._allocator,
        )

    def _batches(self, items: Sequence[T]) -> Iterator[Sequence[T]]:
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            raise ValidationError("Bulk operations take a sequence of requests", "items")
        for index, batch in enumerate(_chunks(items, self._config.batch_size)):
            if index > 0 and self._config.batch_pause_seconds > 0:
                self._sleep(self._config.batch_pause_seconds)
            yield batch

    @staticmethod
    def _correlation_id() -> str | None:
        if LogContext.get_all().get("correlation_id"):
            return None
        return str(uuid4())
