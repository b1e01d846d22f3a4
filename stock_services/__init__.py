"""
Module: stock_services
Responsibility:
    Transactional orchestration of the stock engines: receiving, checkout,
    FX revaluation, service loans, and the InventoryEngine facade that owns
    units of work, batching and outcome mapping.

Architecture position:
    Services -- imperative shell.  May import stock_engines, stock_kernel
    and stock_config.
"""

from stock_services.checkout_service import (
    CheckoutLineResult,
    CheckoutResult,
    CheckoutService,
)
from stock_services.deduction import AppliedDeduction, deduct_stock
from stock_services.inventory_engine import InventoryEngine
from stock_services.outcome import (
    INTERNAL_ERROR_REASON,
    OperationOutcome,
    OperationStatus,
    RejectionKind,
)
from stock_services.receiving_service import (
    BulkReceiptResult,
    ReceiptResult,
    ReceivingService,
)
from stock_services.revaluation_service import (
    RevaluationService,
    RevaluationSummary,
    parse_currency_rate,
)
from stock_services.service_ledger import (
    ServiceLedger,
    ServiceLoanResult,
    ServiceReturnResult,
)

__all__ = [
    "InventoryEngine",
    # Receiving
    "ReceivingService",
    "ReceiptResult",
    "BulkReceiptResult",
    # Checkout
    "CheckoutService",
    "CheckoutResult",
    "CheckoutLineResult",
    "AppliedDeduction",
    "deduct_stock",
    # Revaluation
    "RevaluationService",
    "RevaluationSummary",
    "parse_currency_rate",
    # Service loans
    "ServiceLedger",
    "ServiceLoanResult",
    "ServiceReturnResult",
    # Outcomes
    "OperationOutcome",
    "OperationStatus",
    "RejectionKind",
    "INTERNAL_ERROR_REASON",
]
