"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Stock movements are failure-sensitive: a rejected return, an unknown product
and a dropped database connection need very different handling by the caller.
Parsing messages to tell them apart is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        engine.return_from_service(ReturnRequest(log_id=log_id, qty=3))
    except ServiceLogAlreadyReturnedError as e:
        reply(409, code=e.code, log_id=e.log_id)
    except ValidationError as e:
        reply(400, code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from StockKernelError:

    StockKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidQuantityError
    |   +-- InvalidPriceError
    |   +-- InvalidCurrencyRateError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- ServiceLogNotFoundError
    |
    +-- ConflictError
    |   +-- ServiceLogAlreadyReturnedError
    |   +-- ReturnExceedsLoanError   (also a ValidationError)
    |   +-- InsufficientStockError
    |
    +-- StoreError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                          | When Raised
------------|-------------------------------|-----------------------------------
Validation  | INVALID_QUANTITY              | Quantity not a positive integer
            | INVALID_PRICE                 | Price negative or not a number
            | INVALID_CURRENCY_RATE         | FX multiplier <= 0
------------|-------------------------------|-----------------------------------
Not found   | PRODUCT_NOT_FOUND             | Product id doesn't exist
            | SERVICE_LOG_NOT_FOUND         | Service log id doesn't exist
------------|-------------------------------|-----------------------------------
Conflict    | SERVICE_LOG_ALREADY_RETURNED  | Return against a closed loan
            | RETURN_EXCEEDS_LOAN           | Return more than is still on loan
            | INSUFFICIENT_STOCK            | Deduction beyond stock ("reject"
            |                               | oversell policy only)
------------|-------------------------------|-----------------------------------
Store       | STORE_ERROR                   | Transaction, lock or connection
            |                               | failure in the persistence layer

===============================================================================
HANDLING PATTERNS
===============================================================================

Validation, not-found and conflict errors are caller-correctable and are
never retried automatically.  StoreError is an internal failure; stock
operations are not idempotent (replaying a receipt doubles the quantity), so
any retry must be deduplicated by the caller.
"""


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Validation exceptions


class ValidationError(StockKernelError):
    """Input rejected before any stock was touched."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidQuantityError(ValidationError):
    """Quantity is not a positive (or non-negative) integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: object, allow_zero: bool = False):
        self.value = value
        bound = "a non-negative" if allow_zero else "a positive"
        super().__init__(f"{field} must be {bound} integer, got {value!r}", field)


class InvalidPriceError(ValidationError):
    """Price is negative or cannot be read as a decimal number."""

    code: str = "INVALID_PRICE"

    def __init__(self, field: str, value: object):
        self.value = value
        super().__init__(f"{field} must be a non-negative decimal, got {value!r}", field)


class InvalidCurrencyRateError(ValidationError):
    """FX multiplier is zero, negative or not a number."""

    code: str = "INVALID_CURRENCY_RATE"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Currency rate must be positive, got {value!r}", "currency")


# Not-found exceptions


class NotFoundError(StockKernelError):
    """Referenced record does not exist."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class ServiceLogNotFoundError(NotFoundError):
    """Service log entry with given ID was not found."""

    code: str = "SERVICE_LOG_NOT_FOUND"

    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Service log not found: {log_id}")


# Conflict exceptions


class ConflictError(StockKernelError):
    """Request contradicts the current state of the record."""

    code: str = "CONFLICT"


class ServiceLogAlreadyReturnedError(ConflictError):
    """Return requested against a loan that is already fully returned."""

    code: str = "SERVICE_LOG_ALREADY_RETURNED"

    def __init__(self, log_id: str):
        self.log_id = log_id
        super().__init__(f"Service log {log_id} is already returned")


class ReturnExceedsLoanError(ConflictError, ValidationError):
    """Return quantity is larger than what is still out on loan."""

    code: str = "RETURN_EXCEEDS_LOAN"

    def __init__(self, log_id: str, requested: int, remaining: int):
        self.log_id = log_id
        self.requested = requested
        self.remaining = remaining
        self.field = "qty"
        StockKernelError.__init__(
            self,
            f"Cannot return {requested} unit(s) on service log {log_id}: "
            f"only {remaining} still on loan",
        )


class InsufficientStockError(ConflictError):
    """Deduction exceeds the stock on hand and oversell is rejected."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id}: requested {requested}, only {available} available"
        )


# Store exceptions


class StoreError(StockKernelError):
    """Transaction, lock or connectivity failure in the persistence layer."""

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store failure during {operation}")
