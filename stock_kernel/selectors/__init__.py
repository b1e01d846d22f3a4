"""Read-only selectors over the stock tables."""

from stock_kernel.selectors.base import BaseSelector
from stock_kernel.selectors.product_selector import ProductSelector
from stock_kernel.selectors.service_log_selector import ServiceLogSelector

__all__ = [
    "BaseSelector",
    "ProductSelector",
    "ServiceLogSelector",
]
