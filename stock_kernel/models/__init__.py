"""ORM models for the stock kernel."""

from stock_kernel.models.product import ProductModel
from stock_kernel.models.service_log import ServiceLogModel

__all__ = [
    "ProductModel",
    "ServiceLogModel",
]
