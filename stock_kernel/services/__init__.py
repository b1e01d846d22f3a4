"""Kernel services: flush-only writers used inside a unit of work."""

from stock_kernel.services.base import BaseService
from stock_kernel.services.inventory_store import InventoryStore

__all__ = [
    "BaseService",
    "InventoryStore",
]
