"""
Stock Kernel

Persistence, typed errors, structured logging and domain DTOs for a
commingled stock pool valued at a single weighted-average unit cost:
- Three provenance tranches per product (local, air, sea)
- Row-locked, all-or-nothing stock movements
- Service loans with partial/full return accounting
"""

__version__ = "0.1.0"
