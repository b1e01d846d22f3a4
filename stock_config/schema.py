"""
Engine configuration schema (``stock_config.schema``).

Responsibility
--------------
Typed, validated settings for the inventory engine: database connection,
batching of bulk operations, the oversell policy and logging level.

Invariants enforced
-------------------
* Every field is validated in ``__post_init__``; an invalid value raises
  ``ValueError`` naming the field.
* The dataclass is frozen; a loaded config never changes at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from stock_kernel.logging_config import get_logger

logger = get_logger("config.schema")


class OversellPolicy(str, Enum):
    """What a deduction does when the tranches cannot cover it."""

    CLAMP = "clamp"    # Drain what exists, log the shortfall, stock floors at 0
    REJECT = "reject"  # Raise InsufficientStockError and roll back


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings for one InventoryEngine process.

    Defaults match ``stock_config/defaults.yaml``.
    """

    database_url: str = "sqlite:///stock.db"
    echo_sql: bool = False
    pool_size: int = 15
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    # Bulk checkout / bulk receipt: items per transaction, pause between
    batch_size: int = 50
    batch_pause_seconds: float = 0.05

    oversell_policy: OversellPolicy = OversellPolicy.CLAMP
    default_service_type: str = "Repair"
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database_url must not be empty")

        for name in ("pool_size", "pool_timeout", "pool_recycle", "batch_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if isinstance(self.max_overflow, bool) or not isinstance(self.max_overflow, int) \
                or self.max_overflow < 0:
            raise ValueError(
                f"max_overflow must be a non-negative integer, got {self.max_overflow!r}"
            )

        if isinstance(self.batch_pause_seconds, bool) or not isinstance(
            self.batch_pause_seconds, (int, float)
        ):
            raise ValueError(
                f"batch_pause_seconds must be a number, got {self.batch_pause_seconds!r}"
            )
        if self.batch_pause_seconds < 0:
            raise ValueError("batch_pause_seconds cannot be negative")

        try:
            object.__setattr__(self, "oversell_policy", OversellPolicy(self.oversell_policy))
        except ValueError:
            raise ValueError(
                f"oversell_policy must be one of "
                f"{sorted(p.value for p in OversellPolicy)}, got '{self.oversell_policy}'"
            ) from None

        if not str(self.default_service_type).strip():
            raise ValueError("default_service_type must not be empty")

        level = str(self.log_level).upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.log_level}'"
            )
        object.__setattr__(self, "log_level", level)

        logger.info(
            "engine_config_initialized",
            extra={
                "batch_size": self.batch_size,
                "batch_pause_seconds": self.batch_pause_seconds,
                "oversell_policy": self.oversell_policy.value,
                "default_service_type": self.default_service_type,
                "log_level": self.log_level,
            },
        )
