#!/usr/bin/env python3
"""
Operator command line for the inventory engine.

Usage:
    python3 scripts/stockctl.py init-db
    python3 scripts/stockctl.py revalue 0.52
    python3 scripts/stockctl.py low-stock --limit 20
    python3 scripts/stockctl.py inventory-value
    python3 scripts/stockctl.py loans

Configuration comes from stock_config (defaults.yaml, $STOCK_CONFIG_FILE,
environment).  --config and --database-url override both.  Results are
printed as JSON on stdout; logs go to stderr.
"""

import argparse
import dataclasses
import json
import sys
from decimal import Decimal
from enum import Enum

from stock_config import load_config
from stock_kernel.logging_config import configure_logging
from stock_services import InventoryEngine, OperationOutcome


def _default(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


def _print_json(payload) -> None:
    print(json.dumps(payload, default=_default, indent=2, sort_keys=True))


def _report(outcome: OperationOutcome) -> int:
    if outcome.is_success:
        _print_json(outcome.value)
        return 0
    _print_json({
        "status": outcome.status.value,
        "code": outcome.code,
        "reason": outcome.reason,
    })
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockctl",
        description="Inventory valuation engine: schema setup, FX revaluation and reports",
    )
    parser.add_argument("--config", help="YAML config file (overrides $STOCK_CONFIG_FILE)")
    parser.add_argument("--database-url", help="Database URL (overrides config and $DATABASE_URL)")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the products and product_logs tables")

    revalue = commands.add_parser("revalue", help="Reprice importing products at a new FX rate")
    revalue.add_argument("rate", help="New FX multiplier, e.g. 0.52")

    low_stock = commands.add_parser("low-stock", help="Products at or below their alert quantity")
    low_stock.add_argument("--limit", type=int, default=None, help="Maximum rows to list")
    low_stock.add_argument("--offset", type=int, default=0, help="Rows to skip")

    commands.add_parser("inventory-value", help="Total value of stock on hand")
    commands.add_parser("loans", help="Active service loans, newest first")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.database_url:
        config = dataclasses.replace(config, database_url=args.database_url)
    configure_logging(level=config.log_level)

    engine = InventoryEngine.from_config(config)
    try:
        if args.command == "init-db":
            engine.database.create_tables()
            _print_json({"status": "ok"})
            return 0
        if args.command == "revalue":
            return _report(engine.run("revalue_currency", args.rate))
        if args.command == "low-stock":
            return _report(engine.run("low_stock", limit=args.limit, offset=args.offset))
        if args.command == "inventory-value":
            return _report(engine.run("inventory_value"))
        if args.command == "loans":
            return _report(engine.run("list_active_service_loans"))
    finally:
        engine.close()
    return 2


if __name__ == "__main__":
    sys.exit(main())
