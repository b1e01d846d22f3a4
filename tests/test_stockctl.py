"""Tests for the stockctl operator command line."""

import json
from decimal import Decimal

import pytest

from scripts.stockctl import build_parser, main


@pytest.fixture
def cli_env(monkeypatch):
    """Keep the developer's configuration out of the CLI under test."""
    for var in ("STOCK_CONFIG_FILE", "DATABASE_URL", "DB_HOST", "STOCK_OVERSELL_POLICY"):
        monkeypatch.delenv(var, raising=False)


def _run(capsys, *argv) -> tuple[int, object]:
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, json.loads(out)


class TestStockctl:

    def test_init_db_creates_tables(self, tmp_path, capsys, cli_env):
        url = f"sqlite:///{tmp_path / 'cli.db'}"

        code, payload = _run(capsys, "--database-url", url, "init-db")

        assert code == 0
        assert payload == {"status": "ok"}

    def test_reports_on_seeded_database(self, db, database_url, make_product, capsys, cli_env):
        make_product(local_qty=2, alert_qty=5, avg_purchase_price=Decimal("3"))
        make_product(local_qty=40, alert_qty=5, avg_purchase_price=Decimal("1"))

        code, low = _run(capsys, "--database-url", database_url, "low-stock")
        assert code == 0
        assert low["total"] == 1
        assert low["products"][0]["local_qty"] == 2

        code, value = _run(capsys, "--database-url", database_url, "inventory-value")
        assert code == 0
        assert abs(Decimal(value) - Decimal("46")) < Decimal("1e-6")

        code, loans = _run(capsys, "--database-url", database_url, "loans")
        assert code == 0
        assert loans == []

    def test_revalue(self, db, database_url, make_product, read_product, capsys, cli_env):
        pid = make_product(
            yuan=Decimal("10"), currency=Decimal("2"), shipmenttax=Decimal("5"),
            weight=Decimal("1"), sea_stock_qty=1, avg_purchase_price=Decimal("25"),
        )

        code, summary = _run(capsys, "--database-url", database_url, "revalue", "3")

        assert code == 0
        assert summary["revalued"] == 1
        assert read_product(pid).avg_purchase_price == Decimal("35")

    def test_rejected_rate_exits_non_zero(self, db, database_url, capsys, cli_env):
        code, payload = _run(capsys, "--database-url", database_url, "revalue", "-1")

        assert code == 1
        assert payload["status"] == "rejected"
        assert payload["code"] == "INVALID_CURRENCY_RATE"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
