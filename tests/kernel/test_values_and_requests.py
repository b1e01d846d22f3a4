"""Tests for boundary coercion and request DTO validation."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

import stock_kernel.db as kernel_db
from stock_kernel.db.types import round_cost
from stock_kernel.domain.dtos import (
    CheckoutLine,
    LoanRequest,
    ProductSnapshot,
    ReceiveStockRequest,
    ReturnRequest,
)
from stock_kernel.domain.values import (
    TrancheLevels,
    coerce_decimal,
    coerce_quantity,
    coerce_uuid,
)
from stock_kernel.exceptions import (
    InvalidPriceError,
    InvalidQuantityError,
    ValidationError,
)


class TestCoerceQuantity:

    def test_positive(self):
        assert coerce_quantity(3, "qty") == 3

    def test_zero_only_when_allowed(self):
        assert coerce_quantity(0, "qty", allow_zero=True) == 0
        with pytest.raises(InvalidQuantityError, match="positive"):
            coerce_quantity(0, "qty")

    @pytest.mark.parametrize("value", [-1, 1.5, "2", None, True])
    def test_rejects(self, value):
        with pytest.raises(InvalidQuantityError) as exc_info:
            coerce_quantity(value, "qty", allow_zero=True)

        assert exc_info.value.field == "qty"
        assert exc_info.value.value == value


class TestCoerceDecimal:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("1.50"), Decimal("1.50")),
            (2, Decimal("2")),
            (" 0.25 ", Decimal("0.25")),
            (0, Decimal("0")),
        ],
    )
    def test_accepts(self, value, expected):
        assert coerce_decimal(value, "price") == expected

    @pytest.mark.parametrize(
        "value",
        [None, False, "abc", "-0.01", Decimal("Infinity"), float("nan"), 0.1, 2.0, [1]],
    )
    def test_rejects(self, value):
        with pytest.raises(InvalidPriceError):
            coerce_decimal(value, "price")


class TestCoerceUuid:

    def test_accepts_uuid_and_string(self):
        value = uuid4()
        assert coerce_uuid(value, "id") is value
        assert coerce_uuid(str(value), "id") == value

    @pytest.mark.parametrize("value", ["not-a-uuid", 42, None])
    def test_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            coerce_uuid(value, "product_id")

        assert exc_info.value.field == "product_id"


class TestRequests:

    def test_receive_normalizes_fields(self):
        pid = uuid4()
        request = ReceiveStockRequest(
            product_id=str(pid), sea_qty=2, local_qty=1, local_unit_price="4.5",
        )

        assert request.product_id == pid
        assert isinstance(request.product_id, UUID)
        assert request.local_unit_price == Decimal("4.5")
        assert request.total_incoming == 3
        assert not request.is_empty

    def test_receive_with_only_date_is_not_empty(self):
        request = ReceiveStockRequest(product_id=uuid4(), shipment_date=date(2024, 1, 2))

        assert request.total_incoming == 0
        assert not request.is_empty

    def test_receive_rejects_bad_date(self):
        with pytest.raises(ValidationError) as exc_info:
            ReceiveStockRequest(product_id=uuid4(), shipment_date="2024-01-02")

        assert exc_info.value.field == "shipment_date"

    def test_receive_rejects_negative_quantity(self):
        with pytest.raises(InvalidQuantityError):
            ReceiveStockRequest(product_id=uuid4(), air_qty=-1)

    def test_checkout_line_requires_positive_qty(self):
        with pytest.raises(InvalidQuantityError):
            CheckoutLine(product_id=uuid4(), qty=0)

    def test_loan_blank_type_falls_back_to_default(self):
        request = LoanRequest(product_id=uuid4(), qty=1, unit_cost=1, loan_type="  ")

        assert request.loan_type is None
        assert request.unit_cost == Decimal("1")

    def test_loan_rejects_negative_cost(self):
        with pytest.raises(InvalidPriceError):
            LoanRequest(product_id=uuid4(), qty=1, unit_cost="-3")

    def test_return_requires_uuid(self):
        with pytest.raises(ValidationError):
            ReturnRequest(log_id="log-1", qty=1)


class TestProductSnapshot:

    def test_with_tranches_derives_stock_qty(self):
        snapshot = ProductSnapshot(product_id=uuid4(), stock_qty=99)

        updated = snapshot.with_tranches(TrancheLevels(local=1, air=2, sea=3))

        assert updated.stock_qty == 6
        assert updated.is_partitioned
        assert not snapshot.is_partitioned

    def test_low_stock_threshold_inclusive(self):
        assert ProductSnapshot(product_id=uuid4(), stock_qty=5, alert_qty=5).is_low_stock
        assert not ProductSnapshot(product_id=uuid4(), stock_qty=6, alert_qty=5).is_low_stock


class TestDbPackage:

    def test_exports_resolve(self):
        missing = [name for name in kernel_db.__all__ if not hasattr(kernel_db, name)]
        assert missing == []

    def test_round_cost_half_up_to_nine_places(self):
        assert round_cost(Decimal("0.0000000005")) == Decimal("0.000000001")
        assert round_cost(Decimal("2.5")) == Decimal("2.500000000")
        assert round_cost(Decimal("1.0000000004")) == Decimal("1.000000000")
