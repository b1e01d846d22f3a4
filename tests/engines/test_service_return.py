"""
Tests for the service loan state machine.

Covers:
- Opening a loan
- Partial and full returns
- Rejections: non-positive quantity, returned entry, over-return
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from stock_engines.service_return import open_loan, plan_return
from stock_kernel.domain.dtos import ServiceLogStatus
from stock_kernel.exceptions import (
    ConflictError,
    InvalidQuantityError,
    ReturnExceedsLoanError,
    ServiceLogAlreadyReturnedError,
    ValidationError,
)

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)


def _loan(qty: int = 5):
    return open_loan(
        product_id=uuid4(),
        qty=qty,
        unit_cost=Decimal("12.5"),
        loan_type="Repair",
        label="BP-100",
        created_at=NOW,
    )


class TestOpenLoan:

    def test_new_loan_is_active(self):
        loan = _loan(5)

        assert loan.is_active
        assert loan.qty == 5
        assert loan.return_cost == Decimal("12.5")
        assert loan.model == "BP-100"
        assert loan.created_at == NOW

    def test_explicit_log_id_is_kept(self):
        log_id = uuid4()
        loan = open_loan(uuid4(), 1, Decimal("1"), "Damage", "X", NOW, log_id=log_id)

        assert loan.log_id == log_id

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidQuantityError):
            _loan(0)


class TestPlanReturn:

    def test_partial_return_stays_active(self):
        plan = plan_return(_loan(5), 2)

        assert plan.after.qty == 3
        assert plan.after.status == ServiceLogStatus.ACTIVE
        assert not plan.closes_loan
        assert plan.returned_qty == 2

    def test_full_return_closes_loan(self):
        plan = plan_return(_loan(5), 5)

        assert plan.after.qty == 0
        assert plan.after.status == ServiceLogStatus.RETURNED
        assert plan.closes_loan

    def test_loan_five_return_two_then_three(self):
        first = plan_return(_loan(5), 2)
        second = plan_return(first.after, 3)

        assert second.after.status == ServiceLogStatus.RETURNED
        assert second.after.qty == 0
        assert first.returned_qty + second.returned_qty == 5

    @pytest.mark.parametrize("qty", [0, -3])
    def test_non_positive_quantity_rejected(self, qty):
        with pytest.raises(InvalidQuantityError) as exc_info:
            plan_return(_loan(5), qty)

        assert exc_info.value.field == "qty"

    def test_return_against_returned_entry_is_conflict(self):
        closed = plan_return(_loan(2), 2).after

        with pytest.raises(ServiceLogAlreadyReturnedError) as exc_info:
            plan_return(closed, 1)

        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.code == "SERVICE_LOG_ALREADY_RETURNED"

    def test_over_return_rejected(self):
        with pytest.raises(ReturnExceedsLoanError) as exc_info:
            plan_return(_loan(3), 4)

        exc = exc_info.value
        assert exc.requested == 4
        assert exc.remaining == 3
        # Both a state conflict and a caller input error
        assert isinstance(exc, ConflictError)
        assert isinstance(exc, ValidationError)
        assert exc.field == "qty"
