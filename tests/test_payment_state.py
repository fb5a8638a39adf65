from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from mall_app.core.errors import ValidationFailure
from mall_app.models.enums import PaymentStatus
from mall_app.services.payment_state import (
    accept_payment,
    check_written_status,
    compute_payment_remainder,
    effective_payment_status,
)

TODAY = date(2026, 3, 15)


class TestAcceptPayment:
    def test_full_amount_is_paid(self):
        result = accept_payment(Decimal("500"), Decimal("500"))
        assert result.status == PaymentStatus.PAID
        assert result.remaining == 0

    def test_half_amount_is_partial_with_remainder(self):
        result = accept_payment(Decimal("500"), Decimal("250"))
        assert result.status == PaymentStatus.PARTIAL
        assert result.remaining == Decimal("250")

    @pytest.mark.parametrize("amount", ["0", "-1", "500.01"])
    def test_out_of_range_amounts_rejected(self, amount):
        with pytest.raises(ValidationFailure):
            accept_payment(Decimal("500"), Decimal(amount))


class TestRemainder:
    def test_remainder(self):
        assert compute_payment_remainder(1000, Decimal("400.50")) == Decimal("599.50")

    def test_overpayment_rejected(self):
        with pytest.raises(ValidationFailure):
            compute_payment_remainder(100, 101)


class TestEffectivePaymentStatus:
    def payment(self, status, due_in):
        return SimpleNamespace(status=status, due_date=TODAY + timedelta(days=due_in))

    def test_paid_stays_paid_after_due_date(self):
        assert (
            effective_payment_status(self.payment(PaymentStatus.PAID, -10), TODAY)
            == PaymentStatus.PAID
        )

    @pytest.mark.parametrize("status", [PaymentStatus.PENDING, PaymentStatus.OVERDUE])
    def test_unsettled_past_due_is_overdue(self, status):
        assert effective_payment_status(self.payment(status, -1), TODAY) == PaymentStatus.OVERDUE

    def test_partial_row_never_reads_overdue(self):
        # what is still owed lives on the remainder row
        assert (
            effective_payment_status(self.payment(PaymentStatus.PARTIAL, -5), TODAY)
            == PaymentStatus.PARTIAL
        )

    def test_legacy_overdue_before_due_date_reads_pending(self):
        assert (
            effective_payment_status(self.payment(PaymentStatus.OVERDUE, 3), TODAY)
            == PaymentStatus.PENDING
        )

    def test_due_today_is_not_overdue(self):
        assert (
            effective_payment_status(self.payment(PaymentStatus.PENDING, 0), TODAY)
            == PaymentStatus.PENDING
        )

    def test_overdue_cannot_be_written(self):
        with pytest.raises(ValidationFailure):
            check_written_status(PaymentStatus.OVERDUE)
