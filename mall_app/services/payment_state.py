from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from mall_app.core.date_helper import today as current_day
from mall_app.core.errors import ValidationFailure
from mall_app.models.enums import PaymentStatus

from .currency_service import to_decimal

WRITABLE_STATUSES = {PaymentStatus.PENDING, PaymentStatus.PARTIAL, PaymentStatus.PAID}
# a partial row's own amount was received; what is still owed sits on its remainder
OUTSTANDING_STATUSES = {PaymentStatus.PENDING, PaymentStatus.OVERDUE}


@dataclass(frozen=True)
class PaymentAcceptance:
    status: PaymentStatus
    amount: Decimal
    remaining: Decimal


def compute_payment_remainder(total, paid) -> Decimal:
    remainder = to_decimal(total) - to_decimal(paid)
    if remainder < 0:
        raise ValidationFailure(
            f"Paid amount {paid} exceeds the amount due {total}"
        )
    return remainder


def accept_payment(total_due, amount) -> PaymentAcceptance:
    total_due = to_decimal(total_due)
    amount = to_decimal(amount)
    if total_due <= 0:
        raise ValidationFailure("Amount due must be greater than zero")
    if amount <= 0:
        raise ValidationFailure("Payment amount must be greater than zero")
    if amount > total_due:
        raise ValidationFailure(
            f"Payment amount {amount} exceeds the amount due {total_due}"
        )

    remaining = compute_payment_remainder(total_due, amount)
    status = PaymentStatus.PAID if remaining == 0 else PaymentStatus.PARTIAL
    return PaymentAcceptance(status=status, amount=amount, remaining=remaining)


def effective_payment_status(payment, on: date | None = None) -> PaymentStatus:
    on = on or current_day()
    if payment.status not in OUTSTANDING_STATUSES:
        return payment.status
    if payment.due_date < on:
        return PaymentStatus.OVERDUE
    if payment.status == PaymentStatus.OVERDUE:
        # legacy rows that stored the derived value
        return PaymentStatus.PENDING
    return payment.status


def check_written_status(status: PaymentStatus) -> PaymentStatus:
    if status not in WRITABLE_STATUSES:
        raise ValidationFailure(
            "Overdue is derived from the due date and cannot be set directly"
        )
    return status
