from datetime import timedelta
from decimal import Decimal

import pytest

from mall_app.core.date_helper import today
from mall_app.core.errors import (
    AuthorizationFailure,
    LifecycleConflict,
    NotFound,
    ValidationFailure,
)
from mall_app.models.enums import (
    Currency,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)
from mall_app.schemas.schema import (
    PaymentConfirmation,
    PaymentCreate,
    PaymentSubmission,
    PaymentUpdate,
)
from mall_app.services.payment_service import PaymentService
from tests.factories import make_lease, make_payment, make_profile, make_property, set_rate


@pytest.fixture
async def lease(db, people):
    prop = await make_property(db, people["landlord"])
    return await make_lease(db, prop, people["tenant"])


def invoice(lease, **fields):
    return PaymentCreate(
        lease_id=lease.id,
        amount=fields.pop("amount", Decimal("1200")),
        due_date=fields.pop("due_date", today() + timedelta(days=5)),
        **fields,
    )


class TestCreatePayment:
    async def test_landlord_creates_pending_with_pinned_rate(
        self, db, service_db, people, lease
    ):
        await set_rate(db, "3650")
        out = await PaymentService(service_db).create_payment(
            invoice(lease), people["landlord"]
        )
        assert out.payment.status == PaymentStatus.PENDING
        assert out.payment.exchange_rate == Decimal("3650")
        assert out.payment.tenant_id == people["tenant"].id
        assert out.remaining == Decimal("1200")

    async def test_tenant_cannot_record_paid(self, service_db, people, lease):
        with pytest.raises(AuthorizationFailure):
            await PaymentService(service_db).create_payment(
                invoice(lease, status=PaymentStatus.PAID), people["tenant"]
            )

    async def test_tenant_creates_pending(self, service_db, people, lease):
        out = await PaymentService(service_db).create_payment(
            invoice(lease), people["tenant"]
        )
        assert out.payment.stored_status == PaymentStatus.PENDING

    async def test_overdue_cannot_be_written(self, service_db, people, lease):
        with pytest.raises(ValidationFailure):
            await PaymentService(service_db).create_payment(
                invoice(lease, status=PaymentStatus.OVERDUE), people["landlord"]
            )

    async def test_partial_needs_paid_amount(self, service_db, people, lease):
        with pytest.raises(ValidationFailure):
            await PaymentService(service_db).create_payment(
                invoice(lease, status=PaymentStatus.PARTIAL), people["landlord"]
            )

    async def test_partial_at_creation_splits_row(self, service_db, people, lease):
        out = await PaymentService(service_db).create_payment(
            invoice(lease, status=PaymentStatus.PARTIAL, paid_amount=Decimal("500")),
            people["landlord"],
        )
        assert out.payment.status == PaymentStatus.PARTIAL
        assert out.payment.amount == Decimal("500")
        assert out.remaining == Decimal("700")
        assert out.remainder_payment.amount == Decimal("700")
        assert out.remainder_payment.parent_payment_id == out.payment.id

    async def test_other_landlord_cannot_invoice(self, service_db, people, lease):
        with pytest.raises(NotFound):
            await PaymentService(service_db).create_payment(
                invoice(lease), people["other_landlord"]
            )

    async def test_tenant_cannot_invoice_lapsed_lease(self, db, service_db, people):
        prop = await make_property(db, people["landlord"], unit_number="B-9")
        lapsed = await make_lease(db, prop, people["tenant"], days_left=-1)
        with pytest.raises(NotFound):
            await PaymentService(service_db).create_payment(
                invoice(lapsed), people["tenant"]
            )


class TestSubmitAndConfirm:
    async def test_partial_confirmation_creates_remainder(
        self, db, service_db, people, lease
    ):
        payment = await make_payment(db, lease, amount=Decimal("1200"))
        service = PaymentService(service_db)

        submitted = await service.submit_payment(
            payment.id,
            PaymentSubmission(
                submitted_amount=Decimal("600"),
                payment_method=PaymentMethod.MOBILE_MONEY,
                payment_reference="MM-7781",
            ),
            people["tenant"],
        )
        assert submitted.status == PaymentStatus.PENDING
        assert submitted.submitted_amount == Decimal("600")

        confirmed = await service.confirm_payment(
            payment.id, PaymentConfirmation(), people["landlord"]
        )
        assert confirmed.payment.status == PaymentStatus.PARTIAL
        assert confirmed.payment.payment_date == today()
        assert confirmed.remaining == Decimal("600")
        assert confirmed.remainder_payment.status == PaymentStatus.PENDING

        settled = await service.confirm_payment(
            confirmed.remainder_payment.id, PaymentConfirmation(), people["landlord"]
        )
        assert settled.payment.status == PaymentStatus.PAID
        assert settled.remaining == 0

        parent = await service.get_payment(payment.id, people["landlord"])
        assert parent.status == PaymentStatus.PAID

    async def test_partial_row_must_be_settled_through_remainder(
        self, db, service_db, people, lease
    ):
        payment = await make_payment(db, lease)
        service = PaymentService(service_db)
        await service.confirm_payment(
            payment.id, PaymentConfirmation(amount=Decimal("100")), people["landlord"]
        )
        with pytest.raises(LifecycleConflict):
            await service.confirm_payment(
                payment.id, PaymentConfirmation(), people["landlord"]
            )

    async def test_overpayment_rejected(self, db, service_db, people, lease):
        payment = await make_payment(db, lease, amount=Decimal("100"))
        with pytest.raises(ValidationFailure):
            await PaymentService(service_db).confirm_payment(
                payment.id, PaymentConfirmation(amount=Decimal("100.01")), people["landlord"]
            )

    async def test_tenant_cannot_confirm(self, db, service_db, people, lease):
        payment = await make_payment(db, lease)
        with pytest.raises(AuthorizationFailure):
            await PaymentService(service_db).confirm_payment(
                payment.id, PaymentConfirmation(), people["tenant"]
            )

    async def test_paid_payment_takes_no_submission(self, db, service_db, people, lease):
        payment = await make_payment(db, lease, status=PaymentStatus.PAID)
        with pytest.raises(LifecycleConflict):
            await PaymentService(service_db).submit_payment(
                payment.id,
                PaymentSubmission(
                    submitted_amount=Decimal("10"), payment_method=PaymentMethod.CASH
                ),
                people["tenant"],
            )


class TestDerivedStatus:
    async def test_past_due_reads_overdue_without_writing(
        self, db, service_db, people, lease
    ):
        payment = await make_payment(db, lease, due_date=today() - timedelta(days=3))
        out = await PaymentService(service_db).get_payment(payment.id, people["tenant"])
        assert out.status == PaymentStatus.OVERDUE
        assert out.stored_status == PaymentStatus.PENDING

    async def test_overdue_filter(self, db, service_db, people, lease):
        late = await make_payment(db, lease, due_date=today() - timedelta(days=3))
        await make_payment(db, lease, due_date=today() + timedelta(days=3))
        await make_payment(
            db, lease, due_date=today() - timedelta(days=30), status=PaymentStatus.PAID
        )
        rows = await PaymentService(service_db).list_payments(
            people["landlord"], overdue_only=True
        )
        assert [row.id for row in rows] == [late.id]

    async def test_update_cannot_set_partial_or_overdue(self, db, service_db, people, lease):
        payment = await make_payment(db, lease)
        service = PaymentService(service_db)
        for status in (PaymentStatus.OVERDUE, PaymentStatus.PARTIAL):
            with pytest.raises(ValidationFailure):
                await service.update_payment(
                    payment.id, PaymentUpdate(status=status), people["landlord"]
                )

    async def test_update_to_paid_settles(self, db, service_db, people, lease):
        payment = await make_payment(db, lease)
        out = await PaymentService(service_db).update_payment(
            payment.id, PaymentUpdate(status=PaymentStatus.PAID), people["landlord"]
        )
        assert out.status == PaymentStatus.PAID
        assert out.payment_date == today()

    async def test_update_to_paid_rejects_partial_row(self, db, service_db, people, lease):
        payment = await make_payment(db, lease, amount=Decimal("1000"))
        service = PaymentService(service_db)
        await service.confirm_payment(
            payment.id, PaymentConfirmation(amount=Decimal("400")), people["landlord"]
        )
        with pytest.raises(LifecycleConflict):
            await service.update_payment(
                payment.id, PaymentUpdate(status=PaymentStatus.PAID), people["landlord"]
            )

        rows = await service.list_payments(people["landlord"], lease_id=lease.id)
        assert sorted((row.stored_status, row.amount) for row in rows) == [
            (PaymentStatus.PARTIAL, Decimal("400")),
            (PaymentStatus.PENDING, Decimal("600")),
        ]

    async def test_partial_past_due_counts_once(self, db, service_db, people, lease):
        payment = await make_payment(
            db, lease, amount=Decimal("1000"), due_date=today() - timedelta(days=3)
        )
        service = PaymentService(service_db)
        confirmed = await service.confirm_payment(
            payment.id, PaymentConfirmation(amount=Decimal("400")), people["landlord"]
        )
        assert confirmed.payment.status == PaymentStatus.PARTIAL
        assert confirmed.remainder_payment.status == PaymentStatus.OVERDUE

        rows = await service.list_payments(people["landlord"], overdue_only=True)
        assert [row.id for row in rows] == [confirmed.remainder_payment.id]
        assert rows[0].amount == Decimal("600")


class TestDisplayCurrency:
    async def test_display_uses_pinned_rate(self, db, service_db, people, lease):
        payment = await make_payment(
            db, lease, amount=Decimal("100"), exchange_rate=Decimal("3700")
        )
        await set_rate(db, "4000")
        viewer = await make_profile(
            db, UserRole.SUPERADMIN, "ugx admin", preferred_currency=Currency.UGX
        )
        out = await PaymentService(service_db).get_payment(payment.id, viewer)
        assert out.display_currency == Currency.UGX
        assert out.display_amount == Decimal("370000")
        assert out.formatted_display_amount == "UGX 370,000"
        assert out.formatted_amount == "$100.00"


class TestScoping:
    async def test_tenant_lists_only_own_payments(self, db, service_db, people, lease):
        mine = await make_payment(db, lease)
        other_prop = await make_property(db, people["landlord"], unit_number="B-2")
        other_lease = await make_lease(db, other_prop, people["other_tenant"])
        await make_payment(db, other_lease)

        rows = await PaymentService(service_db).list_payments(people["tenant"])
        assert [row.id for row in rows] == [mine.id]

    async def test_delete_reparents_remainders(self, db, service_db, people, lease):
        payment = await make_payment(db, lease)
        service = PaymentService(service_db)
        confirmed = await service.confirm_payment(
            payment.id, PaymentConfirmation(amount=Decimal("200")), people["landlord"]
        )
        await service.delete_payment(payment.id, people["landlord"])
        remainder = await service.get_payment(
            confirmed.remainder_payment.id, people["landlord"]
        )
        assert remainder.parent_payment_id is None
