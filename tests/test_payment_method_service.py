import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from mall_app.core.errors import AuthorizationFailure, NotFound, ValidationFailure
from mall_app.models.enums import PaymentMethod
from mall_app.schemas.schema import (
    PaymentMethodCreate,
    PaymentMethodDetails,
    PaymentMethodUpdate,
    PaymentSubmission,
)
from mall_app.services.payment_method_service import PaymentMethodService
from mall_app.services.payment_service import PaymentService
from tests.factories import (
    make_lease,
    make_payment,
    make_payment_method,
    make_property,
)


def bank(**fields):
    return PaymentMethodCreate(
        name=fields.pop("name", "Stanbic transfer"),
        method_type=PaymentMethod.BANK_TRANSFER,
        details=PaymentMethodDetails(
            instructions="Quote your unit number",
            account_number="9030005551234",
            provider="ignored for banks",
        ),
        **fields,
    )


class TestPaymentMethodSettings:
    async def test_superadmin_adds_bank_transfer(self, service_db, people):
        out = await PaymentMethodService(service_db).create_method(bank(), people["admin"])
        assert out.is_active is True
        assert out.created_by == people["admin"].id
        assert out.details == {
            "instructions": "Quote your unit number",
            "account_number": "9030005551234",
            "account_required": True,
        }

    async def test_only_superadmin_manages_methods(self, db, service_db, people):
        method = await make_payment_method(db)
        service = PaymentMethodService(service_db)
        with pytest.raises(AuthorizationFailure):
            await service.create_method(bank(), people["landlord"])
        with pytest.raises(AuthorizationFailure):
            await service.update_method(
                method.id, PaymentMethodUpdate(is_active=False), people["tenant"]
            )
        with pytest.raises(AuthorizationFailure):
            await service.delete_method(method.id, people["landlord"])

    async def test_tenants_see_active_methods_only(self, db, service_db, people):
        active = await make_payment_method(db)
        retired = await make_payment_method(db, name="Old till", is_active=False)
        service = PaymentMethodService(service_db)

        tenant_ids = [m.id for m in await service.list_methods(people["tenant"])]
        assert tenant_ids == [active.id]
        admin_ids = {m.id for m in await service.list_methods(people["admin"])}
        assert admin_ids == {active.id, retired.id}
        landlord_active = await service.list_methods(people["landlord"], active_only=True)
        assert [m.id for m in landlord_active] == [active.id]

        with pytest.raises(NotFound):
            await service.get_method(retired.id, people["tenant"])
        seen = await service.get_method(retired.id, people["admin"])
        assert seen.is_active is False

    async def test_changing_type_reshapes_details(self, db, service_db, people):
        method = await make_payment_method(db)
        out = await PaymentMethodService(service_db).update_method(
            method.id,
            PaymentMethodUpdate(method_type=PaymentMethod.CASH, name="Front desk"),
            people["admin"],
        )
        assert out.name == "Front desk"
        assert out.method_type == PaymentMethod.CASH
        assert out.details == {
            "instructions": "Pay to 0772 000000",
            "receipt_required": True,
        }

    async def test_delete_keeps_payment_history(self, db, service_db, people):
        method = await make_payment_method(db)
        prop = await make_property(db, people["landlord"])
        lease = await make_lease(db, prop, people["tenant"])
        payment = await make_payment(
            db,
            lease,
            payment_method=PaymentMethod.MOBILE_MONEY,
            payment_method_id=method.id,
        )

        await PaymentMethodService(service_db).delete_method(method.id, people["admin"])
        await db.refresh(payment)
        assert payment.payment_method_id is None
        assert payment.payment_method == PaymentMethod.MOBILE_MONEY

    async def test_unknown_method(self, service_db, people):
        with pytest.raises(NotFound):
            await PaymentMethodService(service_db).update_method(
                uuid.uuid4(),
                PaymentMethodUpdate(is_active=False),
                people["admin"],
            )


class TestPayingWithConfiguredMethod:
    @pytest.fixture
    async def payment(self, db, people):
        prop = await make_property(db, people["landlord"])
        lease = await make_lease(db, prop, people["tenant"])
        return await make_payment(db, lease, amount=Decimal("500"))

    async def test_submission_takes_type_from_method(self, db, service_db, people, payment):
        method = await make_payment_method(
            db, name="Centenary transfer", method_type=PaymentMethod.BANK_TRANSFER
        )
        out = await PaymentService(service_db).submit_payment(
            payment.id,
            PaymentSubmission(
                submitted_amount=Decimal("500"),
                payment_method=PaymentMethod.CASH,
                payment_method_id=method.id,
                payment_reference="TRX-001",
            ),
            people["tenant"],
        )
        assert out.payment_method_id == method.id
        assert out.payment_method == PaymentMethod.BANK_TRANSFER

    async def test_retired_method_rejected(self, db, service_db, people, payment):
        method = await make_payment_method(db, is_active=False)
        with pytest.raises(ValidationFailure):
            await PaymentService(service_db).submit_payment(
                payment.id,
                PaymentSubmission(
                    submitted_amount=Decimal("500"), payment_method_id=method.id
                ),
                people["tenant"],
            )

    def test_submission_names_a_method(self):
        with pytest.raises(ValidationError):
            PaymentSubmission(submitted_amount=Decimal("10"))
