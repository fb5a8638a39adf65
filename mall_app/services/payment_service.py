import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.date_helper import today
from mall_app.core.errors import (
    AuthorizationFailure,
    LifecycleConflict,
    NotFound,
    ValidationFailure,
)
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, PaymentStatus, UserRole
from mall_app.models.models import Payment
from mall_app.policy.access_policy import AccessPolicy
from mall_app.repos.lease_repo import LeaseRepo
from mall_app.repos.payment_method_repo import PaymentMethodRepo
from mall_app.repos.payment_repo import PaymentRepo
from mall_app.schemas.schema import (
    PaymentConfirmation,
    PaymentConfirmationOut,
    PaymentCreate,
    PaymentOut,
    PaymentSubmission,
    PaymentUpdate,
)

from .currency_service import CurrencyService, convert_amount, format_amount, round_amount
from .payment_state import accept_payment, check_written_status, effective_payment_status

logger = logging.getLogger(__name__)


def payment_out(payment: Payment, display_currency=None, on: date | None = None) -> PaymentOut:
    """Serialize a payment with its derived status.

    Display conversion uses the rate pinned on the payment, never the live one.
    """
    display_currency = display_currency or payment.currency
    display_amount = round_amount(
        convert_amount(
            payment.amount, payment.currency, display_currency, payment.exchange_rate
        ),
        display_currency,
    )
    return PaymentOut(
        id=payment.id,
        lease_id=payment.lease_id,
        tenant_id=payment.tenant_id,
        landlord_id=payment.landlord_id,
        parent_payment_id=payment.parent_payment_id,
        amount=payment.amount,
        currency=payment.currency,
        exchange_rate=payment.exchange_rate,
        due_date=payment.due_date,
        payment_date=payment.payment_date,
        stored_status=payment.status,
        status=effective_payment_status(payment, on),
        payment_method=payment.payment_method,
        payment_method_id=payment.payment_method_id,
        payment_reference=payment.payment_reference,
        submitted_amount=payment.submitted_amount,
        notes=payment.notes,
        formatted_amount=format_amount(payment.amount, payment.currency),
        display_currency=display_currency,
        display_amount=display_amount,
        formatted_display_amount=format_amount(display_amount, display_currency),
        created_at=payment.created_at,
    )


class PaymentService:
    def __init__(self, db):
        self.db = db
        self.repo: PaymentRepo = PaymentRepo(db)
        self.lease_repo: LeaseRepo = LeaseRepo(db)
        self.method_repo: PaymentMethodRepo = PaymentMethodRepo(db)
        self.currency: CurrencyService = CurrencyService(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def _visible_payment(self, current_user, payment_id: uuid.UUID) -> Payment:
        payment = await self.repo.get_visible(current_user, payment_id)
        if not payment:
            raise NotFound("Payment not found")
        return payment

    async def _resolve_method(self, method_id, method_type):
        """A configured method, when named, decides the method type."""
        if method_id is None:
            return None, method_type
        method = await self.method_repo.get_by_id(method_id)
        if not method or not method.is_active:
            raise ValidationFailure("Payment method is not available")
        return method.id, method.method_type

    async def _promote_settled_chain(self, payment: Payment):
        # a paid remainder settles every partial row above it
        seen = {payment.id}
        parent_id = payment.parent_payment_id
        while parent_id and parent_id not in seen:
            seen.add(parent_id)
            parent = await self.repo.get_by_id(parent_id)
            if parent is None:
                break
            if parent.status == PaymentStatus.PARTIAL:
                parent.status = PaymentStatus.PAID
            parent_id = parent.parent_payment_id

    async def _settle(
        self,
        payment: Payment,
        received: Decimal,
        on: date,
        payment_method=None,
        payment_reference=None,
    ):
        acceptance = accept_payment(payment.amount, received)
        payment.payment_date = on
        if payment_method is not None:
            payment.payment_method = payment_method
        if payment_reference is not None:
            payment.payment_reference = payment_reference

        remainder = None
        if acceptance.status == PaymentStatus.PAID:
            payment.status = PaymentStatus.PAID
            await self._promote_settled_chain(payment)
        else:
            payment.amount = acceptance.amount
            payment.status = PaymentStatus.PARTIAL
            remainder = await self.repo.create(
                lease_id=payment.lease_id,
                tenant_id=payment.tenant_id,
                landlord_id=payment.landlord_id,
                parent_payment_id=payment.id,
                amount=acceptance.remaining,
                currency=payment.currency,
                exchange_rate=payment.exchange_rate,
                due_date=payment.due_date,
                status=PaymentStatus.PENDING,
                notes=f"Remainder of payment {payment.id}",
            )
        await self.repo.db.flush()
        return acceptance.remaining, remainder

    async def create_payment(self, payload: PaymentCreate, current_user) -> PaymentConfirmationOut:
        await self.permission.check_authenticated(current_user=current_user)
        status = check_written_status(payload.status)
        is_tenant = current_user.role == UserRole.TENANT
        if is_tenant and status != PaymentStatus.PENDING:
            raise AuthorizationFailure(
                "Tenants submit payments as pending; a landlord confirms them"
            )
        if status == PaymentStatus.PARTIAL and payload.paid_amount is None:
            raise ValidationFailure("paid_amount is required for a partial payment")
        rate = await self.currency.get_rate()

        async def _handler():
            lease = await self.lease_repo.get_visible(current_user, payload.lease_id)
            if not lease:
                raise NotFound("Lease not found")
            if not is_tenant:
                AccessPolicy.require_owner(current_user, lease.landlord_id, "lease")
            method_id, method_type = await self._resolve_method(
                payload.payment_method_id, payload.payment_method
            )

            payment = await self.repo.create(
                lease_id=lease.id,
                tenant_id=lease.tenant_id,
                landlord_id=lease.landlord_id,
                amount=payload.amount,
                currency=payload.currency or lease.currency,
                exchange_rate=rate,
                due_date=payload.due_date,
                status=PaymentStatus.PENDING,
                payment_method=method_type,
                payment_method_id=method_id,
                payment_reference=payload.payment_reference,
                notes=payload.notes,
            )
            remaining, remainder = payment.amount, None
            if status == PaymentStatus.PAID:
                remaining, remainder = await self._settle(payment, payment.amount, today())
            elif status == PaymentStatus.PARTIAL:
                remaining, remainder = await self._settle(
                    payment, payload.paid_amount, today()
                )
            await self.repo.db_commit_and_refresh(payment)
            return payment, remaining, remainder

        payment, remaining, remainder = await breaker.call(atomic, self.db, _handler)
        await publish_change("payments", ChangeEvent.INSERT, payment.id)
        return self._confirmation_out(payment, remaining, remainder, current_user)

    async def submit_payment(
        self, payment_id: uuid.UUID, payload: PaymentSubmission, current_user
    ) -> PaymentOut:
        """Tenant reports money sent; the row stays unpaid until confirmed."""
        await self.permission.check_tenant(current_user=current_user)

        async def _handler():
            payment = await self._visible_payment(current_user, payment_id)
            if payment.status != PaymentStatus.PENDING:
                raise LifecycleConflict(
                    f"Payment is {payment.status.value} and takes no submissions"
                )
            # validates 0 < submitted <= amount without changing status
            accept_payment(payment.amount, payload.submitted_amount)
            method_id, method_type = await self._resolve_method(
                payload.payment_method_id, payload.payment_method
            )
            payment.submitted_amount = payload.submitted_amount
            payment.payment_method = method_type
            payment.payment_method_id = method_id
            payment.payment_reference = payload.payment_reference
            if payload.notes is not None:
                payment.notes = payload.notes
            await self.repo.db_commit_and_refresh(payment)
            return payment

        payment = await breaker.call(atomic, self.db, _handler)
        await publish_change("payments", ChangeEvent.UPDATE, payment.id)
        return payment_out(payment, current_user.preferred_currency)

    async def confirm_payment(
        self, payment_id: uuid.UUID, payload: PaymentConfirmation, current_user
    ) -> PaymentConfirmationOut:
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            payment = await self._visible_payment(current_user, payment_id)
            AccessPolicy.require_owner(current_user, payment.landlord_id, "payment")
            if payment.status == PaymentStatus.PAID:
                raise LifecycleConflict("Payment is already paid")
            if payment.status == PaymentStatus.PARTIAL:
                raise LifecycleConflict(
                    "Payment was partially settled; confirm its remainder payment instead"
                )
            received = payload.amount or payment.submitted_amount or payment.amount
            remaining, remainder = await self._settle(
                payment,
                received,
                payload.payment_date or today(),
                payment_method=payload.payment_method,
                payment_reference=payload.payment_reference,
            )
            await self.repo.db_commit_and_refresh(payment)
            return payment, remaining, remainder

        payment, remaining, remainder = await breaker.call(atomic, self.db, _handler)
        logger.info(
            f"Payment {payment.id} confirmed as {payment.status.value} by {current_user.id}"
        )
        await publish_change("payments", ChangeEvent.UPDATE, payment.id)
        if remainder is not None:
            await publish_change("payments", ChangeEvent.INSERT, remainder.id)
        return self._confirmation_out(payment, remaining, remainder, current_user)

    async def update_payment(
        self, payment_id: uuid.UUID, payload: PaymentUpdate, current_user
    ) -> PaymentOut:
        await self.permission.check_manager(current_user=current_user)
        fields = payload.model_dump(exclude_unset=True)
        status = fields.pop("status", None)
        if status is not None:
            check_written_status(status)
            if status != PaymentStatus.PAID:
                raise ValidationFailure(
                    "Only 'paid' can be set directly; use confirm for partial amounts"
                )

        async def _handler():
            payment = await self._visible_payment(current_user, payment_id)
            AccessPolicy.require_owner(current_user, payment.landlord_id, "payment")
            if status == PaymentStatus.PAID and payment.status == PaymentStatus.PARTIAL:
                raise LifecycleConflict(
                    "Payment was partially settled; it is paid once its remainder is"
                )
            for field, value in fields.items():
                setattr(payment, field, value)
            if status == PaymentStatus.PAID and payment.status != PaymentStatus.PAID:
                await self._settle(payment, payment.amount, today())
            await self.repo.db_commit_and_refresh(payment)
            return payment

        payment = await breaker.call(atomic, self.db, _handler)
        await publish_change("payments", ChangeEvent.UPDATE, payment.id)
        return payment_out(payment, current_user.preferred_currency)

    async def delete_payment(self, payment_id: uuid.UUID, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            payment = await self._visible_payment(current_user, payment_id)
            AccessPolicy.require_owner(current_user, payment.landlord_id, "payment")
            for child in await self.repo.children(payment.id):
                child.parent_payment_id = payment.parent_payment_id
            await self.repo.db_delete(payment)
            await self.repo.db_commit()

        await breaker.call(atomic, self.db, _handler)
        await publish_change("payments", ChangeEvent.DELETE, payment_id)
        return {"success": True, "message": "Payment deleted"}

    async def get_payment(self, payment_id: uuid.UUID, current_user) -> PaymentOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self._visible_payment(current_user, payment_id)

        payment = await breaker.call(_handler)
        return payment_out(payment, current_user.preferred_currency)

    async def list_payments(
        self,
        current_user,
        lease_id: uuid.UUID | None = None,
        overdue_only: bool = False,
    ) -> List[PaymentOut]:
        await self.permission.check_authenticated(current_user=current_user)
        on = today()

        async def _handler():
            return await self.repo.list_visible(
                current_user,
                lease_id=lease_id,
                overdue_on=on if overdue_only else None,
            )

        payments = await breaker.call(_handler)
        return [
            payment_out(payment, current_user.preferred_currency, on)
            for payment in payments
        ]

    def _confirmation_out(self, payment, remaining, remainder, current_user):
        display = current_user.preferred_currency
        return PaymentConfirmationOut(
            payment=payment_out(payment, display),
            remaining=remaining,
            remainder_payment=payment_out(remainder, display) if remainder else None,
        )
