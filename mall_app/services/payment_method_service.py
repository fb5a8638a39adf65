import logging
import uuid
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.errors import NotFound
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, PaymentMethod, UserRole
from mall_app.repos.payment_method_repo import PaymentMethodRepo
from mall_app.schemas.schema import (
    PaymentMethodCreate,
    PaymentMethodDetails,
    PaymentMethodOut,
    PaymentMethodUpdate,
)

logger = logging.getLogger(__name__)


def method_details(method_type: PaymentMethod, details: PaymentMethodDetails) -> dict:
    """Keep only the details that apply to ``method_type``.

    Bank transfers carry an account number and ask the tenant for their
    account reference; cash asks for a receipt.
    """
    out = {"instructions": details.instructions}
    if method_type == PaymentMethod.MOBILE_MONEY:
        out["provider"] = details.provider
    elif method_type == PaymentMethod.BANK_TRANSFER:
        out["account_number"] = details.account_number
        out["account_required"] = True
    elif method_type == PaymentMethod.CASH:
        out["receipt_required"] = True
    return out


class PaymentMethodService:
    def __init__(self, db):
        self.db = db
        self.repo: PaymentMethodRepo = PaymentMethodRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def list_methods(
        self, current_user, active_only: bool = False
    ) -> List[PaymentMethodOut]:
        """Tenants only ever see the methods they can pay with."""
        await self.permission.check_authenticated(current_user=current_user)
        active_only = active_only or current_user.role == UserRole.TENANT

        async def _handler():
            return await self.repo.list_methods(active_only=active_only)

        rows = await breaker.call(_handler)
        return [PaymentMethodOut.model_validate(row) for row in rows]

    async def get_method(self, method_id: uuid.UUID, current_user) -> PaymentMethodOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.get_by_id(method_id)

        method = await breaker.call(_handler)
        hidden = current_user.role == UserRole.TENANT and method and not method.is_active
        if not method or hidden:
            raise NotFound("Payment method not found")
        return PaymentMethodOut.model_validate(method)

    async def create_method(
        self, payload: PaymentMethodCreate, current_user
    ) -> PaymentMethodOut:
        await self.permission.check_superadmin(current_user=current_user)

        async def _handler():
            method = await self.repo.create(
                name=payload.name,
                method_type=payload.method_type,
                details=method_details(payload.method_type, payload.details),
                is_active=payload.is_active,
                created_by=current_user.id,
            )
            await self.repo.db_commit_and_refresh(method)
            return method

        method = await breaker.call(atomic, self.db, _handler)
        logger.info(f"Payment method {method.name} added by {current_user.id}")
        await publish_change("payment_methods", ChangeEvent.INSERT, method.id)
        return PaymentMethodOut.model_validate(method)

    async def update_method(
        self, method_id: uuid.UUID, payload: PaymentMethodUpdate, current_user
    ) -> PaymentMethodOut:
        await self.permission.check_superadmin(current_user=current_user)
        fields = payload.model_dump(exclude_unset=True, exclude={"details"})

        async def _handler():
            method = await self.repo.get_by_id(method_id)
            if not method:
                raise NotFound("Payment method not found")
            for field, value in fields.items():
                if value is not None:
                    setattr(method, field, value)
            if payload.details is not None or "method_type" in fields:
                details = payload.details or PaymentMethodDetails(**(method.details or {}))
                method.details = method_details(method.method_type, details)
            await self.repo.db_commit_and_refresh(method)
            return method

        method = await breaker.call(atomic, self.db, _handler)
        await publish_change("payment_methods", ChangeEvent.UPDATE, method.id)
        return PaymentMethodOut.model_validate(method)

    async def delete_method(self, method_id: uuid.UUID, current_user):
        await self.permission.check_superadmin(current_user=current_user)

        async def _handler():
            method = await self.repo.get_by_id(method_id)
            if not method:
                raise NotFound("Payment method not found")
            await self.repo.detach_payments(method.id)
            await self.repo.db_delete(method)
            await self.repo.db_commit()

        await breaker.call(atomic, self.db, _handler)
        logger.info(f"Payment method {method_id} removed by {current_user.id}")
        await publish_change("payment_methods", ChangeEvent.DELETE, method_id)
        return {"success": True, "message": "Payment method deleted"}
