import uuid
from typing import List, Optional

from sqlalchemy import select, update

from mall_app.models.models import Payment, PaymentMethodSetting

from .base_repo import BaseRepo


class PaymentMethodRepo(BaseRepo):
    async def get_by_id(self, method_id: uuid.UUID) -> Optional[PaymentMethodSetting]:
        result = await self.db.execute(
            select(PaymentMethodSetting).where(PaymentMethodSetting.id == method_id)
        )
        return result.scalar_one_or_none()

    async def list_methods(self, active_only: bool = False) -> List[PaymentMethodSetting]:
        stmt = select(PaymentMethodSetting).order_by(PaymentMethodSetting.created_at.asc())
        if active_only:
            stmt = stmt.where(PaymentMethodSetting.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **fields) -> PaymentMethodSetting:
        return await self.db_add_and_flush(PaymentMethodSetting(**fields))

    async def detach_payments(self, method_id: uuid.UUID):
        # keeps the payment history when a method is removed
        await self.db.execute(
            update(Payment)
            .where(Payment.payment_method_id == method_id)
            .values(payment_method_id=None)
        )
