import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, func, or_, select

from mall_app.models.enums import Currency, PaymentStatus
from mall_app.models.models import Payment, Profile
from mall_app.policy.access_policy import AccessPolicy

from .base_repo import BaseRepo

# stored overdue values are legacy rows, still unsettled
UNSETTLED = [PaymentStatus.PENDING, PaymentStatus.OVERDUE]


class PaymentRepo(BaseRepo):
    async def get_by_id(self, payment_id: uuid.UUID) -> Optional[Payment]:
        result = await self.db.execute(select(Payment).where(Payment.id == payment_id))
        return result.scalar_one_or_none()

    async def get_visible(self, profile: Profile, payment_id: uuid.UUID):
        result = await self.db.execute(
            select(Payment).where(
                Payment.id == payment_id, AccessPolicy.scope_payments(profile)
            )
        )
        return result.scalar_one_or_none()

    async def list_visible(
        self,
        profile: Profile,
        lease_id: uuid.UUID | None = None,
        overdue_on: date | None = None,
    ) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(AccessPolicy.scope_payments(profile))
            .order_by(Payment.due_date.desc())
        )
        if lease_id is not None:
            stmt = stmt.where(Payment.lease_id == lease_id)
        if overdue_on is not None:
            stmt = stmt.where(self.overdue_clause(overdue_on))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def overdue_clause(on: date):
        return and_(Payment.status.in_(UNSETTLED), Payment.due_date < on)

    async def count_pending(self, profile: Profile, on: date) -> int:
        result = await self.db.execute(
            select(func.count(Payment.id)).where(
                AccessPolicy.scope_payments(profile),
                Payment.status.in_(UNSETTLED),
                Payment.due_date >= on,
            )
        )
        return result.scalar_one()

    async def count_overdue(self, profile: Profile, on: date) -> int:
        result = await self.db.execute(
            select(func.count(Payment.id)).where(
                AccessPolicy.scope_payments(profile), self.overdue_clause(on)
            )
        )
        return result.scalar_one()

    async def collected_between(
        self, profile: Profile, start: date, end: date
    ) -> dict[Currency, Decimal]:
        result = await self.db.execute(
            select(Payment.currency, func.sum(Payment.amount))
            .where(
                AccessPolicy.scope_payments(profile),
                or_(
                    Payment.status == PaymentStatus.PAID,
                    Payment.status == PaymentStatus.PARTIAL,
                ),
                Payment.payment_date >= start,
                Payment.payment_date < end,
            )
            .group_by(Payment.currency)
        )
        return {currency: Decimal(total or 0) for currency, total in result.all()}

    async def children(self, payment_id: uuid.UUID) -> List[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.parent_payment_id == payment_id)
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> Payment:
        return await self.db_add_and_flush(Payment(**fields))
