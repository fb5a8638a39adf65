import uuid
from typing import List, Optional

from sqlalchemy import select

from mall_app.models.enums import LeaseStatus, RenewalStatus
from mall_app.models.models import (
    Lease,
    LeaseHistory,
    LeaseRenewalRequest,
    Profile,
)
from mall_app.policy.access_policy import AccessPolicy

from .base_repo import BaseRepo


class LeaseRepo(BaseRepo):
    async def get_by_id(self, lease_id: uuid.UUID) -> Optional[Lease]:
        result = await self.db.execute(select(Lease).where(Lease.id == lease_id))
        return result.scalar_one_or_none()

    async def get_visible(self, profile: Profile, lease_id: uuid.UUID):
        result = await self.db.execute(
            select(Lease).where(Lease.id == lease_id, AccessPolicy.scope_leases(profile))
        )
        return result.scalar_one_or_none()

    async def list_visible(
        self, profile: Profile, property_id: uuid.UUID | None = None
    ) -> List[Lease]:
        stmt = (
            select(Lease)
            .where(AccessPolicy.scope_leases(profile))
            .order_by(Lease.end_date.asc())
        )
        if property_id is not None:
            stmt = stmt.where(Lease.property_id == property_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def stored_active_for_property(self, property_id: uuid.UUID) -> List[Lease]:
        result = await self.db.execute(
            select(Lease).where(
                Lease.property_id == property_id, Lease.status == LeaseStatus.ACTIVE
            )
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> Lease:
        return await self.db_add_and_flush(Lease(**fields))

    async def add_history(self, lease: Lease, reason: str | None) -> LeaseHistory:
        entry = LeaseHistory(
            lease_id=lease.id,
            property_id=lease.property_id,
            tenant_id=lease.tenant_id,
            start_date=lease.start_date,
            end_date=lease.end_date,
            reason=reason,
        )
        return await self.db_add_and_flush(entry)

    async def history_for_property(self, property_id: uuid.UUID) -> List[LeaseHistory]:
        result = await self.db.execute(
            select(LeaseHistory)
            .where(LeaseHistory.property_id == property_id)
            .order_by(LeaseHistory.created_at.desc())
        )
        return list(result.scalars().all())


class RenewalRepo(BaseRepo):
    async def pending_for_lease(self, lease_id: uuid.UUID):
        result = await self.db.execute(
            select(LeaseRenewalRequest).where(
                LeaseRenewalRequest.lease_id == lease_id,
                LeaseRenewalRequest.status == RenewalStatus.PENDING,
            )
        )
        return result.scalars().first()

    async def list_visible(self, profile: Profile) -> List[LeaseRenewalRequest]:
        result = await self.db.execute(
            select(LeaseRenewalRequest)
            .where(AccessPolicy.scope_renewals(profile))
            .order_by(LeaseRenewalRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> LeaseRenewalRequest:
        return await self.db_add_and_flush(LeaseRenewalRequest(**fields))

    async def get_visible(self, profile: Profile, request_id: uuid.UUID):
        result = await self.db.execute(
            select(LeaseRenewalRequest).where(
                LeaseRenewalRequest.id == request_id,
                AccessPolicy.scope_renewals(profile),
            )
        )
        return result.scalar_one_or_none()
