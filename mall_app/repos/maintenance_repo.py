import uuid
from typing import List, Optional

from sqlalchemy import func, select

from mall_app.models.enums import MaintenanceStatus
from mall_app.models.models import MaintenanceRequest, Profile
from mall_app.policy.access_policy import AccessPolicy

from .base_repo import BaseRepo


class MaintenanceRepo(BaseRepo):
    async def get_visible(
        self, profile: Profile, request_id: uuid.UUID
    ) -> Optional[MaintenanceRequest]:
        result = await self.db.execute(
            select(MaintenanceRequest).where(
                MaintenanceRequest.id == request_id,
                AccessPolicy.scope_maintenance(profile),
            )
        )
        return result.scalar_one_or_none()

    async def list_visible(
        self, profile: Profile, status: MaintenanceStatus | None = None
    ) -> List[MaintenanceRequest]:
        stmt = (
            select(MaintenanceRequest)
            .where(AccessPolicy.scope_maintenance(profile))
            .order_by(MaintenanceRequest.created_at.desc())
        )
        if status is not None:
            stmt = stmt.where(MaintenanceRequest.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_open(self, profile: Profile) -> int:
        result = await self.db.execute(
            select(func.count(MaintenanceRequest.id)).where(
                AccessPolicy.scope_maintenance(profile),
                MaintenanceRequest.status != MaintenanceStatus.COMPLETED,
            )
        )
        return result.scalar_one()

    async def create(self, **fields) -> MaintenanceRequest:
        return await self.db_add_and_flush(MaintenanceRequest(**fields))
