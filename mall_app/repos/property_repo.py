import uuid
from typing import List, Optional

from sqlalchemy import func, select

from mall_app.models.enums import PropertyStatus
from mall_app.models.models import Profile, Property
from mall_app.policy.access_policy import AccessPolicy

from .base_repo import BaseRepo


class PropertyRepo(BaseRepo):
    async def get_by_id(self, property_id: uuid.UUID) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    async def get_visible(self, profile: Profile, property_id: uuid.UUID):
        result = await self.db.execute(
            select(Property).where(
                Property.id == property_id, AccessPolicy.scope_properties(profile)
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, property_id: uuid.UUID) -> Optional[Property]:
        # row lock on PostgreSQL; ignored by SQLite
        result = await self.db.execute(
            select(Property).where(Property.id == property_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def list_visible(
        self, profile: Profile, status: PropertyStatus | None = None
    ) -> List[Property]:
        stmt = (
            select(Property)
            .where(AccessPolicy.scope_properties(profile))
            .order_by(Property.created_at.desc())
        )
        if status is not None:
            stmt = stmt.where(Property.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(self, profile: Profile) -> dict:
        result = await self.db.execute(
            select(Property.status, func.count(Property.id))
            .where(AccessPolicy.scope_properties(profile))
            .group_by(Property.status)
        )
        return {status.value: count for status, count in result.all()}

    async def create(self, **fields) -> Property:
        return await self.db_add_and_flush(Property(**fields))

    async def set_status(self, prop: Property, status: PropertyStatus) -> Property:
        prop.status = status
        await self.db.flush()
        return prop
