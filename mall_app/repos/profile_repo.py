import uuid
from typing import List, Optional

from sqlalchemy import select

from mall_app.models.enums import UserRole
from mall_app.models.models import Profile

from .base_repo import BaseRepo


class ProfileRepo(BaseRepo):
    async def get_by_id(self, profile_id: uuid.UUID) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Profile]:
        result = await self.db.execute(
            select(Profile).where(Profile.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_all(self, role: UserRole | None = None) -> List[Profile]:
        stmt = select(Profile).order_by(Profile.created_at.desc())
        if role is not None:
            stmt = stmt.where(Profile.role == role)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **fields) -> Profile:
        return await self.db_add_and_flush(Profile(**fields))

    async def update_fields(self, profile_id: uuid.UUID, **fields) -> Profile:
        profile = await self.get_by_id(profile_id)
        if profile is None:
            return None
        for key, value in fields.items():
            setattr(profile, key, value)
        await self.db.flush()
        return profile
