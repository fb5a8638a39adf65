import uuid
from typing import List, Optional

from sqlalchemy import select

from mall_app.models.models import Notice, Profile
from mall_app.policy.access_policy import AccessPolicy

from .base_repo import BaseRepo


class NoticeRepo(BaseRepo):
    async def get_visible(self, profile: Profile, notice_id: uuid.UUID) -> Optional[Notice]:
        result = await self.db.execute(
            select(Notice).where(
                Notice.id == notice_id, AccessPolicy.scope_notices(profile)
            )
        )
        return result.scalar_one_or_none()

    async def list_visible(self, profile: Profile, urgent_only: bool = False) -> List[Notice]:
        stmt = (
            select(Notice)
            .where(AccessPolicy.scope_notices(profile))
            .order_by(Notice.is_urgent.desc(), Notice.created_at.desc())
        )
        if urgent_only:
            stmt = stmt.where(Notice.is_urgent.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **fields) -> Notice:
        return await self.db_add_and_flush(Notice(**fields))

    async def set_read_status(self, notice: Notice, read_status: dict) -> Notice:
        # JSON columns only notice reassignment, not in-place mutation
        notice.read_status = read_status
        await self.db.flush()
        return notice
