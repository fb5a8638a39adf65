import logging
import uuid
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.errors import LifecycleConflict, NotFound, ValidationFailure
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, UserRole
from mall_app.repos.profile_repo import ProfileRepo
from mall_app.schemas.schema import ProfileCreate, ProfileOut, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, db):
        self.db = db
        self.repo: ProfileRepo = ProfileRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def me(self, current_user) -> ProfileOut:
        await self.permission.check_authenticated(current_user=current_user)
        return ProfileOut.model_validate(current_user)

    async def list_profiles(self, current_user, role: UserRole | None = None):
        await self.permission.check_superadmin(current_user=current_user)

        async def _handler():
            return await self.repo.list_all(role=role)

        rows = await breaker.call(_handler)
        return [ProfileOut.model_validate(row) for row in rows]

    async def list_tenants(self, current_user) -> List[ProfileOut]:
        """Tenant directory used when drafting leases and notices."""
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            return await self.repo.list_all(role=UserRole.TENANT)

        rows = await breaker.call(_handler)
        return [ProfileOut.model_validate(row) for row in rows if row.is_active]

    async def create_profile(self, payload: ProfileCreate, current_user) -> ProfileOut:
        await self.permission.check_superadmin(current_user=current_user)
        await self.permission.check_role(payload.role)

        async def _handler():
            if await self.repo.get_by_email(payload.email):
                raise LifecycleConflict("A profile with this email already exists")
            profile = await self.repo.create(**payload.model_dump(), is_active=True)
            await self.repo.db_commit_and_refresh(profile)
            return profile

        profile = await breaker.call(atomic, self.db, _handler)
        logger.info(f"Profile {profile.id} provisioned as {profile.role.value}")
        await publish_change("profiles", ChangeEvent.INSERT, profile.id)
        return ProfileOut.model_validate(profile)

    async def update_me(self, payload: ProfileUpdate, current_user) -> ProfileOut:
        await self.permission.check_authenticated(current_user=current_user)
        fields = payload.model_dump(exclude_unset=True)
        if "name" in fields and not fields["name"]:
            raise ValidationFailure("name cannot be empty")

        async def _handler():
            profile = await self.repo.update_fields(current_user.id, **fields)
            await self.repo.db_commit_and_refresh(profile)
            return profile

        profile = await breaker.call(atomic, self.db, _handler)
        await publish_change("profiles", ChangeEvent.UPDATE, profile.id)
        return ProfileOut.model_validate(profile)

    async def _admin_update(self, profile_id: uuid.UUID, current_user, **fields):
        await self.permission.check_superadmin(current_user=current_user)

        async def _handler():
            profile = await self.repo.update_fields(profile_id, **fields)
            if profile is None:
                raise NotFound("Profile not found")
            await self.repo.db_commit_and_refresh(profile)
            return profile

        profile = await breaker.call(atomic, self.db, _handler)
        await publish_change("profiles", ChangeEvent.UPDATE, profile.id)
        return ProfileOut.model_validate(profile)

    async def change_role(self, profile_id: uuid.UUID, role: UserRole, current_user):
        await self.permission.check_role(role)
        if profile_id == current_user.id:
            raise ValidationFailure("Superadmins cannot change their own role")
        out = await self._admin_update(profile_id, current_user, role=role)
        logger.info(f"Role of {profile_id} changed to {role.value} by {current_user.id}")
        return out

    async def set_active(self, profile_id: uuid.UUID, is_active: bool, current_user):
        # profiles referenced by leases and payments are deactivated, never deleted
        if profile_id == current_user.id and not is_active:
            raise ValidationFailure("You cannot deactivate your own account")
        return await self._admin_update(profile_id, current_user, is_active=is_active)
