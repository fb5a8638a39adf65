import logging
import uuid
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.errors import (
    AuthorizationFailure,
    LifecycleConflict,
    NotFound,
    ValidationFailure,
)
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, PropertyStatus, UserRole
from mall_app.policy.access_policy import AccessPolicy
from mall_app.repos.lease_repo import LeaseRepo
from mall_app.repos.profile_repo import ProfileRepo
from mall_app.repos.property_repo import PropertyRepo
from mall_app.schemas.schema import PropertyCreate, PropertyOut, PropertyUpdate

from .lease_lifecycle import effective_lease_status

logger = logging.getLogger(__name__)


class PropertyService:
    def __init__(self, db):
        self.db = db
        self.repo: PropertyRepo = PropertyRepo(db)
        self.lease_repo: LeaseRepo = LeaseRepo(db)
        self.profile_repo: ProfileRepo = ProfileRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def _owned_property(self, property_id: uuid.UUID, current_user):
        prop = await self.repo.get_visible(current_user, property_id)
        if not prop:
            raise NotFound("Property not found")
        AccessPolicy.require_owner(current_user, prop.landlord_id, "property")
        return prop

    async def _resolve_landlord(self, payload: PropertyCreate, current_user) -> uuid.UUID:
        if current_user.role == UserRole.LANDLORD:
            if payload.landlord_id and payload.landlord_id != current_user.id:
                raise AuthorizationFailure("Landlords can only create their own properties")
            return current_user.id

        if not payload.landlord_id:
            raise ValidationFailure("landlord_id is required")
        landlord = await self.profile_repo.get_by_id(payload.landlord_id)
        if not landlord or landlord.role != UserRole.LANDLORD:
            raise ValidationFailure("landlord_id must reference a landlord profile")
        return landlord.id

    async def create_property(self, payload: PropertyCreate, current_user) -> PropertyOut:
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            landlord_id = await self._resolve_landlord(payload, current_user)
            prop = await self.repo.create(
                landlord_id=landlord_id,
                **payload.model_dump(exclude={"landlord_id"}),
                status=PropertyStatus.AVAILABLE,
            )
            await self.repo.db_commit_and_refresh(prop)
            return prop

        prop = await breaker.call(atomic, self.db, _handler)
        await publish_change("properties", ChangeEvent.INSERT, prop.id)
        return PropertyOut.model_validate(prop)

    async def update_property(
        self, property_id: uuid.UUID, payload: PropertyUpdate, current_user
    ) -> PropertyOut:
        await self.permission.check_manager(current_user=current_user)
        fields = payload.model_dump(exclude_unset=True)
        status = fields.pop("status", None)
        if status == PropertyStatus.OCCUPIED:
            raise ValidationFailure("A property becomes occupied only through a lease")

        async def _handler():
            prop = await self._owned_property(property_id, current_user)
            for field, value in fields.items():
                if value is None and field not in ("description", "image_url"):
                    raise ValidationFailure(f"{field} cannot be cleared")
                setattr(prop, field, value)

            if status is not None and status != prop.status:
                leases = await self.lease_repo.stored_active_for_property(prop.id)
                if any(effective_lease_status(lease).is_active for lease in leases):
                    raise LifecycleConflict(
                        "Property has an active lease; end the lease first"
                    )
                prop.status = status
            await self.repo.db_commit_and_refresh(prop)
            return prop

        prop = await breaker.call(atomic, self.db, _handler)
        await publish_change("properties", ChangeEvent.UPDATE, prop.id)
        return PropertyOut.model_validate(prop)

    async def delete_property(self, property_id: uuid.UUID, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            prop = await self._owned_property(property_id, current_user)
            if await self.lease_repo.stored_active_for_property(prop.id):
                raise LifecycleConflict("Property has an active lease and cannot be deleted")
            await self.repo.db_delete(prop)
            await self.repo.db_commit()

        await breaker.call(atomic, self.db, _handler)
        logger.info(f"Property {property_id} deleted by {current_user.id}")
        await publish_change("properties", ChangeEvent.DELETE, property_id)
        return {"success": True, "message": "Property deleted"}

    async def get_property(self, property_id: uuid.UUID, current_user) -> PropertyOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.get_visible(current_user, property_id)

        prop = await breaker.call(_handler)
        if not prop:
            raise NotFound("Property not found")
        return PropertyOut.model_validate(prop)

    async def list_properties(
        self, current_user, status: PropertyStatus | None = None
    ) -> List[PropertyOut]:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.list_visible(current_user, status=status)

        rows = await breaker.call(_handler)
        return [PropertyOut.model_validate(row) for row in rows]
