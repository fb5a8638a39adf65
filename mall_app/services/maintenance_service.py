import logging
import uuid
from typing import List

from mall_app.core.breaker import breaker
from mall_app.core.check_permission import CheckRolePermission
from mall_app.core.errors import AuthorizationFailure, NotFound
from mall_app.core.event_publish import publish_change
from mall_app.core.transaction import atomic
from mall_app.models.enums import ChangeEvent, MaintenanceStatus, UserRole
from mall_app.policy.access_policy import AccessPolicy
from mall_app.repos.maintenance_repo import MaintenanceRepo
from mall_app.repos.property_repo import PropertyRepo
from mall_app.schemas.schema import MaintenanceCreate, MaintenanceOut, MaintenanceUpdate

from .maintenance_state import apply_status

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(self, db):
        self.db = db
        self.repo: MaintenanceRepo = MaintenanceRepo(db)
        self.property_repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()

    async def create_request(self, payload: MaintenanceCreate, current_user) -> MaintenanceOut:
        await self.permission.check_tenant(current_user=current_user)

        async def _handler():
            # tenants only see properties they hold an active lease on
            prop = await self.property_repo.get_visible(current_user, payload.property_id)
            if not prop:
                raise NotFound("Property not found")
            request = await self.repo.create(
                tenant_id=current_user.id,
                landlord_id=prop.landlord_id,
                property_id=prop.id,
                title=payload.title,
                description=payload.description,
                image_url=payload.image_url,
                priority=payload.priority,
                status=MaintenanceStatus.PENDING,
            )
            await self.repo.db_commit_and_refresh(request)
            return request

        request = await breaker.call(atomic, self.db, _handler)
        logger.info(f"Maintenance request {request.id} filed for {request.property_id}")
        await publish_change("maintenance_requests", ChangeEvent.INSERT, request.id)
        return MaintenanceOut.model_validate(request)

    async def update_request(
        self, request_id: uuid.UUID, payload: MaintenanceUpdate, current_user
    ) -> MaintenanceOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            request = await self.repo.get_visible(current_user, request_id)
            if not request:
                raise NotFound("Maintenance request not found")
            if current_user.role == UserRole.TENANT:
                raise AuthorizationFailure("Tenants cannot change maintenance requests")

            if payload.status is not None:
                apply_status(
                    request,
                    payload.status,
                    allow_reopen=current_user.role == UserRole.SUPERADMIN,
                )
            if payload.priority is not None:
                request.priority = payload.priority
            if "assigned_to" in payload.model_fields_set:
                request.assigned_to = payload.assigned_to
            await self.repo.db_commit_and_refresh(request)
            return request

        request = await breaker.call(atomic, self.db, _handler)
        await publish_change("maintenance_requests", ChangeEvent.UPDATE, request.id)
        return MaintenanceOut.model_validate(request)

    async def delete_request(self, request_id: uuid.UUID, current_user):
        await self.permission.check_manager(current_user=current_user)

        async def _handler():
            request = await self.repo.get_visible(current_user, request_id)
            if not request:
                raise NotFound("Maintenance request not found")
            AccessPolicy.require_owner(current_user, request.landlord_id, "maintenance request")
            await self.repo.db_delete(request)
            await self.repo.db_commit()

        await breaker.call(atomic, self.db, _handler)
        await publish_change("maintenance_requests", ChangeEvent.DELETE, request_id)
        return {"success": True, "message": "Maintenance request deleted"}

    async def get_request(self, request_id: uuid.UUID, current_user) -> MaintenanceOut:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.get_visible(current_user, request_id)

        request = await breaker.call(_handler)
        if not request:
            raise NotFound("Maintenance request not found")
        return MaintenanceOut.model_validate(request)

    async def list_requests(
        self, current_user, status: MaintenanceStatus | None = None
    ) -> List[MaintenanceOut]:
        await self.permission.check_authenticated(current_user=current_user)

        async def _handler():
            return await self.repo.list_visible(current_user, status=status)

        rows = await breaker.call(_handler)
        return [MaintenanceOut.model_validate(row) for row in rows]
