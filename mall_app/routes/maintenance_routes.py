import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.enums import MaintenanceStatus
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    MaintenanceCreate,
    MaintenanceOut,
    MaintenanceUpdate,
    SuccessOut,
)
from mall_app.services.maintenance_service import MaintenanceService

router = APIRouter(tags=["Maintenance"])


@cbv(router=router)
class MaintenanceRoutes:
    @router.post("", response_model=MaintenanceOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: MaintenanceCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).create_request(
            payload=payload, current_user=current_user
        )

    @router.get("", response_model=List[MaintenanceOut])
    @safe_handler
    async def all_requests(
        self,
        status: Optional[MaintenanceStatus] = None,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).list_requests(
            current_user=current_user, status=status
        )

    @router.get("/{request_id}", response_model=MaintenanceOut)
    @safe_handler
    async def get_request(
        self,
        request_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).get_request(
            request_id=request_id, current_user=current_user
        )

    @router.patch("/{request_id}", response_model=MaintenanceOut)
    @safe_handler
    async def update(
        self,
        request_id: uuid.UUID,
        payload: MaintenanceUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).update_request(
            request_id=request_id, payload=payload, current_user=current_user
        )

    @router.delete("/{request_id}", response_model=SuccessOut)
    @safe_handler
    async def delete(
        self,
        request_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MaintenanceService(db).delete_request(
            request_id=request_id, current_user=current_user
        )
