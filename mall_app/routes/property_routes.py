import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.enums import PropertyStatus
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    LeaseHistoryOut,
    PropertyCreate,
    PropertyOut,
    PropertyUpdate,
    SuccessOut,
)
from mall_app.services.lease_service import LeaseService
from mall_app.services.property_service import PropertyService

router = APIRouter(tags=["Properties"])


@cbv(router=router)
class PropertyRoutes:
    @router.post("", response_model=PropertyOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: PropertyCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).create_property(
            payload=payload, current_user=current_user
        )

    @router.get("", response_model=List[PropertyOut])
    @safe_handler
    async def all_properties(
        self,
        status: Optional[PropertyStatus] = None,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).list_properties(
            current_user=current_user, status=status
        )

    @router.get("/{property_id}", response_model=PropertyOut)
    @safe_handler
    async def get_property(
        self,
        property_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).get_property(
            property_id=property_id, current_user=current_user
        )

    @router.patch("/{property_id}", response_model=PropertyOut)
    @safe_handler
    async def update(
        self,
        property_id: uuid.UUID,
        payload: PropertyUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).update_property(
            property_id=property_id, payload=payload, current_user=current_user
        )

    @router.delete("/{property_id}", response_model=SuccessOut)
    @safe_handler
    async def delete(
        self,
        property_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).delete_property(
            property_id=property_id, current_user=current_user
        )

    @router.get("/{property_id}/lease-history", response_model=List[LeaseHistoryOut])
    @safe_handler
    async def lease_history(
        self,
        property_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).lease_history(
            property_id=property_id, current_user=current_user
        )
