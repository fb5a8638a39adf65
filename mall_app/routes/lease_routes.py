import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    LeaseCreate,
    LeaseDeleteIn,
    LeaseOut,
    LeaseUpdate,
    RenewalDecision,
    RenewalRequestCreate,
    RenewalRequestOut,
)
from mall_app.services.lease_service import LeaseService

router = APIRouter(tags=["Leases"])


@cbv(router=router)
class LeaseRoutes:
    @router.post("", response_model=LeaseOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: LeaseCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).create_lease(payload=payload, current_user=current_user)

    @router.get("", response_model=List[LeaseOut])
    @safe_handler
    async def all_leases(
        self,
        property_id: Optional[uuid.UUID] = None,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).list_leases(
            current_user=current_user, property_id=property_id
        )

    @router.get("/renewals", response_model=List[RenewalRequestOut])
    @safe_handler
    async def renewals(
        self,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).list_renewals(current_user=current_user)

    @router.put("/renewals/{request_id}", response_model=RenewalRequestOut)
    @safe_handler
    async def respond_renewal(
        self,
        request_id: uuid.UUID,
        payload: RenewalDecision,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).respond_renewal(
            request_id=request_id, decision=payload, current_user=current_user
        )

    @router.get("/{lease_id}", response_model=LeaseOut)
    @safe_handler
    async def get_lease(
        self,
        lease_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).get_lease(lease_id=lease_id, current_user=current_user)

    @router.patch("/{lease_id}", response_model=LeaseOut)
    @safe_handler
    async def update(
        self,
        lease_id: uuid.UUID,
        payload: LeaseUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).update_lease(
            lease_id=lease_id, payload=payload, current_user=current_user
        )

    @router.delete("/{lease_id}")
    @safe_handler
    async def delete(
        self,
        lease_id: uuid.UUID,
        payload: Optional[LeaseDeleteIn] = Body(default=None),
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).delete_lease(
            lease_id=lease_id,
            current_user=current_user,
            reason=payload.reason if payload else None,
        )

    @router.post("/{lease_id}/renewals", response_model=RenewalRequestOut, status_code=201)
    @safe_handler
    async def request_renewal(
        self,
        lease_id: uuid.UUID,
        payload: RenewalRequestCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await LeaseService(db).request_renewal(
            lease_id=lease_id, payload=payload, current_user=current_user
        )
