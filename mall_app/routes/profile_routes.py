import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.enums import UserRole
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    ActiveUpdate,
    PreferredCurrencyIn,
    ProfileCreate,
    ProfileOut,
    ProfileUpdate,
    RoleUpdate,
)
from mall_app.services.currency_service import CurrencyService
from mall_app.services.profile_service import ProfileService

router = APIRouter(tags=["Profiles"])


@cbv(router=router)
class ProfileRoutes:
    @router.get("/me", response_model=ProfileOut)
    @safe_handler
    async def me(
        self,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).me(current_user=current_user)

    @router.patch("/me", response_model=ProfileOut)
    @safe_handler
    async def update_me(
        self,
        payload: ProfileUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).update_me(payload=payload, current_user=current_user)

    @router.put("/me/currency", response_model=ProfileOut)
    @safe_handler
    async def set_currency(
        self,
        payload: PreferredCurrencyIn,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        profile = await CurrencyService(db).set_preferred_currency(
            currency=payload.currency, current_user=current_user
        )
        return ProfileOut.model_validate(profile)

    @router.get("/tenants", response_model=List[ProfileOut])
    @safe_handler
    async def tenants(
        self,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).list_tenants(current_user=current_user)

    @router.get("", response_model=List[ProfileOut])
    @safe_handler
    async def all_profiles(
        self,
        role: Optional[UserRole] = None,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).list_profiles(current_user=current_user, role=role)

    @router.post("", response_model=ProfileOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: ProfileCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).create_profile(
            payload=payload, current_user=current_user
        )

    @router.put("/{profile_id}/role", response_model=ProfileOut)
    @safe_handler
    async def change_role(
        self,
        profile_id: uuid.UUID,
        payload: RoleUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).change_role(
            profile_id=profile_id, role=payload.role, current_user=current_user
        )

    @router.put("/{profile_id}/active", response_model=ProfileOut)
    @safe_handler
    async def set_active(
        self,
        profile_id: uuid.UUID,
        payload: ActiveUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ProfileService(db).set_active(
            profile_id=profile_id, is_active=payload.is_active, current_user=current_user
        )
