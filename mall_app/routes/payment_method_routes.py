import uuid
from typing import List

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    PaymentMethodCreate,
    PaymentMethodOut,
    PaymentMethodUpdate,
    SuccessOut,
)
from mall_app.services.payment_method_service import PaymentMethodService

router = APIRouter(tags=["Payment Methods"])


@cbv(router=router)
class PaymentMethodRoutes:
    @router.get("", response_model=List[PaymentMethodOut])
    @safe_handler
    async def all_methods(
        self,
        active_only: bool = False,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentMethodService(db).list_methods(
            current_user=current_user, active_only=active_only
        )

    @router.get("/{method_id}", response_model=PaymentMethodOut)
    @safe_handler
    async def get_one(
        self,
        method_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentMethodService(db).get_method(
            method_id=method_id, current_user=current_user
        )

    @router.post("", response_model=PaymentMethodOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: PaymentMethodCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentMethodService(db).create_method(
            payload=payload, current_user=current_user
        )

    @router.put("/{method_id}", response_model=PaymentMethodOut)
    @safe_handler
    async def update(
        self,
        method_id: uuid.UUID,
        payload: PaymentMethodUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentMethodService(db).update_method(
            method_id=method_id, payload=payload, current_user=current_user
        )

    @router.delete("/{method_id}", response_model=SuccessOut)
    @safe_handler
    async def delete(
        self,
        method_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentMethodService(db).delete_method(
            method_id=method_id, current_user=current_user
        )
