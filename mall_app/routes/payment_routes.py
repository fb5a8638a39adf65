import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.models import Profile
from mall_app.schemas.schema import (
    PaymentConfirmation,
    PaymentConfirmationOut,
    PaymentCreate,
    PaymentOut,
    PaymentSubmission,
    PaymentUpdate,
    SuccessOut,
)
from mall_app.services.payment_service import PaymentService

router = APIRouter(tags=["Payments"])


@cbv(router=router)
class PaymentRoutes:
    @router.post("", response_model=PaymentConfirmationOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: PaymentCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).create_payment(
            payload=payload, current_user=current_user
        )

    @router.get("", response_model=List[PaymentOut])
    @safe_handler
    async def all_payments(
        self,
        lease_id: Optional[uuid.UUID] = None,
        overdue_only: bool = False,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).list_payments(
            current_user=current_user, lease_id=lease_id, overdue_only=overdue_only
        )

    @router.get("/{payment_id}", response_model=PaymentOut)
    @safe_handler
    async def get_payment(
        self,
        payment_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).get_payment(
            payment_id=payment_id, current_user=current_user
        )

    @router.post("/{payment_id}/submit", response_model=PaymentOut)
    @safe_handler
    async def submit(
        self,
        payment_id: uuid.UUID,
        payload: PaymentSubmission,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).submit_payment(
            payment_id=payment_id, payload=payload, current_user=current_user
        )

    @router.post("/{payment_id}/confirm", response_model=PaymentConfirmationOut)
    @safe_handler
    async def confirm(
        self,
        payment_id: uuid.UUID,
        payload: PaymentConfirmation,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).confirm_payment(
            payment_id=payment_id, payload=payload, current_user=current_user
        )

    @router.patch("/{payment_id}", response_model=PaymentOut)
    @safe_handler
    async def update(
        self,
        payment_id: uuid.UUID,
        payload: PaymentUpdate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).update_payment(
            payment_id=payment_id, payload=payload, current_user=current_user
        )

    @router.delete("/{payment_id}", response_model=SuccessOut)
    @safe_handler
    async def delete(
        self,
        payment_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PaymentService(db).delete_payment(
            payment_id=payment_id, current_user=current_user
        )
