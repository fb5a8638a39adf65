import uuid
from typing import List

from fastapi import APIRouter, Depends
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.models import Profile
from mall_app.schemas.schema import NoticeCreate, NoticeOut, SuccessOut
from mall_app.services.notice_service import NoticeService

router = APIRouter(tags=["Notices"])


@cbv(router=router)
class NoticeRoutes:
    @router.post("", response_model=NoticeOut, status_code=201)
    @safe_handler
    async def create(
        self,
        payload: NoticeCreate,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NoticeService(db).create_notice(payload=payload, current_user=current_user)

    @router.get("", response_model=List[NoticeOut])
    @safe_handler
    async def all_notices(
        self,
        urgent_only: bool = False,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NoticeService(db).list_notices(
            current_user=current_user, urgent_only=urgent_only
        )

    @router.post("/{notice_id}/read", response_model=NoticeOut)
    @safe_handler
    async def mark_read(
        self,
        notice_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NoticeService(db).mark_read(notice_id=notice_id, current_user=current_user)

    @router.delete("/{notice_id}", response_model=SuccessOut)
    @safe_handler
    async def delete(
        self,
        notice_id: uuid.UUID,
        current_user: Profile = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NoticeService(db).delete_notice(
            notice_id=notice_id, current_user=current_user
        )
