import uuid

from fastapi import Depends, WebSocket, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.models.models import Profile

from .errors import AuthenticationFailure
from .get_db import get_db_async
from .validators import decode_access_token, jwt_protect, ws_token


async def _load_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalars().first()
    if not profile:
        raise AuthenticationFailure("Not Authenticated")
    if not profile.is_active:
        raise AuthenticationFailure("Account is deactivated")
    return profile


async def get_current_user(
    user_id: uuid.UUID = Depends(jwt_protect),
    db: AsyncSession = Depends(get_db_async),
) -> Profile:
    return await _load_profile(db, user_id)


async def get_current_user_ws(websocket: WebSocket, db: AsyncSession) -> Profile:
    token = ws_token(websocket)
    try:
        if not token:
            raise AuthenticationFailure("Not authenticated")
        return await _load_profile(db, decode_access_token(token))
    except AuthenticationFailure:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        raise
