import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.errors import AuthenticationFailure
from mall_app.core.event_publish import TABLES
from mall_app.core.get_current_user import get_current_user_ws
from mall_app.core.get_db import get_db_async

from .connection_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime Changes"])


@router.websocket("/ws/changes/{table}")
async def table_changes(
    websocket: WebSocket,
    table: str,
    db: AsyncSession = Depends(get_db_async),
):
    """Push ``{table, event, id}`` after every committed write to ``table``.

    Clients re-fetch through the scoped list endpoints; no row data is sent.
    """
    if table not in TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        current_user = await get_current_user_ws(websocket, db)
    except AuthenticationFailure as e:
        logger.warning(f"Rejected change subscription on {table}: {e.reason}")
        return
    # identity is resolved; do not pin a pooled connection for the socket lifetime
    await db.close()

    await manager.connect(table, websocket)
    logger.info(
        f"{current_user.id} subscribed to {table} ({manager.subscribers(table)} listening)"
    )
    try:
        while True:
            # clients may send pings; content is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.disconnect(table, websocket)
        logger.info(f"{current_user.id} unsubscribed from {table}")
