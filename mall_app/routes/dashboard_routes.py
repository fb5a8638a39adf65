from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mall_app.core.get_current_user import get_current_user
from mall_app.core.get_db import get_db_async
from mall_app.core.safe_handler import safe_handler
from mall_app.models.models import Profile
from mall_app.schemas.schema import DashboardStatsOut
from mall_app.services.dashboard_service import DashboardService

router = APIRouter(tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
@safe_handler
async def dashboard_stats(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_async),
):
    return await DashboardService(db).stats(current_user=current_user)
