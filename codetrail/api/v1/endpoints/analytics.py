from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from codetrail.core.dependencies import get_current_user
from codetrail.db.session import get_db
from codetrail.models.user import User
from codetrail.schemas.analytics import AnalyticsResponse
from codetrail.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("", response_model=AnalyticsResponse)
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await AnalyticsService(db).get_analytics(current_user)


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_analytics_cache(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await AnalyticsService(db).invalidate(current_user)
