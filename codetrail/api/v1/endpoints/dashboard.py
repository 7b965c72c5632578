import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from codetrail.core.dependencies import get_current_user
from codetrail.core.exceptions import HandleNotFoundError, InvalidPlatformError, PlatformAPIError
from codetrail.db.session import get_db
from codetrail.models.user import User
from codetrail.schemas.dashboard import DailySubmissionsResponse, DashboardStatsResponse
from codetrail.schemas.platform import ConnectedPlatformsResponse, PlatformUpdate, PlatformUpdateResponse
from codetrail.services.dashboard_service import DashboardService
from codetrail.services.sync_service import PlatformSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await DashboardService(db).get_dashboard_stats(current_user)


@router.get("/platforms", response_model=ConnectedPlatformsResponse)
async def get_platforms(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    platforms = await DashboardService(db).get_connected_platforms(current_user)
    return {"connected_platforms": platforms}


@router.put("/platforms", response_model=PlatformUpdateResponse)
async def update_platform(
    request: PlatformUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        profile, summary = await PlatformSyncService(db).update_platform_handle(
            current_user, request.platform, request.handle
        )
    except InvalidPlatformError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HandleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PlatformAPIError as e:
        logger.error("❌ Could not validate %s handle '%s': %s", request.platform, request.handle, e)
        raise HTTPException(
            status_code=502,
            detail=f"Failed to validate {request.platform} handle '{request.handle}': {e}",
        )
    return {"profile": profile, "sync_summary": summary}


@router.get("/daily-submissions", response_model=DailySubmissionsResponse)
async def get_daily_submissions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await DashboardService(db).get_daily_submissions(current_user)
