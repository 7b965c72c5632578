from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from codetrail.core.dependencies import get_current_user
from codetrail.core.exceptions import CoachError
from codetrail.db.session import get_db
from codetrail.models.user import User
from codetrail.schemas.coach import CoachOverviewResponse
from codetrail.services.coach_service import CoachService

router = APIRouter()


@router.get("/overview", response_model=CoachOverviewResponse)
async def get_coach_overview(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return await CoachService(db).get_overview(current_user)
    except CoachError as e:
        raise HTTPException(status_code=500, detail=str(e))
