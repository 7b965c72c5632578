from fastapi import APIRouter, Depends

from codetrail.core.dependencies import get_current_user
from codetrail.models.user import User
from codetrail.schemas.user import UserResponse

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
