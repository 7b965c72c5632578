from fastapi import APIRouter

from codetrail.api.v1.endpoints import analytics, auth, coach, dashboard, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(coach.router, prefix="/coach", tags=["coach"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
