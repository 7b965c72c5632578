from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime


class PlatformUpdate(BaseModel):
    platform: str = Field(..., description="leetcode or codeforces")
    handle: str = Field(..., min_length=1, max_length=100)


class PlatformProfileResponse(BaseModel):
    id: int
    platform: str
    handle: str
    current_rating: Optional[int]
    max_rating: Optional[int]
    rank: Optional[str]
    stats: Optional[Dict[str, int]]
    synced_at: Optional[datetime]

    class Config:
        from_attributes = True


class SyncSummary(BaseModel):
    platform: str
    handle: str
    synced_at: Optional[datetime]
    submissions_added: int
    contests_synced: int
    calendar_days: int
    message: str


class PlatformUpdateResponse(BaseModel):
    profile: PlatformProfileResponse
    sync_summary: SyncSummary


class ConnectedPlatform(BaseModel):
    handle: str
    current_rating: Optional[int] = None
    max_rating: Optional[int] = None
    rank: Optional[str] = None
    synced_at: Optional[datetime] = None


class ConnectedPlatformsResponse(BaseModel):
    connected_platforms: Dict[str, ConnectedPlatform]
