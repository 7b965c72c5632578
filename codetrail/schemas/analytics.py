from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from codetrail.schemas.dashboard import DailySubmission


class PlatformLink(BaseModel):
    handle: str
    synced_at: Optional[datetime] = None


class UserProfiles(BaseModel):
    connected_platforms: Dict[str, PlatformLink]
    leetcode_handle: Optional[str]
    codeforces_handle: Optional[str]


class ProgressMetrics(BaseModel):
    this_week_solved: int
    this_month_solved: int
    consistency_score: int
    weekly_average: int


class ContestRatings(BaseModel):
    codeforces: Optional[int]
    leetcode: Optional[int]
    codeforces_rank: str


class DailySubmissionPoint(DailySubmission):
    display_date: str


class AnalyticsResponse(BaseModel):
    user_profiles: UserProfiles
    progress_metrics: ProgressMetrics
    contest_ratings: ContestRatings
    daily_submissions: List[DailySubmissionPoint]
    last_updated: datetime
    cache_hit: bool
