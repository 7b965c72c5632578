from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime

from codetrail.schemas.platform import ConnectedPlatform


class DifficultyCount(BaseModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0


class TotalQuestions(BaseModel):
    total: int
    leetcode: int
    codeforces: int
    by_difficulty: DifficultyCount
    platform_breakdown: Dict[str, DifficultyCount]
    reported: Dict[str, int]


class PlatformCount(BaseModel):
    total: int
    leetcode: int
    codeforces: int


class ContestEntry(BaseModel):
    contest_id: str
    name: Optional[str] = None
    rank: Optional[int] = None
    old_rating: Optional[int] = None
    new_rating: Optional[int] = None
    timestamp: datetime


class ContestRankings(BaseModel):
    latest: Dict[str, Optional[ContestEntry]]
    best: Dict[str, Optional[ContestEntry]]
    rating_history: Dict[str, List[ContestEntry]]


class ContestHistoryPoint(BaseModel):
    platform: str
    contest_id: str
    name: str
    rating: int
    rank: Optional[int]
    date: str


class UserInfo(BaseModel):
    profile: Dict[str, Any]
    connected_platforms: Dict[str, ConnectedPlatform]


class DashboardStatsResponse(BaseModel):
    total_questions: TotalQuestions
    total_active_days: PlatformCount
    heatmap_data: Dict[str, Dict[str, int]]
    total_contests: PlatformCount
    contest_rankings: ContestRankings
    dsa_topic_analysis: Dict[str, PlatformCount]
    user_info: UserInfo
    contest_history: List[ContestHistoryPoint]


class DailySubmission(BaseModel):
    date: str
    leetcode: int
    codeforces: int
    total: int


class DateRange(BaseModel):
    start: Optional[str]
    end: Optional[str]


class DailySubmissionsResponse(BaseModel):
    daily_submissions: List[DailySubmission]
    total_days: int
    date_range: DateRange
