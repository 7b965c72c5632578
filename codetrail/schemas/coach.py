from pydantic import BaseModel
from typing import Dict, List, Optional, Union


class ScoreBreakdown(BaseModel):
    problems_solved: float
    difficulty: float
    contest: float
    consistency: float
    topic_coverage: float


class RatingTrend(BaseModel):
    current: Optional[int]
    change: int
    trend: str


class RecentProgress(BaseModel):
    last_week_solved: int
    last_month_solved: int
    consistency_score: int
    average_weekly_solved: int
    difficulty_progression: str
    rating_trend: Dict[str, RatingTrend]
    source: str


class OverallProgress(BaseModel):
    score: int
    level: str
    strong_areas: List[str]
    weak_areas: List[str]
    improvement_trend: str
    recent_progress: RecentProgress
    breakdown: ScoreBreakdown


class QuickStats(BaseModel):
    total_solved: int
    contest_rating: Union[int, str]
    topics_covered: int
    consistency: int


class Insights(BaseModel):
    progress_insights: List[str]
    recommendations: List[str]


class CoachOverviewResponse(BaseModel):
    overall_progress: OverallProgress
    quick_stats: QuickStats
    insights: Insights
