# analysis/scoring.py
"""
Progress Scoring & Insight Engine
=================================
Turns a user's submission and contest history into the coach overview:

  composite = 0.25·problems_solved
            + 0.20·difficulty
            + 0.20·contest
            + 0.15·consistency
            + 0.20·topic_coverage

Every sub-score is normalised to [0, 100] against a fixed benchmark, so the
composite is in [0, 100] as well. Everything here is pure: callers pass the
records and an explicit `now`, nothing touches the network or the database.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from codetrail.analysis.verdicts import is_accepted, solved_submissions
from codetrail.preprocess.records import ContestRecord, ProfileRecord, SubmissionRecord

SOLVED_BENCHMARK = 500          # unique problems for a full problems-solved score
EXPECTED_TOPICS = 15            # standard DSA topic count
CONSISTENCY_WINDOW_DAYS = 30
CONTEST_IMPROVEMENT_BENCHMARK = 300

SCORE_WEIGHTS = {
    "problems_solved": 0.25,
    "difficulty": 0.20,
    "contest": 0.20,
    "consistency": 0.15,
    "topic_coverage": 0.20,
}

DIFFICULTY_POINTS = {"easy": 20, "medium": 60, "hard": 100}

LEVELS = (
    (90, "Expert"),
    (75, "Advanced"),
    (50, "Intermediate"),
    (25, "Beginner"),
)

MIN_TOPIC_ATTEMPTS = 2
MIN_STRONG_ATTEMPTS = 3
STRONG_PROFICIENCY = 80.0
WEAK_PROFICIENCY = 60.0
MAX_AREAS = 3

TREND_PLATFORMS = ("codeforces", "leetcode")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class ScoreBreakdown:
    problems_solved: float = 0.0
    difficulty: float = 0.0
    contest: float = 0.0
    consistency: float = 0.0
    topic_coverage: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "problems_solved": self.problems_solved,
            "difficulty": self.difficulty,
            "contest": self.contest,
            "consistency": self.consistency,
            "topic_coverage": self.topic_coverage,
        }


@dataclass
class TopicProficiency:
    topic: str
    proficiency: float       # solved / attempted · 100
    total_problems: int
    solved_problems: int


@dataclass
class RatingTrend:
    current: Optional[int]
    change: int = 0
    trend: str = "stable"    # improving | declining | stable


@dataclass
class RecentProgress:
    last_week_solved: int
    last_month_solved: int
    consistency_score: int
    average_weekly_solved: int
    difficulty_progression: str
    rating_trend: Dict[str, RatingTrend]
    source: str = "database"  # where the week/month counts came from: calendar | database


@dataclass
class OverallProgress:
    score: int
    level: str
    strong_areas: List[str]
    weak_areas: List[str]
    improvement_trend: str
    recent_progress: RecentProgress
    breakdown: ScoreBreakdown


@dataclass
class QuickStats:
    total_solved: int
    contest_rating: Union[int, str]
    topics_covered: int
    consistency: int


@dataclass
class Insights:
    progress_insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class CoachOverview:
    overall_progress: OverallProgress
    quick_stats: QuickStats
    insights: Insights


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def round_half_up(x: float) -> int:
    """Round .5 away from zero for positive values (2.5 → 3), unlike round()."""
    return int(math.floor(x + 0.5))


def _clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return float(np.clip(x, lo, hi))


def _utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def _unique_problems(submissions: Iterable[SubmissionRecord]) -> set:
    return {s.problem_id for s in submissions}


def _topics(submissions: Iterable[SubmissionRecord]) -> set:
    topics = set()
    for s in submissions:
        topics.update(s.tags or [])
    return topics


def _newest_first(contests: Iterable[ContestRecord]) -> List[ContestRecord]:
    return sorted(contests, key=lambda c: c.timestamp, reverse=True)


def _find_profile(profiles: Sequence[ProfileRecord], platform: str) -> Optional[ProfileRecord]:
    return next((p for p in profiles if p.platform == platform), None)


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

def problems_solved_score(submissions: Sequence[SubmissionRecord]) -> float:
    solved = _unique_problems(solved_submissions(submissions))
    return _clamp(len(solved) / SOLVED_BENCHMARK * 100)


def difficulty_score(submissions: Sequence[SubmissionRecord]) -> float:
    """
    Rewards progression to harder problems: every solved submission
    contributes its difficulty's points, averaged over all solves.
    Unknown difficulties count as medium.
    """
    solved = solved_submissions(submissions)
    if not solved:
        return 0.0

    counts = {"easy": 0, "medium": 0, "hard": 0}
    for s in solved:
        diff = (s.difficulty or "medium").lower()
        counts[diff if diff in counts else "medium"] += 1

    total = sum(counts.values())
    points = sum(counts[d] / total * DIFFICULTY_POINTS[d] for d in counts)
    return _clamp(points)


def contest_score(contests: Sequence[ContestRecord]) -> float:
    if not contests:
        return 0.0

    ranked = [c for c in _newest_first(contests) if c.rank and c.rank > 0]
    if not ranked:
        return 20.0  # participation bonus

    codeforces = [c for c in ranked if c.platform == "codeforces"]
    if len(codeforces) >= 2:
        latest, earliest = codeforces[0], codeforces[-1]
        if latest.new_rating is not None and earliest.old_rating is not None:
            improvement = latest.new_rating - earliest.old_rating
        else:
            improvement = 0
        improvement_score = _clamp(improvement / CONTEST_IMPROVEMENT_BENCHMARK * 60, 0, 60)
        participation_score = min(len(ranked) * 5, 40)
        return _clamp(improvement_score + participation_score)

    return float(min(len(ranked) * 10, 50))


def consistency_score(submissions: Sequence[SubmissionRecord], now: Optional[datetime] = None) -> int:
    """Share of the last 30 days with at least one submission."""
    now = _utc(now)
    window_start = now - timedelta(days=CONSISTENCY_WINDOW_DAYS)
    active_days = {s.timestamp.date() for s in submissions if s.timestamp >= window_start}
    return int(_clamp(round_half_up(len(active_days) / CONSISTENCY_WINDOW_DAYS * 100)))


def topic_coverage_score(submissions: Sequence[SubmissionRecord]) -> float:
    topics = _topics(solved_submissions(submissions))
    return _clamp(len(topics) / EXPECTED_TOPICS * 100)


def score_breakdown(
    submissions: Sequence[SubmissionRecord],
    contests: Sequence[ContestRecord],
    now: Optional[datetime] = None,
) -> ScoreBreakdown:
    return ScoreBreakdown(
        problems_solved=problems_solved_score(submissions),
        difficulty=difficulty_score(submissions),
        contest=contest_score(contests),
        consistency=consistency_score(submissions, now),
        topic_coverage=topic_coverage_score(submissions),
    )


def composite_score(breakdown: ScoreBreakdown) -> int:
    parts = breakdown.as_dict()
    total = sum(parts[name] * weight for name, weight in SCORE_WEIGHTS.items())
    return int(_clamp(round_half_up(total)))


def level_for(score: float) -> str:
    for threshold, label in LEVELS:
        if score >= threshold:
            return label
    return "Novice"


# ---------------------------------------------------------------------------
# Topic strengths
# ---------------------------------------------------------------------------

def topic_proficiency(submissions: Sequence[SubmissionRecord]) -> List[TopicProficiency]:
    """
    Per-tag proficiency over unique problems, for tags with at least
    MIN_TOPIC_ATTEMPTS attempted problems. Sorted best first.
    """
    attempted = defaultdict(set)
    solved = defaultdict(set)
    for s in submissions:
        for tag in s.tags or []:
            attempted[tag].add(s.problem_id)
            if is_accepted(s.platform, s.verdict):
                solved[tag].add(s.problem_id)

    topics = [
        TopicProficiency(
            topic=tag,
            proficiency=len(solved[tag]) / len(problems) * 100,
            total_problems=len(problems),
            solved_problems=len(solved[tag]),
        )
        for tag, problems in attempted.items()
        if len(problems) >= MIN_TOPIC_ATTEMPTS
    ]
    topics.sort(key=lambda t: (-t.proficiency, -t.total_problems, t.topic))
    return topics


def analyze_topic_strengths(submissions: Sequence[SubmissionRecord]) -> Tuple[List[str], List[str]]:
    """Returns (strong_areas, weak_areas); the two lists never overlap."""
    topics = topic_proficiency(submissions)

    strong = [
        t.topic for t in topics
        if t.proficiency >= STRONG_PROFICIENCY and t.total_problems >= MIN_STRONG_ATTEMPTS
    ][:MAX_AREAS]

    weakest_first = sorted(topics, key=lambda t: (t.proficiency, -t.total_problems, t.topic))
    weak = [t.topic for t in weakest_first if t.proficiency < WEAK_PROFICIENCY][:MAX_AREAS]
    return strong, weak


# ---------------------------------------------------------------------------
# Recent progress
# ---------------------------------------------------------------------------

def count_recent_solves(submissions: Sequence[SubmissionRecord], days: int, now: Optional[datetime] = None) -> int:
    """Fallback week/month count: solved submissions in the last `days` days."""
    start = _utc(now) - timedelta(days=days)
    return sum(1 for s in solved_submissions(submissions) if s.timestamp >= start)


def count_calendar(calendar: Dict[date, int], now: Optional[datetime] = None) -> Tuple[int, int]:
    """(last 7 days, current calendar month) submission counts from a calendar."""
    now = _utc(now)
    week_start = now - timedelta(days=7)
    month_start = _day_start(now.date().replace(day=1))

    week = month = 0
    for day, count in calendar.items():
        day_start = _day_start(day)
        if day_start >= week_start:
            week += count
        if day_start >= month_start:
            month += count
    return week, month


def average_weekly_solved(submissions: Sequence[SubmissionRecord], now: Optional[datetime] = None) -> int:
    start = _utc(now) - timedelta(days=28)
    recent = _unique_problems(s for s in solved_submissions(submissions) if s.timestamp >= start)
    return round_half_up(len(recent) / 4)


def difficulty_progression(submissions: Sequence[SubmissionRecord], now: Optional[datetime] = None) -> str:
    start = _utc(now) - timedelta(days=30)
    recent = [s for s in solved_submissions(submissions) if s.timestamp >= start]

    counts = {"easy": 0, "medium": 0, "hard": 0}
    for s in recent:
        diff = (s.difficulty or "medium").lower()
        if diff in counts:
            counts[diff] += 1

    total = sum(counts.values())
    if total == 0:
        return "stable"

    medium_hard = (counts["medium"] + counts["hard"]) / total * 100
    if medium_hard >= 70:
        return "advancing"
    if medium_hard >= 50:
        return "improving"
    return "stable"


def rating_trends(
    contests: Sequence[ContestRecord],
    profiles: Sequence[ProfileRecord],
) -> Dict[str, RatingTrend]:
    """Change between the two most recent rated contests on each platform."""
    trends = {}
    ordered = _newest_first(contests)
    for platform in TREND_PLATFORMS:
        rated = [c for c in ordered if c.platform == platform and c.new_rating is not None][:5]
        if len(rated) >= 2:
            latest, previous = rated[0], rated[1]
            change = latest.new_rating - previous.new_rating
            trend = "improving" if change > 0 else "declining" if change < 0 else "stable"
            trends[platform] = RatingTrend(current=latest.new_rating, change=change, trend=trend)
        else:
            profile = _find_profile(profiles, platform)
            trends[platform] = RatingTrend(current=profile.current_rating if profile else None)
    return trends


def improvement_trend(submissions: Sequence[SubmissionRecord], now: Optional[datetime] = None) -> str:
    """Solved this calendar month against the previous one."""
    now = _utc(now)
    this_month = (now.year, now.month)
    last_month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)

    solved = solved_submissions(submissions)
    current = sum(1 for s in solved if (s.timestamp.year, s.timestamp.month) == this_month)
    previous = sum(1 for s in solved if (s.timestamp.year, s.timestamp.month) == last_month)

    if previous == 0:
        return "+100% this month"
    improvement = (current - previous) / previous * 100
    sign = "+" if improvement > 0 else ""
    return f"{sign}{round_half_up(improvement)}% this month"


def calculate_recent_progress(
    submissions: Sequence[SubmissionRecord],
    contests: Sequence[ContestRecord],
    profiles: Sequence[ProfileRecord],
    now: Optional[datetime] = None,
    calendar: Optional[Dict[date, int]] = None,
) -> RecentProgress:
    """
    Week/month counts come from the LeetCode calendar when one is supplied;
    otherwise they fall back to counting solved submissions in the store.
    """
    now = _utc(now)
    if calendar is not None:
        week, month = count_calendar(calendar, now)
        source = "calendar"
    else:
        week = count_recent_solves(submissions, 7, now)
        month = count_recent_solves(submissions, 30, now)
        source = "database"

    solved = solved_submissions(submissions)
    return RecentProgress(
        last_week_solved=week,
        last_month_solved=month,
        consistency_score=consistency_score(solved, now),
        average_weekly_solved=average_weekly_solved(solved, now),
        difficulty_progression=difficulty_progression(solved, now),
        rating_trend=rating_trends(contests, profiles),
        source=source,
    )


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------

def calculate_overall_progress(
    submissions: Sequence[SubmissionRecord],
    contests: Sequence[ContestRecord],
    profiles: Sequence[ProfileRecord],
    now: Optional[datetime] = None,
    calendar: Optional[Dict[date, int]] = None,
) -> OverallProgress:
    now = _utc(now)
    breakdown = score_breakdown(submissions, contests, now)
    score = composite_score(breakdown)
    strong, weak = analyze_topic_strengths(submissions)

    return OverallProgress(
        score=score,
        level=level_for(score),
        strong_areas=strong,
        weak_areas=weak,
        improvement_trend=improvement_trend(submissions, now),
        recent_progress=calculate_recent_progress(submissions, contests, profiles, now, calendar),
        breakdown=breakdown,
    )


def calculate_quick_stats(
    submissions: Sequence[SubmissionRecord],
    profiles: Sequence[ProfileRecord],
    now: Optional[datetime] = None,
) -> QuickStats:
    solved = solved_submissions(submissions)
    codeforces = _find_profile(profiles, "codeforces")
    contest_rating = codeforces.current_rating if codeforces and codeforces.current_rating else "Unrated"

    return QuickStats(
        total_solved=len(_unique_problems(solved)),
        contest_rating=contest_rating,
        topics_covered=len(_topics(solved)),
        consistency=consistency_score(submissions, now),
    )


def generate_insights(now: Optional[datetime] = None) -> Insights:
    """Time-of-day and weekday tips, bucketed on the server's local clock."""
    now = now or datetime.now()
    progress = [
        "📈 Keep practicing consistently to maintain your progress",
        "🎯 Focus on solving problems step by step",
    ]
    recommendations = [
        "💪 Challenge yourself with slightly harder problems",
        "🔍 Review your recent solutions to identify patterns",
    ]

    if 9 <= now.hour <= 17:
        progress.append("☀️ Great time for focused problem solving")
    elif 18 <= now.hour <= 22:
        progress.append("🌆 Evening practice sessions can be very productive")

    if now.weekday() < 5:
        recommendations.append("📚 Weekday consistency builds strong coding habits")
    else:
        recommendations.append("🎉 Weekend sessions are perfect for deeper exploration")

    return Insights(progress_insights=progress[:3], recommendations=recommendations[:3])


def build_overview(
    submissions: Sequence[SubmissionRecord],
    contests: Sequence[ContestRecord],
    profiles: Sequence[ProfileRecord],
    now: Optional[datetime] = None,
    calendar: Optional[Dict[date, int]] = None,
) -> CoachOverview:
    now = _utc(now)
    return CoachOverview(
        overall_progress=calculate_overall_progress(submissions, contests, profiles, now, calendar),
        quick_stats=calculate_quick_stats(submissions, profiles, now),
        insights=generate_insights(now.astimezone()),
    )
