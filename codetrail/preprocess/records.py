# preprocess/records.py
"""
Common record shapes shared by the collectors, the sync service and the
scoring engine. Persisted rows are converted into these before any scoring so
the engine never touches the ORM.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional


def as_utc(ts: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes coming back from the store are UTC."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass
class SubmissionRecord:
    platform: str
    problem_id: str           # unique across platforms, e.g. "codeforces-1850-A"
    verdict: str              # raw platform verdict ("OK", "Accepted", "WRONG_ANSWER", ...)
    timestamp: datetime
    difficulty: Optional[str] = None   # easy | medium | hard
    tags: List[str] = field(default_factory=list)
    name: str = ""
    external_id: str = ""
    rating: Optional[int] = None
    language: Optional[str] = None
    url: Optional[str] = None


@dataclass
class ContestRecord:
    platform: str
    contest_id: str
    timestamp: datetime
    rank: Optional[int] = None
    old_rating: Optional[int] = None
    new_rating: Optional[int] = None
    name: Optional[str] = None


@dataclass
class ProfileRecord:
    platform: str
    handle: str
    current_rating: Optional[int] = None
    max_rating: Optional[int] = None
    rank: Optional[str] = None
    stats: Dict[str, int] = field(default_factory=dict)
    synced_at: Optional[datetime] = None
    calendar_synced_at: Optional[datetime] = None


def submission_from_row(row) -> SubmissionRecord:
    """Build a record from a Submission row with its Problem loaded."""
    problem = row.problem
    return SubmissionRecord(
        platform=row.platform,
        problem_id=f"{row.platform}-{problem.external_id}",
        verdict=row.verdict,
        timestamp=as_utc(row.timestamp),
        difficulty=problem.difficulty,
        tags=list(problem.tags or []),
        name=problem.name,
        external_id=problem.external_id,
        rating=problem.rating,
        language=row.language,
        url=problem.url,
    )


def contest_from_row(row) -> ContestRecord:
    """Build a record from a ContestParticipation row with its Contest loaded."""
    return ContestRecord(
        platform=row.platform,
        contest_id=row.contest_id,
        timestamp=as_utc(row.timestamp),
        rank=row.rank,
        old_rating=row.old_rating,
        new_rating=row.new_rating,
        name=row.contest.name if row.contest is not None else None,
    )


def profile_from_row(row) -> ProfileRecord:
    return ProfileRecord(
        platform=row.platform,
        handle=row.handle,
        current_rating=row.current_rating,
        max_rating=row.max_rating,
        rank=row.rank,
        stats=dict(row.stats or {}),
        synced_at=as_utc(row.synced_at),
        calendar_synced_at=as_utc(row.calendar_synced_at),
    )


@dataclass
class CalendarDay:
    platform: str
    date: date
    count: int


def calendar_from_row(row) -> CalendarDay:
    return CalendarDay(platform=row.platform, date=row.date, count=row.count or 0)
