"""
Coach Service - builds the AI coach overview (composite score, level,
strong / weak topics, recent progress, quick stats and insights) from the
user's stored history.
"""

import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from codetrail.analysis.scoring import build_overview
from codetrail.api.leetcode_api import fetch_leetcode_calendar
from codetrail.core.config import settings
from codetrail.core.exceptions import CoachError, PlatformAPIError
from codetrail.models.calendar import CalendarCache
from codetrail.models.contest import ContestParticipation
from codetrail.models.platform import PlatformProfile
from codetrail.models.problem import Submission
from codetrail.models.user import User
from codetrail.preprocess.records import (
    ContestRecord,
    ProfileRecord,
    SubmissionRecord,
    contest_from_row,
    profile_from_row,
    submission_from_row,
)
from codetrail.services.cache_service import CacheService
from codetrail.services.sync_service import PlatformSyncService

logger = logging.getLogger(__name__)


class CoachService:
    def __init__(self, db: AsyncSession, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache or CacheService()

    async def get_overview(self, user: User, now: Optional[datetime] = None) -> dict:
        cached = await self.cache.get("coach", user.id)
        if cached is not None:
            return cached

        now = now or datetime.now(timezone.utc)
        submissions = await self.load_submissions(user.id)
        contests = await self.load_contests(user.id)
        profiles = await self.load_profiles(user.id)

        calendar = await self.resolve_calendar(user.id, profiles, now)

        try:
            overview = build_overview(submissions, contests, profiles, now=now, calendar=calendar)
        except Exception as e:
            logger.exception("❌ Coach overview failed for user %s", user.id)
            raise CoachError(f"Failed to build coach overview: {e}") from e

        result = asdict(overview)
        await self.cache.set("coach", user.id, result)
        return result

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_submissions(self, user_id: int) -> List[SubmissionRecord]:
        result = await self.db.execute(
            select(Submission)
            .options(selectinload(Submission.problem))
            .where(Submission.user_id == user_id)
            .order_by(Submission.timestamp.desc())
        )
        return [submission_from_row(row) for row in result.scalars().all()]

    async def load_contests(self, user_id: int) -> List[ContestRecord]:
        result = await self.db.execute(
            select(ContestParticipation)
            .options(selectinload(ContestParticipation.contest))
            .where(ContestParticipation.user_id == user_id)
            .order_by(ContestParticipation.timestamp.desc())
        )
        return [contest_from_row(row) for row in result.scalars().all()]

    async def load_profiles(self, user_id: int) -> List[ProfileRecord]:
        result = await self.db.execute(
            select(PlatformProfile).where(PlatformProfile.user_id == user_id)
        )
        return [profile_from_row(row) for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # LeetCode calendar
    # ------------------------------------------------------------------

    async def load_calendar(self, user_id: int, platform: str = "leetcode") -> Dict[date, int]:
        result = await self.db.execute(
            select(CalendarCache.date, CalendarCache.count).where(
                CalendarCache.user_id == user_id,
                CalendarCache.platform == platform,
            )
        )
        return {day: count for day, count in result.all()}

    async def resolve_calendar(
        self,
        user_id: int,
        profiles: List[ProfileRecord],
        now: datetime,
    ) -> Optional[Dict[date, int]]:
        """
        The LeetCode submission calendar for the week/month counts, or None
        when the database fallback should be used instead.
        """
        leetcode = next((p for p in profiles if p.platform == "leetcode"), None)
        if leetcode is None:
            return None

        stale_after = timedelta(minutes=settings.CALENDAR_STALE_MINUTES)
        refreshed_at = leetcode.calendar_synced_at or leetcode.synced_at
        if refreshed_at and now - refreshed_at <= stale_after:
            calendar = await self.load_calendar(user_id)
            # An empty calendar is only trusted once it has actually been fetched
            if calendar or leetcode.calendar_synced_at:
                return calendar

        try:
            calendar = await run_in_threadpool(fetch_leetcode_calendar, leetcode.handle)
        except PlatformAPIError as e:
            logger.warning("⚠️  LeetCode calendar unavailable for %s, using stored submissions: %s",
                           leetcode.handle, e)
            return None

        await PlatformSyncService(self.db, self.cache).store_calendar(
            user_id, "leetcode", leetcode.handle, calendar, commit=False
        )
        result = await self.db.execute(
            select(PlatformProfile).where(
                PlatformProfile.user_id == user_id,
                PlatformProfile.platform == "leetcode",
            )
        )
        profile = result.scalar_one_or_none()
        if profile is not None:
            profile.calendar_synced_at = now
        await self.db.commit()

        logger.info("📅 Refreshed LeetCode calendar for %s (%d days)", leetcode.handle, len(calendar))
        return calendar
