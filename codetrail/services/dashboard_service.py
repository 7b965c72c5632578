"""
Dashboard Service - totals, heatmap, contest rankings and topic breakdown
for the dashboard page, plus the 30-day daily submission series.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codetrail.analysis import dashboard_stats as stats
from codetrail.models.calendar import CalendarCache
from codetrail.models.user import User
from codetrail.preprocess.records import CalendarDay, calendar_from_row
from codetrail.services.cache_service import CacheService
from codetrail.services.coach_service import CoachService
from codetrail.services.sync_service import PlatformSyncService

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, db: AsyncSession, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache or CacheService()
        # Same loaders the coach overview reads through
        self.loader = CoachService(db, self.cache)

    async def get_dashboard_stats(self, user: User) -> dict:
        cached = await self.cache.get("dashboard", user.id)
        if cached is not None:
            return cached

        submissions = await self.loader.load_submissions(user.id)
        contests = await self.loader.load_contests(user.id)
        profiles = await self.loader.load_profiles(user.id)
        calendar = await self.load_calendar_days(user.id)

        result = {
            "total_questions": stats.total_questions(submissions, profiles),
            "total_active_days": stats.active_days(submissions),
            "heatmap_data": stats.heatmap(submissions, calendar),
            "total_contests": stats.contest_stats(contests),
            "contest_rankings": stats.contest_rankings(contests),
            "dsa_topic_analysis": stats.dsa_topic_analysis(submissions),
            "user_info": {
                "profile": {
                    "id": user.id,
                    "email": user.email,
                    "username": user.username,
                    "first_name": user.first_name,
                    "last_name": user.last_name,
                    "created_at": user.created_at,
                },
                "connected_platforms": stats.connected_platforms(profiles),
            },
            "contest_history": stats.contest_history(contests),
        }
        logger.info("📊 Dashboard stats computed for user %s (%d submissions)", user.id, len(submissions))

        await self.cache.set("dashboard", user.id, result)
        return result

    async def get_connected_platforms(self, user: User) -> dict:
        profiles = await self.loader.load_profiles(user.id)
        return stats.connected_platforms(profiles)

    async def load_calendar_days(self, user_id: int) -> List[CalendarDay]:
        result = await self.db.execute(
            select(CalendarCache)
            .where(CalendarCache.user_id == user_id)
            .order_by(CalendarCache.date)
        )
        return [calendar_from_row(row) for row in result.scalars().all()]

    async def get_daily_submissions(self, user: User, now: Optional[datetime] = None) -> dict:
        """
        Last 30 days of per-platform submission counts. When nothing has been
        cached yet but platforms are linked, the calendar is rebuilt from the
        stored submissions first.
        """
        now = now or datetime.now(timezone.utc)
        calendar = await self.load_calendar_days(user.id)

        if not calendar:
            profiles = await self.loader.load_profiles(user.id)
            if not profiles:
                return stats.daily_submissions([], now)

            logger.warning("⚠️  No calendar cache for user %s, rebuilding from submissions", user.id)
            submissions = await self.loader.load_submissions(user.id)
            rebuilt = stats.calendar_from_submissions(submissions)
            sync = PlatformSyncService(self.db, self.cache)
            for profile in profiles:
                days = {d.date: d.count for d in rebuilt if d.platform == profile.platform}
                await sync.store_calendar(user.id, profile.platform, profile.handle, days, commit=False)
            await self.db.commit()
            calendar = rebuilt

        return stats.daily_submissions(calendar, now)
