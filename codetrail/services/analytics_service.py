"""
Analytics Service - progress metrics from the LeetCode calendar, contest
ratings and the daily submission chart, composed from the dashboard service.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from codetrail.analysis.dashboard_stats import display_date, progress_metrics
from codetrail.models.user import User
from codetrail.services.cache_service import CacheService
from codetrail.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, db, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache or CacheService()
        self.dashboard = DashboardService(db, self.cache)

    async def get_analytics(self, user: User, now: Optional[datetime] = None) -> dict:
        cached = await self.cache.get("analytics", user.id)
        if cached is not None:
            return {**cached, "cache_hit": True}

        now = now or datetime.now(timezone.utc)
        logger.info("🔄 Computing analytics for user %s", user.id)

        profiles = await self.dashboard.loader.load_profiles(user.id)
        platforms = {p.platform: p for p in profiles}
        leetcode = platforms.get("leetcode")
        codeforces = platforms.get("codeforces")

        if leetcode:
            calendar = await self.dashboard.loader.resolve_calendar(user.id, profiles, now)
        else:
            calendar = None
        metrics = progress_metrics(calendar or {}, now)

        daily = await self.dashboard.get_daily_submissions(user, now)
        series = [
            {**entry, "display_date": display_date(date.fromisoformat(entry["date"]))}
            for entry in daily["daily_submissions"]
        ]

        result = {
            "user_profiles": {
                "connected_platforms": {
                    p.platform: {"handle": p.handle, "synced_at": p.synced_at} for p in profiles
                },
                "leetcode_handle": leetcode.handle if leetcode else None,
                "codeforces_handle": codeforces.handle if codeforces else None,
            },
            "progress_metrics": metrics,
            "contest_ratings": {
                "codeforces": codeforces.current_rating if codeforces else None,
                "leetcode": leetcode.current_rating if leetcode else None,
                "codeforces_rank": (codeforces.rank if codeforces and codeforces.rank else "unrated"),
            },
            "daily_submissions": series,
            "last_updated": now,
            "cache_hit": False,
        }

        await self.cache.set("analytics", user.id, result)
        return result

    async def invalidate(self, user: User) -> None:
        await self.cache.invalidate(user.id)
