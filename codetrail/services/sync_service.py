"""
Platform Sync Service - links a LeetCode / Codeforces handle to a user and
pulls the platform's data into the store.

Flow for PUT /dashboard/platforms:
1. Validate the platform name and the handle against the platform
2. Upsert the PlatformProfile (ratings, rank, reported solved counts)
3. Store submissions, contest participations and the per-day calendar
4. Invalidate the user's cached pages
"""

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from codetrail.api.codeforces_api import fetch_cf_contests, fetch_cf_submissions, fetch_cf_user_info
from codetrail.api.leetcode_api import (
    fetch_leetcode_contest_ranking,
    fetch_leetcode_profile,
    fetch_leetcode_question,
    fetch_leetcode_recent_submissions,
)
from codetrail.core.config import settings
from codetrail.core.exceptions import HandleNotFoundError, InvalidPlatformError
from codetrail.models.calendar import CalendarCache
from codetrail.models.contest import Contest, ContestParticipation
from codetrail.models.platform import SUPPORTED_PLATFORMS, PlatformProfile
from codetrail.models.problem import Problem, Submission
from codetrail.models.user import User
from codetrail.preprocess.normalize import (
    lc_solved_stats,
    normalize_cf_contest,
    normalize_cf_submission,
    normalize_lc_contests,
    normalize_lc_submission,
    parse_submission_calendar,
)
from codetrail.preprocess.records import ContestRecord, SubmissionRecord, as_utc
from codetrail.services.cache_service import CacheService

logger = logging.getLogger(__name__)


class PlatformData:
    """Everything fetched from one platform for one handle, already normalized."""

    def __init__(self, platform: str, handle: str):
        self.platform = platform
        self.handle = handle
        self.current_rating: Optional[int] = None
        self.max_rating: Optional[int] = None
        self.rank: Optional[str] = None
        self.stats: Optional[Dict[str, int]] = None
        self.submissions: List[SubmissionRecord] = []
        self.contests: List[ContestRecord] = []
        self.calendar: Dict[date, int] = {}


class PlatformSyncService:
    def __init__(self, db: AsyncSession, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache or CacheService()

    async def update_platform_handle(self, user: User, platform: str, handle: str) -> Tuple[PlatformProfile, dict]:
        """
        Returns the upserted profile and a sync summary.

        Raises InvalidPlatformError for unknown platforms, HandleNotFoundError
        when the platform does not know the handle and PlatformAPIError when
        the platform cannot be reached to validate it.
        """
        platform = (platform or "").strip().lower()
        handle = (handle or "").strip()
        if platform not in SUPPORTED_PLATFORMS:
            raise InvalidPlatformError("Invalid platform. Only leetcode and codeforces are supported.")
        if not handle:
            raise InvalidPlatformError("Handle must not be empty.")

        logger.info("🔗 Linking %s handle '%s' for user %s", platform, handle, user.id)

        if platform == "leetcode":
            data = await self._fetch_leetcode(handle)
        else:
            data = await self._fetch_codeforces(handle)

        profile = await self._upsert_profile(user.id, data)
        added = await self._sync_submissions(user.id, data)
        contests = await self._sync_contests(user.id, data)
        days = await self.store_calendar(user.id, platform, handle, data.calendar, commit=False)
        await self.db.commit()
        await self.db.refresh(profile)

        await self.cache.invalidate(user.id)

        summary = {
            "platform": platform,
            "handle": handle,
            "synced_at": profile.synced_at,
            "submissions_added": added,
            "contests_synced": contests,
            "calendar_days": days,
            "message": f"Successfully validated and synchronized {platform} data for {handle}",
        }
        logger.info(
            "✅ Synced %s/%s: %d new submissions, %d contests, %d calendar days",
            platform, handle, added, contests, days,
        )
        return profile, summary

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch_leetcode(self, handle: str) -> PlatformData:
        user = await run_in_threadpool(fetch_leetcode_profile, handle)
        if not user:
            raise HandleNotFoundError("leetcode", handle)

        data = PlatformData("leetcode", handle)
        submit_stats = (user.get("submitStats") or {}).get("acSubmissionNum")
        data.stats = lc_solved_stats(submit_stats)
        try:
            data.calendar = parse_submission_calendar(user.get("submissionCalendar"))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("⚠️  Ignoring malformed LeetCode calendar for %s: %s", handle, e)

        contest = await run_in_threadpool(fetch_leetcode_contest_ranking, handle)
        ranking = contest.get("ranking") or {}
        data.contests = normalize_lc_contests(contest.get("history"))
        if ranking.get("rating") is not None:
            data.current_rating = int(round(ranking["rating"]))
        ratings = [c.new_rating for c in data.contests if c.new_rating is not None]
        if ratings:
            data.max_rating = max(ratings)
        data.rank = (ranking.get("badge") or {}).get("name")

        recent = await run_in_threadpool(
            fetch_leetcode_recent_submissions, handle, settings.LEETCODE_RECENT_LIMIT
        )
        questions: Dict[str, Optional[dict]] = {}
        for sub in recent:
            slug = sub.get("titleSlug")
            if slug and slug not in questions:
                questions[slug] = await run_in_threadpool(fetch_leetcode_question, slug)
            try:
                record = normalize_lc_submission(sub, questions.get(slug))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("⚠️  Skipping malformed LeetCode submission %s: %s", slug, e)
                continue
            if record:
                data.submissions.append(record)
        return data

    async def _fetch_codeforces(self, handle: str) -> PlatformData:
        info = await run_in_threadpool(fetch_cf_user_info, handle)
        if not info:
            raise HandleNotFoundError("codeforces", handle)

        data = PlatformData("codeforces", info.get("handle", handle))
        data.current_rating = info.get("rating")
        data.max_rating = info.get("maxRating")
        data.rank = info.get("rank")

        raw_submissions = await run_in_threadpool(fetch_cf_submissions, handle, settings.CODEFORCES_SYNC_LIMIT)
        for sub in raw_submissions:
            try:
                record = normalize_cf_submission(sub)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("⚠️  Skipping malformed Codeforces submission %s: %s", sub.get("id"), e)
                continue
            if record:
                data.submissions.append(record)
                day = record.timestamp.date()
                data.calendar[day] = data.calendar.get(day, 0) + 1

        for entry in await run_in_threadpool(fetch_cf_contests, handle):
            try:
                data.contests.append(normalize_cf_contest(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("⚠️  Skipping malformed Codeforces contest %s: %s", entry.get("contestId"), e)
        return data

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _upsert_profile(self, user_id: int, data: PlatformData) -> PlatformProfile:
        result = await self.db.execute(
            select(PlatformProfile).where(
                PlatformProfile.user_id == user_id,
                PlatformProfile.platform == data.platform,
            )
        )
        profile = result.scalar_one_or_none()

        if profile is None:
            profile = PlatformProfile(user_id=user_id, platform=data.platform, handle=data.handle)
            self.db.add(profile)
        elif profile.handle.lower() != data.handle.lower():
            # A different account: its history must not mix with the old one
            logger.info("🔄 %s handle changed from '%s' to '%s', clearing old data",
                        data.platform, profile.handle, data.handle)
            await self._clear_platform_data(user_id, data.platform)

        profile.handle = data.handle
        profile.current_rating = data.current_rating
        profile.max_rating = data.max_rating
        profile.rank = data.rank
        profile.stats = data.stats
        profile.synced_at = datetime.now(timezone.utc)
        profile.calendar_synced_at = profile.synced_at
        await self.db.flush()
        return profile

    async def _clear_platform_data(self, user_id: int, platform: str):
        for model in (Submission, ContestParticipation, CalendarCache):
            await self.db.execute(
                delete(model).where(model.user_id == user_id, model.platform == platform)
            )

    async def _get_or_create_problem(self, record: SubmissionRecord, known: Dict[str, Problem]) -> Problem:
        problem = known.get(record.external_id)
        if problem is None:
            result = await self.db.execute(
                select(Problem).where(
                    Problem.platform == record.platform,
                    Problem.external_id == record.external_id,
                )
            )
            problem = result.scalar_one_or_none()

        if problem is None:
            problem = Problem(
                platform=record.platform,
                external_id=record.external_id,
                name=record.name or record.external_id,
                difficulty=record.difficulty,
                rating=record.rating,
                tags=list(record.tags),
                url=record.url,
            )
            self.db.add(problem)
            await self.db.flush()
        elif record.tags and not problem.tags:
            # Earlier sync could not look the problem up
            problem.tags = list(record.tags)
            problem.difficulty = record.difficulty

        known[record.external_id] = problem
        return problem

    async def _sync_submissions(self, user_id: int, data: PlatformData) -> int:
        result = await self.db.execute(
            select(Submission.problem_id, Submission.timestamp).where(
                Submission.user_id == user_id,
                Submission.platform == data.platform,
            )
        )
        existing = {(problem_id, as_utc(ts)) for problem_id, ts in result.all()}

        known: Dict[str, Problem] = {}
        added = 0
        for record in data.submissions:
            problem = await self._get_or_create_problem(record, known)
            key = (problem.id, as_utc(record.timestamp))
            if key in existing:
                continue
            self.db.add(Submission(
                user_id=user_id,
                platform=data.platform,
                handle=data.handle,
                problem_id=problem.id,
                verdict=record.verdict,
                language=record.language,
                timestamp=record.timestamp,
            ))
            existing.add(key)
            added += 1

        await self.db.flush()
        return added

    async def _get_or_create_contest(self, platform: str, record: ContestRecord) -> Contest:
        result = await self.db.execute(
            select(Contest).where(Contest.platform == platform, Contest.external_id == record.contest_id)
        )
        contest = result.scalar_one_or_none()
        if contest is None:
            contest = Contest(
                platform=platform,
                external_id=record.contest_id,
                name=record.name,
                start_time=record.timestamp,
            )
            self.db.add(contest)
            await self.db.flush()
        return contest

    async def _sync_contests(self, user_id: int, data: PlatformData) -> int:
        result = await self.db.execute(
            select(ContestParticipation).where(
                ContestParticipation.user_id == user_id,
                ContestParticipation.platform == data.platform,
            )
        )
        existing = {c.contest_id: c for c in result.scalars().all()}

        for record in data.contests:
            contest = await self._get_or_create_contest(data.platform, record)
            row = existing.get(record.contest_id)
            if row is None:
                row = ContestParticipation(user_id=user_id, platform=data.platform, contest_id=record.contest_id)
                self.db.add(row)
                existing[record.contest_id] = row
            row.contest_ref = contest.id
            row.handle = data.handle
            row.rank = record.rank
            row.old_rating = record.old_rating
            row.new_rating = record.new_rating
            row.timestamp = record.timestamp

        await self.db.flush()
        return len(data.contests)

    async def store_calendar(
        self,
        user_id: int,
        platform: str,
        handle: str,
        calendar: Dict[date, int],
        commit: bool = True,
    ) -> int:
        """Replace the stored per-day counts for one platform."""
        await self.db.execute(
            delete(CalendarCache).where(
                CalendarCache.user_id == user_id,
                CalendarCache.platform == platform,
            )
        )
        for day, count in sorted(calendar.items()):
            self.db.add(CalendarCache(user_id=user_id, platform=platform, handle=handle, date=day, count=count))

        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        return len(calendar)
