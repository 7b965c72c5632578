from datetime import date, timedelta

import pytest
from sqlalchemy import select

from codetrail.api import leetcode_api
from codetrail.core.exceptions import CoachError, PlatformAPIError
from codetrail.models.calendar import CalendarCache
from codetrail.models.platform import PlatformProfile
from codetrail.preprocess.records import as_utc
from codetrail.services import coach_service
from codetrail.services.coach_service import CoachService
from factories import NOW, days_ago, store_contest, store_profile, store_submission


@pytest.fixture
def calendar_calls(monkeypatch):
    calls = []

    def fake_calendar(username):
        calls.append(username)
        return {date(2024, 6, 14): 5, date(2024, 6, 2): 2}

    monkeypatch.setattr(coach_service, "fetch_leetcode_calendar", fake_calendar)
    return calls


async def test_overview_for_new_user(db, user):
    overview = await CoachService(db).get_overview(user, now=NOW)

    progress = overview["overall_progress"]
    assert progress["score"] == 0
    assert progress["level"] == "Novice"
    assert progress["improvement_trend"] == "+100% this month"
    assert progress["recent_progress"]["source"] == "database"
    assert overview["quick_stats"]["contest_rating"] == "Unrated"
    assert 1 <= len(overview["insights"]["recommendations"]) <= 3


async def test_overview_scores_stored_history(db, user):
    for i in range(3):
        await store_submission(db, user.id, f"dp{i}", when=days_ago(i), tags=["dp"], difficulty="hard")
    for i in range(3):
        await store_submission(db, user.id, f"g{i}", verdict="WRONG_ANSWER", when=days_ago(i), tags=["graphs"])
    await store_profile(db, user.id, platform="codeforces", handle="tourist", rating=1530)
    await store_contest(db, user.id, 1, days_ago(20), old=1400, new=1450)
    await store_contest(db, user.id, 2, days_ago(5), old=1450, new=1530)

    overview = await CoachService(db).get_overview(user, now=NOW)
    progress = overview["overall_progress"]

    assert 0 < progress["score"] <= 100
    assert progress["strong_areas"] == ["dp"]
    assert progress["weak_areas"] == ["graphs"]
    assert progress["recent_progress"]["last_week_solved"] == 3
    trend = progress["recent_progress"]["rating_trend"]["codeforces"]
    assert trend == {"current": 1530, "change": 80, "trend": "improving"}
    assert overview["quick_stats"]["contest_rating"] == 1530
    assert overview["quick_stats"]["total_solved"] == 3


async def test_stale_calendar_is_refetched_and_stored(db, user, calendar_calls):
    await store_profile(db, user.id, platform="leetcode", handle="alice", synced_at=NOW - timedelta(days=2))

    overview = await CoachService(db).get_overview(user, now=NOW)
    recent = overview["overall_progress"]["recent_progress"]

    assert calendar_calls == ["alice"]
    assert recent["source"] == "calendar"
    assert recent["last_week_solved"] == 5
    assert recent["last_month_solved"] == 7

    rows = (await db.execute(select(CalendarCache).where(CalendarCache.user_id == user.id))).scalars().all()
    assert {r.date: r.count for r in rows} == {date(2024, 6, 14): 5, date(2024, 6, 2): 2}


async def test_fresh_calendar_is_used_without_fetching(db, user, calendar_calls):
    await store_profile(db, user.id, platform="leetcode", handle="alice", synced_at=NOW - timedelta(minutes=5))
    db.add(CalendarCache(user_id=user.id, platform="leetcode", handle="alice", date=date(2024, 6, 13), count=4))
    await db.commit()

    overview = await CoachService(db).get_overview(user, now=NOW)

    assert calendar_calls == []
    assert overview["overall_progress"]["recent_progress"]["last_week_solved"] == 4


async def test_calendar_failure_falls_back_to_database(db, user, monkeypatch):
    def unavailable(username):
        raise PlatformAPIError("leetcode", "request timed out")

    monkeypatch.setattr(coach_service, "fetch_leetcode_calendar", unavailable)
    await store_profile(db, user.id, platform="leetcode", handle="alice", synced_at=NOW - timedelta(days=2))
    await store_submission(db, user.id, "two-sum", verdict="Accepted", platform="leetcode", when=days_ago(2))

    overview = await CoachService(db).get_overview(user, now=NOW)
    recent = overview["overall_progress"]["recent_progress"]

    assert recent["source"] == "database"
    assert recent["last_week_solved"] == 1
    assert recent["last_month_solved"] == 1


async def test_engine_failure_becomes_coach_error(db, user, monkeypatch):
    def broken(*args, **kwargs):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(coach_service, "build_overview", broken)
    with pytest.raises(CoachError):
        await CoachService(db).get_overview(user, now=NOW)


async def test_refreshed_calendar_is_reused_until_stale(db, user, calendar_calls):
    await store_profile(db, user.id, platform="leetcode", handle="alice", synced_at=NOW - timedelta(days=2))
    service = CoachService(db)

    await service.get_overview(user, now=NOW)
    overview = await service.get_overview(user, now=NOW + timedelta(minutes=1))

    assert calendar_calls == ["alice"]
    recent = overview["overall_progress"]["recent_progress"]
    assert recent["source"] == "calendar"
    assert recent["last_week_solved"] == 5

    profile = (await db.execute(
        select(PlatformProfile).where(PlatformProfile.user_id == user.id)
    )).scalar_one()
    assert as_utc(profile.calendar_synced_at) == NOW

    await service.get_overview(user, now=NOW + timedelta(days=1))
    assert calendar_calls == ["alice", "alice"]


async def test_malformed_calendar_falls_back_to_database(db, user, monkeypatch):
    payload = {"data": {"matchedUser": {"submissionCalendar": "{not json"}}}

    class Response:
        def raise_for_status(self):
            pass

        def json(self):
            return payload

    monkeypatch.setattr(leetcode_api.requests, "post", lambda *a, **kw: Response())
    await store_profile(db, user.id, platform="leetcode", handle="alice", synced_at=NOW - timedelta(days=2))
    await store_submission(db, user.id, "two-sum", verdict="Accepted", platform="leetcode", when=days_ago(1))

    overview = await CoachService(db).get_overview(user, now=NOW)
    recent = overview["overall_progress"]["recent_progress"]

    assert recent["source"] == "database"
    assert recent["last_week_solved"] == 1
