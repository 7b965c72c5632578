import json

import pytest
from sqlalchemy import func, select

from codetrail.core.exceptions import HandleNotFoundError, InvalidPlatformError, PlatformAPIError
from codetrail.models.calendar import CalendarCache
from codetrail.models.contest import Contest, ContestParticipation
from codetrail.models.platform import PlatformProfile
from codetrail.models.problem import Problem, Submission
from codetrail.services import sync_service
from codetrail.services.sync_service import PlatformSyncService

DAY = 1718409600  # 2024-06-15 00:00 UTC


def _cf_sub(sub_id, contest_id, index, verdict="OK", rating=1400, when=DAY + 3600, tags=("greedy",)):
    return {
        "id": sub_id,
        "creationTimeSeconds": when,
        "verdict": verdict,
        "programmingLanguage": "GNU C++17",
        "problem": {"contestId": contest_id, "index": index, "name": f"P{contest_id}{index}",
                    "rating": rating, "tags": list(tags)},
    }


@pytest.fixture
def codeforces(monkeypatch):
    submissions = [
        _cf_sub(3, 1900, "B", verdict="WRONG_ANSWER"),
        _cf_sub(2, 1900, "A"),
        _cf_sub(1, 1850, "C", verdict="TESTING"),
        _cf_sub(0, 1800, "D", when=DAY - 86400, rating=2100, tags=("dp",)),
    ]
    contests = [
        {"contestId": 1800, "contestName": "Round 1", "rank": 900, "ratingUpdateTimeSeconds": DAY - 86400 * 30,
         "oldRating": 1400, "newRating": 1450},
        {"contestId": 1900, "contestName": "Round 2", "rank": 400, "ratingUpdateTimeSeconds": DAY - 86400,
         "oldRating": 1450, "newRating": 1530},
    ]
    monkeypatch.setattr(sync_service, "fetch_cf_user_info",
                        lambda handle: {"handle": handle, "rating": 1530, "maxRating": 1600, "rank": "specialist"})
    monkeypatch.setattr(sync_service, "fetch_cf_submissions", lambda handle, count=None: submissions)
    monkeypatch.setattr(sync_service, "fetch_cf_contests", lambda handle: contests)


@pytest.fixture
def leetcode(monkeypatch):
    questions = []

    def fake_question(slug):
        questions.append(slug)
        return {"titleSlug": slug, "difficulty": "Medium", "topicTags": [{"name": "Design"}]}

    monkeypatch.setattr(sync_service, "fetch_leetcode_profile", lambda username: {
        "username": username,
        "submitStats": {"acSubmissionNum": [
            {"difficulty": "All", "count": 120}, {"difficulty": "Easy", "count": 60},
            {"difficulty": "Medium", "count": 50}, {"difficulty": "Hard", "count": 10},
        ]},
        "submissionCalendar": json.dumps({str(DAY): 3, str(DAY - 86400): 1}),
    })
    monkeypatch.setattr(sync_service, "fetch_leetcode_contest_ranking", lambda username: {
        "ranking": {"rating": 1650.4, "badge": {"name": "Knight"}},
        "history": [
            {"attended": True, "rating": 1500.0, "ranking": 1000,
             "contest": {"title": "Weekly Contest 400", "startTime": DAY - 86400 * 14}},
            {"attended": True, "rating": 1650.4, "ranking": 500,
             "contest": {"title": "Weekly Contest 401", "startTime": DAY - 86400 * 7}},
        ],
    })
    monkeypatch.setattr(sync_service, "fetch_leetcode_recent_submissions", lambda username, limit=20: [
        {"title": "LRU Cache", "titleSlug": "lru-cache", "timestamp": str(DAY + 100),
         "statusDisplay": "Accepted", "lang": "python3"},
        {"title": "LRU Cache", "titleSlug": "lru-cache", "timestamp": str(DAY + 50),
         "statusDisplay": "Wrong Answer", "lang": "python3"},
        {"title": "Min Stack", "titleSlug": "min-stack", "timestamp": str(DAY - 500),
         "statusDisplay": "Accepted", "lang": "python3"},
    ])
    monkeypatch.setattr(sync_service, "fetch_leetcode_question", fake_question)
    return questions


async def _count(db, model, **filters):
    stmt = select(func.count()).select_from(model)
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    return (await db.execute(stmt)).scalar_one()


async def test_rejects_unknown_platform(db, user):
    with pytest.raises(InvalidPlatformError):
        await PlatformSyncService(db).update_platform_handle(user, "hackerrank", "alice")


async def test_unknown_handle(db, user, monkeypatch):
    monkeypatch.setattr(sync_service, "fetch_cf_user_info", lambda handle: None)
    with pytest.raises(HandleNotFoundError) as exc:
        await PlatformSyncService(db).update_platform_handle(user, "codeforces", "nobody404")
    assert "nobody404" in str(exc.value)
    assert await _count(db, PlatformProfile) == 0


async def test_platform_unreachable(db, user, monkeypatch):
    def unreachable(username):
        raise PlatformAPIError("leetcode", "request timed out")

    monkeypatch.setattr(sync_service, "fetch_leetcode_profile", unreachable)
    with pytest.raises(PlatformAPIError):
        await PlatformSyncService(db).update_platform_handle(user, "leetcode", "alice")


async def test_codeforces_sync(db, user, codeforces):
    profile, summary = await PlatformSyncService(db).update_platform_handle(user, "Codeforces", " tourist ")

    assert profile.platform == "codeforces"
    assert profile.handle == "tourist"
    assert (profile.current_rating, profile.max_rating, profile.rank) == (1530, 1600, "specialist")
    assert summary["submissions_added"] == 3
    assert summary["contests_synced"] == 2

    assert await _count(db, Submission, user_id=user.id) == 3
    assert await _count(db, Problem, platform="codeforces") == 3
    assert await _count(db, ContestParticipation, user_id=user.id) == 2
    assert await _count(db, CalendarCache, user_id=user.id, platform="codeforces") == 2
    assert await _count(db, Contest, platform="codeforces") == 2

    problem = (await db.execute(select(Problem).where(Problem.external_id == "1800-D"))).scalar_one()
    assert problem.difficulty == "hard"
    assert problem.tags == ["dp"]


async def test_resync_does_not_duplicate(db, user, codeforces):
    service = PlatformSyncService(db)
    await service.update_platform_handle(user, "codeforces", "tourist")
    _, summary = await service.update_platform_handle(user, "codeforces", "tourist")

    assert summary["submissions_added"] == 0
    assert await _count(db, Submission, user_id=user.id) == 3
    assert await _count(db, ContestParticipation, user_id=user.id) == 2
    assert await _count(db, PlatformProfile, user_id=user.id) == 1


async def test_handle_change_clears_old_history(db, user, codeforces, monkeypatch):
    service = PlatformSyncService(db)
    await service.update_platform_handle(user, "codeforces", "tourist")

    monkeypatch.setattr(sync_service, "fetch_cf_submissions", lambda handle, count=None: [])
    monkeypatch.setattr(sync_service, "fetch_cf_contests", lambda handle: [])
    profile, _ = await service.update_platform_handle(user, "codeforces", "petr")

    assert profile.handle == "petr"
    assert await _count(db, Submission, user_id=user.id) == 0
    assert await _count(db, ContestParticipation, user_id=user.id) == 0


async def test_leetcode_sync(db, user, leetcode):
    profile, summary = await PlatformSyncService(db).update_platform_handle(user, "leetcode", "alice")

    assert profile.current_rating == 1650
    assert profile.max_rating == 1650
    assert profile.rank == "Knight"
    assert profile.stats == {"easy": 60, "medium": 50, "hard": 10, "total": 120}
    assert summary["submissions_added"] == 3
    assert summary["calendar_days"] == 2
    assert sorted(leetcode) == ["lru-cache", "min-stack"]

    contests = (await db.execute(
        select(ContestParticipation).order_by(ContestParticipation.timestamp)
    )).scalars().all()
    assert [c.new_rating for c in contests] == [1500, 1650]
    assert contests[1].old_rating == 1500

    problem = (await db.execute(select(Problem).where(Problem.external_id == "lru-cache"))).scalar_one()
    assert problem.tags == ["design"]
    assert problem.difficulty == "medium"


async def test_leetcode_sync_survives_malformed_calendar(db, user, leetcode, monkeypatch):
    monkeypatch.setattr(sync_service, "fetch_leetcode_profile", lambda username: {
        "username": username,
        "submitStats": {"acSubmissionNum": [{"difficulty": "All", "count": 3}]},
        "submissionCalendar": "{not json",
    })
    profile, summary = await PlatformSyncService(db).update_platform_handle(user, "leetcode", "alice")

    assert profile.handle == "alice"
    assert summary["calendar_days"] == 0
    assert summary["submissions_added"] == 3
    assert await _count(db, CalendarCache, user_id=user.id) == 0
