# analysis/dashboard_stats.py
"""
Aggregations behind the dashboard and analytics pages. Like the scoring
engine, these work on plain records and never touch the database.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from codetrail.analysis.scoring import count_calendar, round_half_up
from codetrail.analysis.verdicts import solved_submissions
from codetrail.preprocess.records import CalendarDay, ContestRecord, ProfileRecord, SubmissionRecord, as_utc

PLATFORMS = ("leetcode", "codeforces")
DIFFICULTIES = ("easy", "medium", "hard")
DAILY_WINDOW_DAYS = 30


def _day_key(ts: datetime) -> str:
    return ts.date().isoformat()


def display_date(d: date) -> str:
    """'Oct 5' style label used by the charts."""
    return f"{d.strftime('%b')} {d.day}"


def total_questions(submissions: Sequence[SubmissionRecord], profiles: Sequence[ProfileRecord] = ()) -> dict:
    """
    Unique solved problems overall, per platform and per difficulty.
    `reported` carries the totals each platform itself reports, which can be
    larger than what has been synced locally.
    """
    seen = set()
    per_platform = {p: 0 for p in PLATFORMS}
    by_difficulty = {d: 0 for d in DIFFICULTIES}
    breakdown = {p: {d: 0 for d in DIFFICULTIES} for p in PLATFORMS}

    for s in solved_submissions(submissions):
        if s.problem_id in seen:
            continue
        seen.add(s.problem_id)
        if s.platform in per_platform:
            per_platform[s.platform] += 1

        difficulty = (s.difficulty or "medium").lower()
        if difficulty in by_difficulty:
            by_difficulty[difficulty] += 1
            if s.platform in breakdown:
                breakdown[s.platform][difficulty] += 1

    reported = {p.platform: int(p.stats.get("total", 0)) for p in profiles if p.stats}

    return {
        "total": len(seen),
        **per_platform,
        "by_difficulty": by_difficulty,
        "platform_breakdown": breakdown,
        "reported": reported,
    }


def active_days(submissions: Sequence[SubmissionRecord]) -> dict:
    days = defaultdict(set)
    for s in submissions:
        key = _day_key(s.timestamp)
        days["total"].add(key)
        days[s.platform].add(key)
    return {
        "total": len(days["total"]),
        "leetcode": len(days["leetcode"]),
        "codeforces": len(days["codeforces"]),
    }


def heatmap(submissions: Sequence[SubmissionRecord], calendar: Iterable[CalendarDay] = ()) -> dict:
    """
    Per-day activity keyed by ISO date. LeetCode counts come from the synced
    submission calendar when there is one, since recent-submission syncs only
    cover the latest few; Codeforces counts come from solved submissions.
    """
    leetcode: Dict[str, int] = {}
    codeforces: Dict[str, int] = {}

    for day in calendar:
        if day.platform == "leetcode" and day.count > 0:
            leetcode[day.date.isoformat()] = leetcode.get(day.date.isoformat(), 0) + day.count

    use_lc_submissions = not leetcode
    for s in solved_submissions(submissions):
        key = _day_key(s.timestamp)
        if s.platform == "codeforces":
            codeforces[key] = codeforces.get(key, 0) + 1
        elif s.platform == "leetcode" and use_lc_submissions:
            leetcode[key] = leetcode.get(key, 0) + 1

    combined = dict(leetcode)
    for key, count in codeforces.items():
        combined[key] = combined.get(key, 0) + count

    return {"leetcode": leetcode, "codeforces": codeforces, "combined": combined}


def _ranked(contests: Iterable[ContestRecord]) -> List[ContestRecord]:
    ranked = [c for c in contests if c.rank and c.rank > 0]
    ranked.sort(key=lambda c: c.timestamp, reverse=True)
    return ranked


def contest_stats(contests: Sequence[ContestRecord]) -> dict:
    ranked = _ranked(contests)
    return {
        "total": len(ranked),
        "leetcode": sum(1 for c in ranked if c.platform == "leetcode"),
        "codeforces": sum(1 for c in ranked if c.platform == "codeforces"),
    }


def _contest_entry(c: ContestRecord) -> dict:
    return {
        "contest_id": c.contest_id,
        "name": c.name,
        "rank": c.rank,
        "old_rating": c.old_rating,
        "new_rating": c.new_rating,
        "timestamp": c.timestamp,
    }


def contest_rankings(contests: Sequence[ContestRecord]) -> dict:
    """Latest and best (lowest) rank per platform, plus the full ranked history."""
    ranked = _ranked(contests)
    latest, best, history = {}, {}, {}
    for platform in PLATFORMS:
        entries = [c for c in ranked if c.platform == platform]
        latest[platform] = _contest_entry(entries[0]) if entries else None
        best[platform] = _contest_entry(min(entries, key=lambda c: c.rank)) if entries else None
        history[platform] = [_contest_entry(c) for c in entries]
    return {"latest": latest, "best": best, "rating_history": history}


def contest_history(contests: Sequence[ContestRecord]) -> List[dict]:
    """Rated contests oldest first, for the rating graph."""
    rated = sorted(
        (c for c in contests if c.new_rating is not None),
        key=lambda c: c.timestamp,
    )
    return [
        {
            "platform": c.platform,
            "contest_id": c.contest_id,
            "name": c.name or c.contest_id,
            "rating": c.new_rating,
            "rank": c.rank,
            "date": c.timestamp.date().isoformat(),
        }
        for c in rated
    ]


def dsa_topic_analysis(submissions: Sequence[SubmissionRecord]) -> Dict[str, dict]:
    """Unique solved problems per topic tag, split by platform. Busiest topic first."""
    problems = defaultdict(set)
    for s in solved_submissions(submissions):
        for tag in s.tags or []:
            problems[tag].add((s.platform, s.problem_id))

    topics = {}
    for tag, solved in sorted(problems.items(), key=lambda kv: (-len(kv[1]), kv[0])):
        topics[tag] = {
            "total": len(solved),
            "leetcode": sum(1 for platform, _ in solved if platform == "leetcode"),
            "codeforces": sum(1 for platform, _ in solved if platform == "codeforces"),
        }
    return topics


def connected_platforms(profiles: Sequence[ProfileRecord]) -> Dict[str, dict]:
    return {
        p.platform: {
            "handle": p.handle,
            "current_rating": p.current_rating,
            "max_rating": p.max_rating,
            "rank": p.rank,
            "synced_at": p.synced_at,
        }
        for p in profiles
    }


def calendar_from_submissions(submissions: Sequence[SubmissionRecord]) -> List[CalendarDay]:
    """Rebuild per-day counts from stored submissions when no calendar was synced."""
    counts: Dict[tuple, int] = defaultdict(int)
    for s in submissions:
        counts[(s.platform, s.timestamp.date())] += 1
    return [CalendarDay(platform=p, date=d, count=n) for (p, d), n in sorted(counts.items())]


def daily_submissions(
    calendar: Iterable[CalendarDay],
    now: Optional[datetime] = None,
    days: int = DAILY_WINDOW_DAYS,
) -> dict:
    """
    Per-day submission counts for the last `days` days, one column per
    platform. Only days present in the calendar are returned.
    """
    now = now or datetime.now(timezone.utc)
    frame = pd.DataFrame(
        [{"date": d.date, "platform": d.platform, "count": d.count} for d in calendar],
        columns=["date", "platform", "count"],
    )
    start = (now - timedelta(days=days)).date()
    frame = frame[frame["date"] >= start] if not frame.empty else frame

    if frame.empty:
        return {"daily_submissions": [], "total_days": 0, "date_range": {"start": None, "end": None}}

    table = frame.pivot_table(
        index="date", columns="platform", values="count", aggfunc="sum", fill_value=0
    ).sort_index()
    for platform in PLATFORMS:
        if platform not in table.columns:
            table[platform] = 0

    rows = [
        {
            "date": day.isoformat(),
            "leetcode": int(row["leetcode"]),
            "codeforces": int(row["codeforces"]),
            "total": int(row["leetcode"] + row["codeforces"]),
        }
        for day, row in table.iterrows()
    ]
    return {
        "daily_submissions": rows,
        "total_days": len(rows),
        "date_range": {"start": rows[0]["date"], "end": rows[-1]["date"]},
    }


def progress_metrics(calendar: Dict[date, int], now: Optional[datetime] = None) -> dict:
    """This week / this month / 4-week average / 30-day consistency from a submission calendar."""
    now = as_utc(now or datetime.now(timezone.utc))
    week, month = count_calendar(calendar, now)

    four_weeks_ago = now - timedelta(days=28)
    thirty_days_ago = now - timedelta(days=30)
    last_four_weeks = 0
    active = 0
    for day, count in calendar.items():
        day_start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        if day_start >= four_weeks_ago:
            last_four_weeks += count
        if day_start >= thirty_days_ago and count > 0:
            active += 1

    return {
        "this_week_solved": week,
        "this_month_solved": month,
        "weekly_average": round_half_up(last_four_weeks / 4),
        "consistency_score": min(100, round_half_up(active / 30 * 100)),
    }
