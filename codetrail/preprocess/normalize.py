# preprocess/normalize.py

import json
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from codetrail.preprocess.records import ContestRecord, SubmissionRecord

LC_DIFFICULTIES = ("easy", "medium", "hard")


def cf_difficulty(rating) -> str:
    """Bucket a Codeforces problem rating into easy / medium / hard."""
    if rating is None:
        return "medium"
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        return "medium"
    if rating <= 1200:
        return "easy"
    if rating <= 1800:
        return "medium"
    return "hard"


def lc_difficulty(val) -> str:
    v = str(val or "").strip().lower()
    return v if v in LC_DIFFICULTIES else "medium"


def _normalize_tags(tags) -> List[str]:
    out = []
    for t in tags or []:
        name = t.get("name", "") if isinstance(t, dict) else t
        name = str(name).strip().lower()
        if name and name not in out:
            out.append(name)
    return out


def _from_epoch(seconds) -> datetime:
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


def normalize_cf_submission(sub: dict) -> Optional[SubmissionRecord]:
    """
    Convert one Codeforces `user.status` entry. Returns None for submissions
    that are still being judged or that have no problem reference.
    """
    verdict = sub.get("verdict")
    if not verdict or verdict == "TESTING":
        return None

    problem = sub.get("problem") or {}
    contest_id = problem.get("contestId")
    index = problem.get("index")
    if not contest_id or not index:
        return None

    external_id = f"{contest_id}-{index}"
    rating = problem.get("rating")
    return SubmissionRecord(
        platform="codeforces",
        problem_id=f"codeforces-{external_id}",
        verdict=verdict,
        timestamp=_from_epoch(sub.get("creationTimeSeconds", 0)),
        difficulty=cf_difficulty(rating),
        tags=_normalize_tags(problem.get("tags")),
        name=problem.get("name", external_id),
        external_id=external_id,
        rating=rating,
        language=sub.get("programmingLanguage"),
        url=f"https://codeforces.com/contest/{contest_id}/problem/{index}",
    )


def normalize_cf_contest(entry: dict) -> ContestRecord:
    return ContestRecord(
        platform="codeforces",
        contest_id=str(entry.get("contestId")),
        timestamp=_from_epoch(entry.get("ratingUpdateTimeSeconds", 0)),
        rank=entry.get("rank"),
        old_rating=entry.get("oldRating"),
        new_rating=entry.get("newRating"),
        name=entry.get("contestName"),
    )


def normalize_lc_submission(sub: dict, question: Optional[dict] = None) -> Optional[SubmissionRecord]:
    """
    Convert one LeetCode `recentSubmissionList` entry. `question` carries the
    difficulty and topic tags looked up separately by slug.
    """
    slug = sub.get("titleSlug")
    if not slug or not sub.get("statusDisplay"):
        return None

    question = question or {}
    return SubmissionRecord(
        platform="leetcode",
        problem_id=f"leetcode-{slug}",
        verdict=sub["statusDisplay"],
        timestamp=_from_epoch(sub.get("timestamp", 0)),
        difficulty=lc_difficulty(question.get("difficulty")),
        tags=_normalize_tags(question.get("topicTags")),
        name=sub.get("title") or slug,
        external_id=slug,
        language=sub.get("lang"),
        url=f"https://leetcode.com/problems/{slug}/",
    )


def normalize_lc_contests(history: List[dict]) -> List[ContestRecord]:
    """
    Attended LeetCode contests in chronological order. LeetCode only reports
    the rating after each contest, so the old rating is the previous one.
    """
    attended = [h for h in history or [] if h and h.get("attended")]
    attended.sort(key=lambda h: (h.get("contest") or {}).get("startTime", 0))

    records = []
    previous = None
    for h in attended:
        contest = h.get("contest") or {}
        rating = h.get("rating")
        new_rating = int(round(rating)) if rating is not None else None
        records.append(ContestRecord(
            platform="leetcode",
            contest_id=str(contest.get("title", "")),
            timestamp=_from_epoch(contest.get("startTime", 0)),
            rank=h.get("ranking"),
            old_rating=previous,
            new_rating=new_rating,
            name=contest.get("title"),
        ))
        previous = new_rating
    return records


def parse_submission_calendar(raw) -> Dict[date, int]:
    """
    LeetCode's submissionCalendar is a JSON string mapping epoch seconds
    (UTC midnight) to a submission count. Returns {date: count}.
    """
    if not raw:
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw)

    calendar: Dict[date, int] = {}
    for ts, count in raw.items():
        day = _from_epoch(ts).date()
        calendar[day] = calendar.get(day, 0) + int(count)
    return calendar


def lc_solved_stats(ac_submission_num: List[dict]) -> Dict[str, int]:
    """Map LeetCode's acSubmissionNum list into {"easy", "medium", "hard", "total"}."""
    diff_map = {d: 0 for d in LC_DIFFICULTIES}
    total = None
    for stat in ac_submission_num or []:
        diff = str(stat.get("difficulty", "")).lower()
        count = int(stat.get("count", 0))
        if diff in diff_map:
            diff_map[diff] = count
        elif diff == "all":
            total = count
    diff_map["total"] = total if total is not None else sum(diff_map.values())
    return diff_map
