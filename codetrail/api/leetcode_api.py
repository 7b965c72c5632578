# api/leetcode_api.py

import logging

import requests
from requests.exceptions import RequestException, ConnectionError, Timeout

from codetrail.core.config import settings
from codetrail.core.exceptions import PlatformAPIError
from codetrail.preprocess.normalize import parse_submission_calendar

logger = logging.getLogger(__name__)

PROFILE_QUERY = """
query getUserProfile($username: String!) {
  matchedUser(username: $username) {
    username
    profile {
      ranking
      reputation
    }
    submissionCalendar
    submitStats: submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
}
"""

RECENT_SUBMISSIONS_QUERY = """
query recentSubmissions($username: String!, $limit: Int!) {
  recentSubmissionList(username: $username, limit: $limit) {
    title
    titleSlug
    timestamp
    statusDisplay
    lang
  }
}
"""

QUESTION_QUERY = """
query selectProblem($titleSlug: String!) {
  question(titleSlug: $titleSlug) {
    titleSlug
    title
    difficulty
    topicTags {
      name
      slug
    }
  }
}
"""

CONTEST_RANKING_QUERY = """
query userContestRankingInfo($username: String!) {
  userContestRanking(username: $username) {
    attendedContestsCount
    rating
    globalRanking
    topPercentage
    badge {
      name
    }
  }
  userContestRankingHistory(username: $username) {
    attended
    rating
    ranking
    problemsSolved
    totalProblems
    contest {
      title
      startTime
    }
  }
}
"""

CALENDAR_QUERY = """
query userCalendar($username: String!) {
  matchedUser(username: $username) {
    submissionCalendar
  }
}
"""

SKILL_STATS_QUERY = """
query skillStats($username: String!) {
  matchedUser(username: $username) {
    tagProblemCounts {
      advanced { tagName tagSlug problemsSolved }
      intermediate { tagName tagSlug problemsSolved }
      fundamental { tagName tagSlug problemsSolved }
    }
  }
}
"""


def _post_graphql(query, variables):
    """Run one GraphQL query and return its `data` object."""
    try:
        response = requests.post(
            settings.LEETCODE_GRAPHQL_URL,
            json={"query": query, "variables": variables},
            timeout=settings.HTTP_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except ConnectionError as e:
        raise PlatformAPIError("leetcode", f"cannot connect: {e}") from e
    except Timeout as e:
        raise PlatformAPIError("leetcode", "request timed out") from e
    except RequestException as e:
        raise PlatformAPIError("leetcode", str(e)) from e
    except ValueError as e:
        raise PlatformAPIError("leetcode", "invalid JSON response") from e

    if data.get("errors"):
        message = data["errors"][0].get("message", "Unknown error")
        raise PlatformAPIError("leetcode", message)

    return data.get("data") or {}


def fetch_leetcode_profile(username):
    """
    Fetch the public profile (ranking, solved stats, submission calendar).
    Returns None when the user does not exist; raises PlatformAPIError on
    transport failures so handle validation can tell the two apart.
    """
    try:
        data = _post_graphql(PROFILE_QUERY, {"username": username})
    except PlatformAPIError as e:
        # LeetCode reports unknown users as a GraphQL error
        if "does not exist" in str(e).lower():
            return None
        raise
    return data.get("matchedUser")


def fetch_leetcode_recent_submissions(username, limit=20):
    try:
        submissions = _post_graphql(
            RECENT_SUBMISSIONS_QUERY, {"username": username, "limit": limit}
        ).get("recentSubmissionList")
    except PlatformAPIError as e:
        logger.warning("⚠️  Could not fetch LeetCode submissions for %s: %s", username, e)
        return []

    if submissions is None:
        logger.warning("⚠️  LeetCode user '%s' not found or has no submissions", username)
        return []
    return submissions


def fetch_leetcode_question(title_slug):
    """Difficulty and topic tags for one problem, or None."""
    try:
        return _post_graphql(QUESTION_QUERY, {"titleSlug": title_slug}).get("question")
    except PlatformAPIError as e:
        logger.warning("⚠️  Could not fetch LeetCode question %s: %s", title_slug, e)
        return None


def fetch_leetcode_contest_ranking(username):
    """
    Returns {"ranking": {...} | None, "history": [...]}; empty on failure.
    """
    try:
        data = _post_graphql(CONTEST_RANKING_QUERY, {"username": username})
    except PlatformAPIError as e:
        logger.warning("⚠️  Could not fetch LeetCode contests for %s: %s", username, e)
        return {"ranking": None, "history": []}

    return {
        "ranking": data.get("userContestRanking"),
        "history": data.get("userContestRankingHistory") or [],
    }


def fetch_leetcode_calendar(username):
    """
    Per-day submission counts {date: count}. Raises PlatformAPIError when the
    calendar cannot be fetched; callers decide how to degrade.
    """
    user = _post_graphql(CALENDAR_QUERY, {"username": username}).get("matchedUser")
    if not user:
        raise PlatformAPIError("leetcode", f"user '{username}' not found")
    try:
        return parse_submission_calendar(user.get("submissionCalendar"))
    except (ValueError, TypeError, AttributeError) as e:
        raise PlatformAPIError("leetcode", "invalid submission calendar") from e


def fetch_leetcode_skill_stats(username):
    """Solved counts per topic tag: [{"tagName", "tagSlug", "problemsSolved", "category"}]."""
    try:
        user = _post_graphql(SKILL_STATS_QUERY, {"username": username}).get("matchedUser")
    except PlatformAPIError as e:
        logger.warning("⚠️  Could not fetch LeetCode skill stats for %s: %s", username, e)
        return []

    counts = (user or {}).get("tagProblemCounts") or {}
    skills = []
    for category in ("fundamental", "intermediate", "advanced"):
        for tag in counts.get(category) or []:
            skills.append({**tag, "category": category})
    return skills
