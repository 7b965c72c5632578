import pytest

from codetrail.analysis.verdicts import is_accepted, solved_submissions
from factories import sub


@pytest.mark.parametrize("platform, verdict, expected", [
    ("leetcode", "Accepted", True),
    ("leetcode", "AC", True),
    ("leetcode", "OK", False),
    ("leetcode", "Wrong Answer", False),
    ("codeforces", "OK", True),
    ("codeforces", "Accepted", False),
    ("codeforces", "WRONG_ANSWER", False),
    ("atcoder", "AC", True),
    ("atcoder", "OK", True),
    ("atcoder", "WA", False),
])
def test_is_accepted(platform, verdict, expected):
    assert is_accepted(platform, verdict) is expected


def test_is_accepted_platform_case_insensitive():
    assert is_accepted("LeetCode", "Accepted")


def test_solved_submissions_filters_by_platform_rules():
    subs = [
        sub(1, verdict="OK"),
        sub(2, verdict="WRONG_ANSWER"),
        sub("two-sum", verdict="Accepted", platform="leetcode"),
        sub("3sum", verdict="OK", platform="leetcode"),
    ]
    assert [s.problem_id for s in solved_submissions(subs)] == ["codeforces-1", "leetcode-two-sum"]
