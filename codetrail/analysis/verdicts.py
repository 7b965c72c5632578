# analysis/verdicts.py
"""
Each judge reports acceptance differently: LeetCode says "Accepted" (or "AC"
in older payloads), Codeforces says "OK". Everything in the scoring engine
goes through `is_accepted` before treating a submission as solved.
"""

from typing import Iterable, List

from codetrail.preprocess.records import SubmissionRecord

ACCEPTED_VERDICTS = {
    "leetcode": frozenset({"AC", "Accepted"}),
    "codeforces": frozenset({"OK"}),
}
DEFAULT_ACCEPTED = frozenset({"AC", "OK", "Accepted"})


def is_accepted(platform: str, verdict: str) -> bool:
    accepted = ACCEPTED_VERDICTS.get((platform or "").lower(), DEFAULT_ACCEPTED)
    return verdict in accepted


def solved_submissions(submissions: Iterable[SubmissionRecord]) -> List[SubmissionRecord]:
    return [s for s in submissions if is_accepted(s.platform, s.verdict)]
