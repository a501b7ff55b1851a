from typing import Any

ACCEPTED_VERDICT = "OK"
NO_CONTEST_MARKER = "GYM"
RATING_NOT_AVAILABLE = "N/A"


def is_accepted(submission: dict[str, Any]) -> bool:
    return submission.get("verdict") == ACCEPTED_VERDICT


def problem_key(problem: dict[str, Any]) -> tuple[str, str, str]:
    """
    Identity of a problem: (contestId or "GYM", index or "?", name or "").

    Problems without a contest id (problemset-only or gym entries) still get
    a stable key; the name keeps them apart.
    """
    contest_id = problem.get("contestId")
    index = problem.get("index")
    name = problem.get("name")
    return (
        str(contest_id) if contest_id is not None else NO_CONTEST_MARKER,
        str(index) if index is not None else "?",
        name or "",
    )


def rating_bucket(rating: int | None) -> int | None:
    if not rating:
        return None
    return (int(rating) // 100) * 100


def count_solved(submissions: list[dict[str, Any]]) -> int:
    solved = set()
    for sub in submissions:
        if is_accepted(sub):
            solved.add(problem_key(sub.get("problem") or {}))
    return len(solved)
