import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from core.exceptions import ValidationError
from core.services.api_client import CodeforcesClient, get_default_client
from core.services.problems import problem_key
from core.services.profile import build_full_profile

HANDLE_RE = re.compile(r"[A-Za-z0-9_-]+")


def sanitize_handle(raw) -> str | None:
    if raw is None:
        return None
    cleaned = str(raw).strip()
    return cleaned or None


def is_valid_handle(handle: str) -> bool:
    return bool(HANDLE_RE.fullmatch(handle))


def validate_handles(user1, user2) -> tuple[str, str]:
    user1 = sanitize_handle(user1)
    user2 = sanitize_handle(user2)
    if not user1 or not user2:
        raise ValidationError('Both "user1" and "user2" must be provided in JSON body.')

    bad = [
        {"field": field, "value": value}
        for field, value in (("user1", user1), ("user2", user2))
        if not is_valid_handle(value)
    ]
    if bad:
        raise ValidationError(
            "Handles may contain only Latin letters, digits, underscore (_), or dash (-).",
            details=bad,
        )
    return user1, user2


def _summary(profile: dict[str, Any]) -> dict[str, Any]:
    return {
        "username": profile.get("username"),
        "rating": profile.get("rating"),
        "maxRating": profile.get("maxRating"),
        "rank": profile.get("rank"),
        "solvedCount": profile.get("solvedCount"),
    }


def split_problems(solved1: list[dict], solved2: list[dict]) -> dict[str, list[dict]]:
    keys1 = {problem_key(p) for p in solved1}
    keys2 = {problem_key(p) for p in solved2}

    common, unique1 = [], []
    for problem in solved1:
        (common if problem_key(problem) in keys2 else unique1).append(problem)
    unique2 = [p for p in solved2 if problem_key(p) not in keys1]

    return {"commonProblems": common, "user1Unique": unique1, "user2Unique": unique2}


def compare_tags(tags1: dict[str, int], tags2: dict[str, int]) -> list[dict[str, Any]]:
    rows = [
        {"tag": tag, "user1": tags1.get(tag, 0), "user2": tags2.get(tag, 0)}
        for tag in set(tags1) | set(tags2)
    ]
    rows.sort(key=lambda row: (-(row["user1"] + row["user2"]), row["tag"]))
    return rows


def compare_profiles(user1, user2, client: CodeforcesClient | None = None) -> dict[str, Any]:
    user1, user2 = validate_handles(user1, user2)
    client = client or get_default_client()

    with ThreadPoolExecutor(max_workers=2) as pool:
        future1 = pool.submit(build_full_profile, user1, client)
        future2 = pool.submit(build_full_profile, user2, client)
        p1 = future1.result()
        p2 = future2.result()

    comparison = split_problems(p1.get("solvedProblems") or [], p2.get("solvedProblems") or [])
    comparison["tagDistributionComparison"] = compare_tags(
        p1.get("problemsByTag") or {},
        p2.get("problemsByTag") or {},
    )
    comparison["ratingComparison"] = {
        "user1": p1.get("rating") or 0,
        "user2": p2.get("rating") or 0,
        "maxUser1": p1.get("maxRating") or 0,
        "maxUser2": p2.get("maxRating") or 0,
    }

    return {
        "user1": _summary(p1),
        "user2": _summary(p2),
        "comparison": comparison,
    }
