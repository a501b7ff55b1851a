import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from django.conf import settings

from core.exceptions import CodeforcesError, ValidationError
from core.services.api_client import CodeforcesClient, get_default_client
from core.services.problems import RATING_NOT_AVAILABLE, is_accepted, problem_key, rating_bucket

logger = logging.getLogger(__name__)

VERDICT_STATS_KEYS = {
    "OK": "accepted",
    "WRONG_ANSWER": "wrongAnswer",
    "TIME_LIMIT_EXCEEDED": "timeLimitExceeded",
    "RUNTIME_ERROR": "runtimeError",
    "COMPILATION_ERROR": "compilationError",
}

DEFAULT_SOLVED_PAGE_SIZE = 50
MAX_SOLVED_PAGE_SIZE = 1000


def _require_handle(handle: str | None) -> str:
    cleaned = (handle or "").strip()
    if not cleaned:
        raise ValidationError("Username is required")
    return cleaned


def process_solved_problems(submissions: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Deduplicate accepted submissions by problem identity.

    The first accepted submission met in input order represents the solve;
    tag and rating histograms count each distinct problem once.
    """
    solved: dict[tuple[str, str, str], dict[str, Any]] = {}
    problems_by_tag: dict[str, int] = {}
    problems_by_rating: dict[int, int] = {}

    for sub in submissions:
        if not is_accepted(sub):
            continue
        problem = sub.get("problem") or {}
        key = problem_key(problem)
        if key in solved:
            continue

        tags = list(problem.get("tags") or [])
        solved[key] = {
            "contestId": problem.get("contestId"),
            "index": problem.get("index"),
            "name": problem.get("name"),
            "rating": problem.get("rating") or RATING_NOT_AVAILABLE,
            "tags": tags,
            "solvedAt": sub.get("creationTimeSeconds"),
        }

        for tag in dict.fromkeys(tags):
            problems_by_tag[tag] = problems_by_tag.get(tag, 0) + 1

        bucket = rating_bucket(problem.get("rating"))
        if bucket is not None:
            problems_by_rating[bucket] = problems_by_rating.get(bucket, 0) + 1

    return {
        "solvedProblems": list(solved.values()),
        "problemsByTag": problems_by_tag,
        "problemsByRating": problems_by_rating,
    }


def generate_heatmap(submissions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for sub in submissions:
        if not is_accepted(sub):
            continue
        created = sub.get("creationTimeSeconds")
        if created is None:
            continue
        day = datetime.fromtimestamp(created, tz=timezone.utc).date().isoformat()
        counts[day] = counts.get(day, 0) + 1
    return [{"date": day, "count": counts[day]} for day in sorted(counts)]


def calculate_submission_stats(submissions: list[dict[str, Any]]) -> dict[str, int]:
    stats = {
        "total": len(submissions),
        "accepted": 0,
        "wrongAnswer": 0,
        "timeLimitExceeded": 0,
        "runtimeError": 0,
        "compilationError": 0,
        "other": 0,
    }
    for sub in submissions:
        stats[VERDICT_STATS_KEYS.get(sub.get("verdict"), "other")] += 1
    return stats


def _rating_history(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "contestId": entry.get("contestId"),
            "contestName": entry.get("contestName"),
            "rank": entry.get("rank"),
            "ratingUpdateTimeSeconds": entry.get("ratingUpdateTimeSeconds"),
            "oldRating": entry.get("oldRating"),
            "newRating": entry.get("newRating"),
        }
        for entry in entries
    ]


def build_user_info(info: dict[str, Any]) -> dict[str, Any]:
    return {
        "username": info.get("handle"),
        "rating": info.get("rating") or 0,
        "maxRating": info.get("maxRating") or 0,
        "rank": info.get("rank") or "Unrated",
        "maxRank": info.get("maxRank") or "Unrated",
        "country": info.get("country") or "Unknown",
        "organization": info.get("organization") or "N/A",
        "avatar": info.get("avatar") or info.get("titlePhoto"),
        "friendOfCount": info.get("friendOfCount") or 0,
        "contribution": info.get("contribution") or 0,
        "registrationTimeSeconds": info.get("registrationTimeSeconds"),
    }


def _fetch_rating_best_effort(client: CodeforcesClient, handle: str) -> list[dict[str, Any]]:
    try:
        return client.get_user_rating(handle)
    except CodeforcesError as exc:
        logger.info("No rating history for %s (%s); using empty history.", handle, exc.message)
        return []


def fetch_user_data(handle: str, client: CodeforcesClient | None = None):
    """Fetch info, submissions and rating history for `handle` in parallel."""
    client = client or get_default_client()
    with ThreadPoolExecutor(max_workers=3) as pool:
        info_future = pool.submit(client.get_user_info, handle)
        status_future = pool.submit(client.get_user_status, handle)
        rating_future = pool.submit(_fetch_rating_best_effort, client, handle)
        info = info_future.result()
        submissions = status_future.result()
        rating = rating_future.result()
    return info, submissions, rating


def build_full_profile(handle: str, client: CodeforcesClient | None = None) -> dict[str, Any]:
    """
    Profile with the complete solved list (no truncation).

    Used by the comparison and pagination paths, which need every solve.
    """
    handle = _require_handle(handle)
    info, submissions, rating = fetch_user_data(handle, client=client)

    solved = process_solved_problems(submissions)
    profile = build_user_info(info)
    profile.update({
        "solvedCount": len(solved["solvedProblems"]),
        "submissionStats": calculate_submission_stats(submissions),
        "problemsByTag": solved["problemsByTag"],
        "problemsByRating": solved["problemsByRating"],
        "ratingHistory": _rating_history(rating),
        "heatmapData": generate_heatmap(submissions),
        "solvedProblems": solved["solvedProblems"],
    })
    return profile


def get_user_profile(handle: str, client: CodeforcesClient | None = None) -> dict[str, Any]:
    profile = build_full_profile(handle, client=client)
    limit = getattr(settings, "CF_SOLVED_PROBLEMS_LIMIT", 100)
    profile["solvedProblems"] = profile["solvedProblems"][:limit]
    return profile


def get_user_info(handle: str, client: CodeforcesClient | None = None) -> dict[str, Any]:
    handle = _require_handle(handle)
    client = client or get_default_client()
    return build_user_info(client.get_user_info(handle))


def _parse_non_negative_int(raw, field: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f'"{field}" must be an integer', details=[{"field": field, "value": raw}])
    if value < 0:
        raise ValidationError(f'"{field}" must not be negative', details=[{"field": field, "value": raw}])
    return value


def get_solved_problems(
    handle: str,
    limit=None,
    offset=None,
    client: CodeforcesClient | None = None,
) -> dict[str, Any]:
    limit = _parse_non_negative_int(limit, "limit", DEFAULT_SOLVED_PAGE_SIZE)
    offset = _parse_non_negative_int(offset, "offset", 0)
    if limit == 0 or limit > MAX_SOLVED_PAGE_SIZE:
        raise ValidationError(
            f'"limit" must be between 1 and {MAX_SOLVED_PAGE_SIZE}',
            details=[{"field": "limit", "value": limit}],
        )

    handle = _require_handle(handle)
    client = client or get_default_client()
    solved = process_solved_problems(client.get_user_status(handle))["solvedProblems"]
    return {
        "total": len(solved),
        "limit": limit,
        "offset": offset,
        "problems": solved[offset:offset + limit],
    }
