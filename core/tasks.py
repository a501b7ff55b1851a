import logging
import time

from celery import shared_task
from django.conf import settings
import redis

from core.exceptions import CodeforcesError
from core.models import Team
from core.services.api_client import get_default_client

logger = logging.getLogger(__name__)

_redis_client = None


def _get_redis_client():
    global _redis_client
    if _redis_client is None:
        url = getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        _redis_client = redis.Redis.from_url(url)
    return _redis_client


def _acquire_lock(lock_key: str, ttl_seconds: int = 600) -> bool:
    try:
        client = _get_redis_client()
        return bool(client.set(lock_key, str(time.time()), nx=True, ex=ttl_seconds))
    except redis.RedisError:
        logger.exception("Lock failure for %s; continuing without lock.", lock_key)
        return True


@shared_task
def warm_team_summaries(team_id) -> dict:
    """Fetch every member summary so leaderboard requests are served from cache."""
    started = time.monotonic()
    try:
        team = Team.objects.get(pk=team_id)
    except Team.DoesNotExist:
        return {"status": "missing", "team_id": team_id}

    lock_key = f"warm_team_summaries:{team_id}"
    if not _acquire_lock(lock_key, ttl_seconds=10 * 60):
        return {"status": "locked", "team_id": team_id}

    client = get_default_client()
    warmed = 0
    failed = []
    for handle in team.members:
        try:
            client.get_user_summary(handle)
            warmed += 1
        except CodeforcesError as exc:
            logger.warning("Warm-up for team %s: %s failed: %s", team_id, handle, exc.message)
            failed.append(handle)

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "warm_team_summaries team=%s warmed=%d failed=%d duration_ms=%d",
        team_id,
        warmed,
        len(failed),
        duration_ms,
    )
    return {"status": "ok", "team_id": team_id, "warmed": warmed, "failed": failed}


@shared_task
def warm_all_team_summaries():
    if not getattr(settings, "SHARED_CACHE", False):
        logger.info("Skipping team warm-up: the cache is not shared with the web process.")
        return "Skipped warm-up: cache is not shared."

    team_ids = list(Team.objects.values_list("id", flat=True))
    for team_id in team_ids:
        warm_team_summaries.delay(team_id)

    return f"Queued warm-up for {len(team_ids)} teams."
