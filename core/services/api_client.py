import logging
import threading
import time
from typing import Any

import requests
from django.conf import settings

from core.exceptions import ExternalApiError, UserNotFoundError
from core.services.problems import count_solved
from core.services.rate_limiter import RateLimiter, build_default_limiter
from core.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)


def _error_status(response) -> int:
    status = getattr(response, "status_code", None) or 500
    return status if status >= 400 else 500


def _cache_key(handle: str) -> str:
    return handle.strip().lower()


class CodeforcesClient:
    """
    Read-only client for the Codeforces API.

    Every outbound call passes through one RateLimiter; responses are kept in
    a ResponseCache so repeated lookups within the TTL never reach the gate.
    """

    def __init__(
        self,
        base_url: str | None = None,
        limiter: RateLimiter | None = None,
        cache: ResponseCache | None = None,
        timeout: int | None = None,
    ):
        self.base_url = (base_url or getattr(settings, "CF_API_BASE_URL", "https://codeforces.com/api")).rstrip("/")
        if limiter is None:
            limiter = build_default_limiter()
        self.limiter = limiter
        self.cache = cache if cache is not None else ResponseCache()
        self.timeout = timeout if timeout is not None else getattr(settings, "CF_TIMEOUT_SECONDS", 10)

    def _request(self, method: str, params: dict[str, Any]) -> Any:
        self.limiter.wait()
        url = f"{self.base_url}/{method}"
        started = time.monotonic()
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Codeforces %s failed for %s: %s", method, params, exc)
            raise ExternalApiError(f"Codeforces request failed: {exc}") from exc

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("Codeforces %s %s -> %s (%sms)", method, params, response.status_code, duration_ms)

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalApiError(
                "Codeforces returned an invalid response",
                status_code=_error_status(response),
            ) from exc

        if not isinstance(data, dict) or data.get("status") != "OK":
            comment = str(data.get("comment") or "") if isinstance(data, dict) else ""
            logger.warning("Codeforces API error on %s %s: %s", method, params, comment)
            if "not found" in comment.lower():
                raise UserNotFoundError()
            raise ExternalApiError(comment or "External API error", status_code=_error_status(response))

        return data.get("result")

    def get_user_info(self, handle: str) -> dict[str, Any]:
        def _fetch():
            result = self._request("user.info", {"handles": handle.strip()})
            if not result:
                raise UserNotFoundError()
            return result[0]

        return self.cache.get_or_fetch("user_info", _cache_key(handle), _fetch)

    def get_user_status(self, handle: str) -> list[dict[str, Any]]:
        def _fetch():
            return self._request("user.status", {"handle": handle.strip()}) or []

        return self.cache.get_or_fetch("user_status", _cache_key(handle), _fetch)

    def get_user_rating(self, handle: str) -> list[dict[str, Any]]:
        def _fetch():
            return self._request("user.rating", {"handle": handle.strip()}) or []

        return self.cache.get_or_fetch("user_rating", _cache_key(handle), _fetch)

    def get_user_summary(self, handle: str) -> dict[str, Any]:
        """Light view of a user for leaderboards: info fields plus solved count."""

        def _fetch():
            info = self.get_user_info(handle)
            submissions = self.get_user_status(handle)
            return {
                "username": info.get("handle") or handle,
                "rating": info.get("rating") or 0,
                "maxRating": info.get("maxRating") or 0,
                "rank": info.get("rank") or "Unrated",
                "maxRank": info.get("maxRank") or "Unrated",
                "country": info.get("country") or "Unknown",
                "organization": info.get("organization") or "Unknown",
                "solvedCount": count_solved(submissions),
                "avatar": info.get("titlePhoto") or info.get("avatar") or "",
                "contribution": info.get("contribution") or 0,
            }

        return self.cache.get_or_fetch("user_summary", _cache_key(handle), _fetch)


_default_client: CodeforcesClient | None = None
_default_client_lock = threading.Lock()


def get_default_client() -> CodeforcesClient:
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = CodeforcesClient()
        return _default_client
