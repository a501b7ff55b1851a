import logging
import threading
import time

import redis
from django.conf import settings

logger = logging.getLogger(__name__)


class RedisIntervalStamp:
    """
    Cross-process half of the gate.

    A call may start once it manages to `SET key NX PX <interval>`; everyone
    else waits out the key's remaining TTL and tries again. Redis failures
    fall back to the in-process gate only.
    """

    def __init__(self, client, key: str = "cf:rate_limit", sleep=time.sleep):
        self.client = client
        self.key = key
        self._sleep = sleep

    def wait(self, min_interval: float) -> float:
        interval_ms = int(min_interval * 1000)
        if interval_ms <= 0:
            return 0.0

        waited = 0.0
        try:
            while not self.client.set(self.key, str(time.time()), nx=True, px=interval_ms):
                ttl_ms = self.client.pttl(self.key)
                if ttl_ms == -1:
                    # Stamp has no expiry; bound it to one interval.
                    self.client.pexpire(self.key, interval_ms)
                    continue
                if ttl_ms <= 0:
                    continue
                delay = ttl_ms / 1000
                self._sleep(delay)
                waited += delay
        except redis.RedisError:
            logger.exception("Shared rate limit unavailable on %s; using the local gate only.", self.key)
        return waited


class RateLimiter:
    """
    Single global gate: two calls never leave `wait()` closer than `min_interval`.

    The caller that has to sleep keeps the lock while sleeping, so waiting
    callers are released one interval apart in the order they arrived. With
    a `shared` stamp the interval also holds across processes.
    """

    def __init__(self, min_interval: float, clock=time.monotonic, sleep=time.sleep, shared=None):
        self.min_interval = max(0.0, float(min_interval))
        self._clock = clock
        self._sleep = sleep
        self._shared = shared
        self._lock = threading.Lock()
        self._last_call: float | None = None

    @property
    def last_call(self) -> float | None:
        return self._last_call

    def wait(self) -> float:
        """Block until the next call may start; returns the seconds waited."""
        with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self._last_call + self.min_interval - self._clock()
                if remaining > 0:
                    logger.debug("Rate limit: waiting %.3fs before next Codeforces call.", remaining)
                    self._sleep(remaining)
                    waited = remaining
            if self._shared is not None:
                waited += self._shared.wait(self.min_interval)
            self._last_call = self._clock()
            return waited


def build_default_limiter() -> RateLimiter:
    interval = getattr(settings, "CF_MIN_CALL_INTERVAL_SECONDS", 2.0)
    shared = None
    if getattr(settings, "CF_SHARED_RATE_LIMIT", False):
        url = getattr(settings, "CF_RATE_LIMIT_REDIS_URL", "redis://localhost:6379/0")
        shared = RedisIntervalStamp(
            redis.Redis.from_url(url),
            key=getattr(settings, "CF_RATE_LIMIT_KEY", "cf:rate_limit"),
        )
    return RateLimiter(interval, shared=shared)
