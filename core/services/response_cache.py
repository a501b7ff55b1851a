import logging
import threading
import weakref
from typing import Any, Callable

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

_MISSING = object()


class _Flight:
    def __init__(self):
        self.lock = threading.Lock()


class ResponseCache:
    """
    TTL cache for Codeforces responses, stored in a Django cache backend.

    Keys live under `<prefix>:<namespace>:<key>` and every namespace has its
    own timeout. There is no invalidation; entries simply expire.
    """

    def __init__(
        self,
        alias: str = "default",
        ttls: dict[str, int] | None = None,
        default_ttl: int | None = None,
        prefix: str = "cf",
    ):
        self.alias = alias
        self.prefix = prefix
        if ttls is None:
            ttls = getattr(settings, "CF_CACHE_TTLS", {})
        self.ttls = dict(ttls)
        if default_ttl is None:
            default_ttl = getattr(settings, "CF_CACHE_DEFAULT_TTL", 600)
        self.default_ttl = int(default_ttl)
        self._flights: "weakref.WeakValueDictionary[str, _Flight]" = weakref.WeakValueDictionary()
        self._flights_lock = threading.Lock()

    @property
    def backend(self):
        return caches[self.alias]

    def make_key(self, namespace: str, key: str) -> str:
        return f"{self.prefix}:{namespace}:{key}"

    def ttl_for(self, namespace: str) -> int:
        return int(self.ttls.get(namespace, self.default_ttl))

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        value = self.backend.get(self.make_key(namespace, key), _MISSING)
        if value is _MISSING:
            return default
        return value

    def set(self, namespace: str, key: str, value: Any) -> None:
        self.backend.set(self.make_key(namespace, key), value, timeout=self.ttl_for(namespace))

    def _flight_for(self, full_key: str) -> _Flight:
        with self._flights_lock:
            flight = self._flights.get(full_key)
            if flight is None:
                flight = _Flight()
                self._flights[full_key] = flight
            return flight

    def get_or_fetch(self, namespace: str, key: str, fetch: Callable[[], Any]) -> Any:
        """
        Return the cached value or call `fetch()` and store its result.

        Concurrent misses for the same key in this process wait for the first
        caller's fetch instead of issuing their own. Exceptions from `fetch`
        propagate and nothing is stored.
        """
        full_key = self.make_key(namespace, key)
        value = self.get(namespace, key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", full_key)
            return value

        flight = self._flight_for(full_key)
        with flight.lock:
            value = self.get(namespace, key, _MISSING)
            if value is not _MISSING:
                logger.debug("Cache hit after wait: %s", full_key)
                return value

            logger.debug("Cache miss: %s", full_key)
            value = fetch()
            self.set(namespace, key, value)
            return value
