"""Process-local geocode cache in front of the persistent store."""

import time
from collections.abc import Callable

from cachetools import TTLCache

from geocode_api.lib.geocoder.base import GeocodingResult

DEFAULT_MAXSIZE = 10_000
DEFAULT_TTL = 60 * 60 * 24


class MemoryGeocodeCache:
    """Bounded LRU cache with per-entry expiry, keyed by address hash.

    One instance is created at process start and owned by the resolver; it is
    never reset implicitly. Least recently used entries are evicted once
    ``maxsize`` is reached and every entry expires ``ttl`` seconds after it was
    stored.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        ttl: float = DEFAULT_TTL,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache[str, GeocodingResult] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._hits = 0
        self._misses = 0

    def get(self, address_hash: str) -> GeocodingResult | None:
        result = self._cache.get(address_hash)
        if result is None:
            self._misses += 1
        else:
            self._hits += 1
        return result

    def set(self, address_hash: str, result: GeocodingResult) -> None:
        self._cache[address_hash] = result

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def stats(self) -> dict[str, float | int]:
        """Return hit/miss counters and current occupancy."""
        return {
            "hits": self._hits,
            "misses": self._misses,
            "keys": self._cache.currsize,
            "maxsize": self._cache.maxsize,
            "ttl": self._cache.ttl,
        }
