"""Rate-limited provider client with fallback coordinates.

Outbound provider calls are spaced by a minimum interval and bounded by a
timeout. Every provider failure is converted into a fallback result so a
single bad address or a provider outage never aborts a batch.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from loguru import logger

from geocode_api.lib.geocoder.base import BaseGeocoder, GeocodingProviderError, GeocodingResult

DEFAULT_MIN_INTERVAL = 0.1
DEFAULT_TIMEOUT = 30.0

# Montreal city centre
DEFAULT_FALLBACK_LATITUDE = 45.5017
DEFAULT_FALLBACK_LONGITUDE = -73.5673


class RateLimitedGeocoder:
    """Wraps a provider with request spacing, a per-call timeout, and fallback.

    Args:
        geocoder: The provider performing the actual lookups.
        min_interval: Minimum seconds between the start of two provider calls.
        timeout: Upper bound in seconds for one provider call.
        fallback_latitude: Latitude returned when the provider fails.
        fallback_longitude: Longitude returned when the provider fails.
        clock: Monotonic clock, injectable for tests.
        sleep: Async sleep, injectable for tests.
    """

    def __init__(
        self,
        geocoder: BaseGeocoder,
        *,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        fallback_latitude: float = DEFAULT_FALLBACK_LATITUDE,
        fallback_longitude: float = DEFAULT_FALLBACK_LONGITUDE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._geocoder = geocoder
        self._min_interval = min_interval
        self._timeout = timeout
        self._fallback = GeocodingResult(
            latitude=fallback_latitude,
            longitude=fallback_longitude,
            fallback=True,
        )
        self._clock = clock
        self._sleep = sleep
        # asyncio.Lock wakes waiters in FIFO order, which makes it the request queue
        self._lock = asyncio.Lock()
        self._last_call: float | None = None
        self._waiting = 0
        self._in_flight = 0

    @property
    def provider_name(self) -> str:
        return self._geocoder.provider_name

    def fallback_result(self) -> GeocodingResult:
        """Return a fresh copy of the fallback coordinate."""
        return GeocodingResult(
            latitude=self._fallback.latitude,
            longitude=self._fallback.longitude,
            fallback=True,
        )

    async def resolve(self, address: str) -> GeocodingResult:
        """Resolve an address, never raising for provider problems.

        Args:
            address: Normalized address string.

        Returns:
            The provider's result, or the fallback result (``fallback=True``)
            when the provider is unconfigured, errors, times out, or finds no match.
        """
        if not self._geocoder.is_configured:
            logger.warning(f"{self.provider_name} geocoder not configured, using fallback coordinates")
            return self.fallback_result()

        await self._wait_for_slot()

        self._in_flight += 1
        try:
            result = await asyncio.wait_for(self._geocoder.geocode(address), timeout=self._timeout)
        except TimeoutError:
            logger.warning(f"{self.provider_name} geocoder call exceeded {self._timeout}s, using fallback")
            return self.fallback_result()
        except GeocodingProviderError as e:
            logger.warning(f"Geocoding provider failure, using fallback: {e}")
            return self.fallback_result()
        except Exception:
            logger.exception(f"Unexpected {self.provider_name} geocoder error, using fallback")
            return self.fallback_result()
        finally:
            self._in_flight -= 1

        if result is None:
            logger.warning(f"{self.provider_name} geocoder returned no results, using fallback")
            return self.fallback_result()
        return result

    async def _wait_for_slot(self) -> None:
        """Block until at least ``min_interval`` has passed since the previous call started."""
        self._waiting += 1
        try:
            async with self._lock:
                if self._last_call is not None:
                    delay = self._last_call + self._min_interval - self._clock()
                    if delay > 0:
                        await self._sleep(delay)
                self._last_call = self._clock()
        finally:
            self._waiting -= 1

    async def aclose(self) -> None:
        await self._geocoder.aclose()

    def stats(self) -> dict[str, float | int]:
        """Return the current queue depth and in-flight call count."""
        return {
            "waiting": self._waiting,
            "in_flight": self._in_flight,
            "min_interval": self._min_interval,
        }
