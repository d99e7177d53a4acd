"""Geocoder library — cached, rate-limited address resolution.

Public API:
    - normalize_address: Canonicalize a freeform address for cache keying
    - address_hash: Cache key for a normalized address
    - BaseGeocoder: Abstract provider interface
    - GoogleMapsGeocoder: Google Geocoding API provider
    - GeocodingResult: Coordinate dataclass
    - ResolutionResult / ResolutionStatus / ResolutionSource: Batch slot types
    - InvalidAddressError / GeocodingProviderError / CacheWriteError: Errors
    - MemoryGeocodeCache: Process-local LRU + TTL cache
    - GeocodeCacheStore, cache_lookup / cache_lookup_many / cache_store / cache_stats / cache_purge:
      Database cache
    - RateLimitedGeocoder: Provider client with spacing, timeout, and fallback
    - BatchResolver: Memory → database → provider resolution with write-back
    - get_geocoder: Provider factory/registry
    - create_resolver: Build a BatchResolver from application settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from geocode_api.lib.geocoder.address import address_hash, normalize_address
from geocode_api.lib.geocoder.base import (
    BaseGeocoder,
    CacheWriteError,
    GeocodingProviderError,
    GeocodingResult,
    InvalidAddressError,
    ResolutionResult,
    ResolutionSource,
    ResolutionStatus,
)
from geocode_api.lib.geocoder.cache import (
    CacheStats,
    GeocodeCacheStore,
    cache_lookup,
    cache_lookup_many,
    cache_purge,
    cache_stats,
    cache_store,
)
from geocode_api.lib.geocoder.google_maps import GoogleMapsGeocoder
from geocode_api.lib.geocoder.memory import MemoryGeocodeCache
from geocode_api.lib.geocoder.rate_limit import RateLimitedGeocoder
from geocode_api.lib.geocoder.resolver import BatchResolver

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from geocode_api.core.config import Settings

# Provider registry
_PROVIDERS: dict[str, type[BaseGeocoder]] = {
    "google": GoogleMapsGeocoder,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered geocoder providers."""
    return sorted(_PROVIDERS.keys())


def get_geocoder(provider: str = "google", **kwargs: Any) -> BaseGeocoder:
    """Get a geocoder instance by provider name.

    Args:
        provider: Provider name (e.g., "google").
        **kwargs: Additional arguments forwarded to the provider constructor.

    Returns:
        An instance of the requested geocoder provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown geocoder provider: {provider!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def create_resolver(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    geocoder: BaseGeocoder | None = None,
) -> BatchResolver:
    """Build the process-wide BatchResolver from settings.

    Args:
        settings: Application settings.
        session_factory: Session factory for the persistent cache.
        geocoder: Optional provider override; defaults to Google configured from settings.

    Returns:
        A BatchResolver owning a fresh memory cache.
    """
    if geocoder is None:
        geocoder = get_geocoder(
            "google",
            api_key=settings.google_geocode_api_key,
            timeout=settings.geocoder_timeout,
            region=settings.geocoder_region,
        )
    client = RateLimitedGeocoder(
        geocoder,
        min_interval=settings.geocoder_min_interval,
        timeout=settings.geocoder_timeout,
        fallback_latitude=settings.geocoder_fallback_latitude,
        fallback_longitude=settings.geocoder_fallback_longitude,
    )
    memory = MemoryGeocodeCache(
        maxsize=settings.geocoder_memory_cache_size,
        ttl=settings.geocoder_memory_cache_ttl,
    )
    return BatchResolver(
        client,
        GeocodeCacheStore(session_factory),
        memory,
        concurrency=settings.geocoder_batch_concurrency,
        max_batch_size=settings.geocoder_max_batch_size,
    )


__all__ = [
    "BaseGeocoder",
    "BatchResolver",
    "CacheStats",
    "CacheWriteError",
    "GeocodeCacheStore",
    "GeocodingProviderError",
    "GeocodingResult",
    "GoogleMapsGeocoder",
    "InvalidAddressError",
    "MemoryGeocodeCache",
    "RateLimitedGeocoder",
    "ResolutionResult",
    "ResolutionSource",
    "ResolutionStatus",
    "address_hash",
    "cache_lookup",
    "cache_lookup_many",
    "cache_purge",
    "cache_stats",
    "cache_store",
    "create_resolver",
    "get_available_providers",
    "get_geocoder",
    "normalize_address",
]
