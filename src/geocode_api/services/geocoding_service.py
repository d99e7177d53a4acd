"""Geocoding service — maps resolver results onto API/CLI response schemas."""

from loguru import logger

from geocode_api.lib.geocoder import BatchResolver, ResolutionResult
from geocode_api.schemas.geocoding import (
    BatchGeocodeResponse,
    CacheStatsResponse,
    GeocodeResultResponse,
)


def to_response(result: ResolutionResult) -> GeocodeResultResponse:
    """Convert a resolver slot into its response schema."""
    return GeocodeResultResponse(
        address=result.address,
        lat=result.latitude,
        lng=result.longitude,
        fallback=result.fallback,
        cached=result.cached,
        source=result.source.value if result.source else None,
        error=result.error,
    )


async def geocode_single_address(resolver: BatchResolver, address: str) -> GeocodeResultResponse:
    """Geocode one freeform address.

    Args:
        resolver: The process-wide batch resolver.
        address: Raw address from the consumer.

    Returns:
        GeocodeResultResponse; ``error`` is set when the address is invalid.
    """
    result = await resolver.resolve_one(address)
    return to_response(result)


async def geocode_batch(resolver: BatchResolver, addresses: list[str]) -> BatchGeocodeResponse:
    """Geocode a batch of addresses, one response slot per input in order.

    Raises:
        ValueError: If the batch exceeds the resolver's maximum size.
    """
    results = await resolver.resolve_batch(addresses)
    fallbacks = sum(1 for r in results if r.fallback)
    invalid = sum(1 for r in results if r.error is not None)
    logger.info(f"Batch geocoded {len(results)} addresses: {fallbacks} fallback, {invalid} invalid")
    return BatchGeocodeResponse(results=[to_response(r) for r in results])


async def get_cache_stats(resolver: BatchResolver) -> CacheStatsResponse:
    """Get persistent cache, memory cache, and queue statistics."""
    return CacheStatsResponse.model_validate(await resolver.cache_stats())


async def clear_cache(resolver: BatchResolver) -> int:
    """Purge both cache layers and return the number of persistent rows deleted."""
    deleted = await resolver.clear_cache()
    logger.warning(f"Geocode cache cleared ({deleted} persistent entries)")
    return deleted
