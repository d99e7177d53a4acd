"""Geocoding API endpoints — single-address geocode, batch geocode, and cache statistics."""

from fastapi import APIRouter, Depends, HTTPException, status

from geocode_api.core.dependencies import get_resolver
from geocode_api.lib.geocoder import BatchResolver
from geocode_api.schemas.geocoding import (
    BatchGeocodeRequest,
    BatchGeocodeResponse,
    CacheStatsResponse,
    GeocodeRequest,
    GeocodeResultResponse,
)
from geocode_api.services.geocoding_service import geocode_batch, geocode_single_address, get_cache_stats

geocoding_router = APIRouter(prefix="/geocoding", tags=["geocoding"])


@geocoding_router.post(
    "/geocode",
    response_model=GeocodeResultResponse,
)
async def geocode_address(
    body: GeocodeRequest,
    resolver: BatchResolver = Depends(get_resolver),  # noqa: B008
) -> GeocodeResultResponse:
    """Geocode a single freeform address to coordinates.

    Provider failures return the fallback point with ``fallback: true``.
    """
    result = await geocode_single_address(resolver, body.address)
    if result.error is not None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Address must not be empty or whitespace-only.",
        )
    return result


@geocoding_router.post(
    "/batch-geocode",
    response_model=BatchGeocodeResponse,
)
async def batch_geocode_addresses(
    body: BatchGeocodeRequest,
    resolver: BatchResolver = Depends(get_resolver),  # noqa: B008
) -> BatchGeocodeResponse:
    """Geocode several addresses; invalid entries are reported per slot."""
    if len(body.addresses) > resolver.max_batch_size:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Maximum {resolver.max_batch_size} addresses per batch.",
        )
    return await geocode_batch(resolver, body.addresses)


@geocoding_router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
)
async def cache_stats(
    resolver: BatchResolver = Depends(get_resolver),  # noqa: B008
) -> CacheStatsResponse:
    """Return persistent cache size and age plus memory cache and queue counters."""
    return await get_cache_stats(resolver)
