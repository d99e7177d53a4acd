"""Pydantic v2 schemas for geocoding operations."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

MAX_ADDRESS_LENGTH = 500


class GeocodeRequest(BaseModel):
    """Request to geocode a single address."""

    address: str = Field(..., max_length=MAX_ADDRESS_LENGTH, description="Freeform address to geocode")


class BatchGeocodeRequest(BaseModel):
    """Request to geocode several addresses in one call."""

    addresses: list[Annotated[str, Field(max_length=MAX_ADDRESS_LENGTH)]] = Field(
        ..., description="Freeform addresses, resolved in order"
    )


class GeocodeResultResponse(BaseModel):
    """Coordinates for one input address.

    ``lat``/``lng`` are null only when ``error`` is set (invalid address).
    ``fallback`` marks an approximate point substituted after a provider failure.
    """

    model_config = {"from_attributes": True}

    address: str
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    fallback: bool = False
    cached: bool = False
    source: str | None = None
    error: str | None = None


class BatchGeocodeResponse(BaseModel):
    """Response for POST /geocoding/batch-geocode."""

    results: list[GeocodeResultResponse]


class MemoryCacheStats(BaseModel):
    """Process-local cache counters."""

    hits: int
    misses: int
    keys: int
    maxsize: int
    ttl: float


class QueueStats(BaseModel):
    """Rate-limited provider queue counters."""

    waiting: int
    in_flight: int
    min_interval: float


class CacheStatsResponse(BaseModel):
    """Response for GET /geocoding/cache/stats."""

    entry_count: int
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None
    memory: MemoryCacheStats
    queue: QueueStats
