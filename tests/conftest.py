"""Shared test fixtures: settings, in-memory SQLite engine, fake provider, and resolver factory."""

import asyncio
import time
from collections.abc import AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from geocode_api.core.config import Settings
from geocode_api.lib.geocoder import (
    BaseGeocoder,
    BatchResolver,
    GeocodeCacheStore,
    GeocodingProviderError,
    GeocodingResult,
    MemoryGeocodeCache,
    RateLimitedGeocoder,
)
from geocode_api.models.base import Base


class FakeGeocoder(BaseGeocoder):
    """In-process provider double that records every call.

    Args:
        results: Normalized address → (lat, lng) overrides.
        default: Coordinates returned for any other address.
        failing: Normalized addresses that raise GeocodingProviderError.
        no_match: Normalized addresses that return None.
        delay: Seconds each call sleeps before answering.
        configured: Value reported by ``is_configured``.
        clock: Clock used to timestamp calls.
    """

    def __init__(
        self,
        results: dict[str, tuple[float, float]] | None = None,
        *,
        default: tuple[float, float] = (42.0, -71.0),
        failing: set[str] | None = None,
        no_match: set[str] | None = None,
        delay: float = 0.0,
        configured: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.results = results or {}
        self.default = default
        self.failing = failing or set()
        self.no_match = no_match or set()
        self.delay = delay
        self.configured = configured
        self.clock = clock
        self.calls: list[str] = []
        self.call_times: list[float] = []
        self.active = 0
        self.max_active = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def geocode(self, address: str) -> GeocodingResult | None:
        self.calls.append(address)
        self.call_times.append(self.clock())
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if address in self.failing:
                raise GeocodingProviderError("fake", "Provider returned HTTP 503", status_code=503)
            if address in self.no_match:
                return None
            lat, lng = self.results.get(address, self.default)
            return GeocodingResult(latitude=lat, longitude=lng)
        finally:
            self.active -= 1


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine with all tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_geocoder() -> type[FakeGeocoder]:
    """Expose the FakeGeocoder class to tests."""
    return FakeGeocoder


@pytest.fixture
def make_resolver(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., BatchResolver]:
    """Build a BatchResolver over the test database with a fresh memory cache."""

    def _make(
        geocoder: BaseGeocoder,
        *,
        min_interval: float = 0.0,
        timeout: float = 5.0,
        concurrency: int = 10,
        max_batch_size: int = 50,
        memory: MemoryGeocodeCache | None = None,
    ) -> BatchResolver:
        client = RateLimitedGeocoder(geocoder, min_interval=min_interval, timeout=timeout)
        return BatchResolver(
            client,
            GeocodeCacheStore(session_factory),
            memory if memory is not None else MemoryGeocodeCache(),
            concurrency=concurrency,
            max_batch_size=max_batch_size,
        )

    return _make
