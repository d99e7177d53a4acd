"""Persistent geocode cache backed by the ``geocode_cache`` table."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geocode_api.lib.geocoder.base import CacheWriteError, GeocodingResult
from geocode_api.models.geocode_cache import GeocodeCacheEntry

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

# OSError covers ConnectionRefusedError and TimeoutError raised by asyncpg
_DATABASE_ERRORS = (SQLAlchemyError, OSError)


async def _safe_rollback(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except _DATABASE_ERRORS as e:
        logger.warning(f"Rollback after failed geocode cache write also failed: {type(e).__name__}: {e}")


@dataclass
class CacheStats:
    """Summary of the persistent cache contents."""

    entry_count: int
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None


async def cache_lookup(session: AsyncSession, address_hash: str) -> GeocodingResult | None:
    """Look up a cached coordinate.

    Args:
        session: Database session.
        address_hash: Hash of the normalized address (cache key).

    Returns:
        GeocodingResult if found, None on cache miss.
    """
    result = await session.execute(select(GeocodeCacheEntry).where(GeocodeCacheEntry.address_hash == address_hash))
    entry = result.scalar_one_or_none()
    if entry is None:
        return None
    return GeocodingResult(latitude=entry.latitude, longitude=entry.longitude)


async def cache_lookup_many(session: AsyncSession, address_hashes: list[str]) -> dict[str, GeocodingResult]:
    """Look up several cached coordinates in one query.

    Returns:
        Found entries keyed by address hash; missing hashes are absent.
    """
    if not address_hashes:
        return {}
    result = await session.execute(
        select(GeocodeCacheEntry).where(GeocodeCacheEntry.address_hash.in_(address_hashes))
    )
    return {
        entry.address_hash: GeocodingResult(latitude=entry.latitude, longitude=entry.longitude)
        for entry in result.scalars()
    }


async def cache_store(
    session: AsyncSession,
    address_hash: str,
    original_address: str,
    result: GeocodingResult,
) -> None:
    """Insert or update the cache entry for ``address_hash``.

    ON CONFLICT (address_hash) DO UPDATE SET latitude, longitude, updated_at.
    The original address and creation time of an existing row are kept.

    Args:
        session: Database session.
        address_hash: Hash of the normalized address (cache key).
        original_address: Raw address text as submitted.
        result: Coordinates to store.

    Raises:
        ValueError: If the session is bound to a dialect without upsert support.
    """
    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        msg = f"Geocode cache upsert is not supported on dialect {dialect!r}"
        raise ValueError(msg)

    now = datetime.now(UTC)
    stmt = insert(GeocodeCacheEntry).values(
        id=uuid.uuid4(),
        address_hash=address_hash,
        original_address=original_address,
        latitude=result.latitude,
        longitude=result.longitude,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[GeocodeCacheEntry.address_hash],
        set_={
            "latitude": stmt.excluded.latitude,
            "longitude": stmt.excluded.longitude,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await session.execute(stmt)
    await session.flush()


async def cache_stats(session: AsyncSession) -> CacheStats:
    """Return the entry count and the oldest/newest creation times."""
    result = await session.execute(
        select(
            func.count(GeocodeCacheEntry.id).label("entry_count"),
            func.min(GeocodeCacheEntry.created_at).label("oldest_entry"),
            func.max(GeocodeCacheEntry.created_at).label("newest_entry"),
        )
    )
    row = result.one()
    return CacheStats(
        entry_count=row.entry_count,
        oldest_entry=row.oldest_entry,
        newest_entry=row.newest_entry,
    )


async def cache_purge(session: AsyncSession) -> int:
    """Delete every cache entry.

    Returns:
        Number of rows deleted.
    """
    result = await session.execute(delete(GeocodeCacheEntry))
    await session.flush()
    return result.rowcount or 0


class GeocodeCacheStore:
    """Persistent cache operating on short-lived sessions from a session factory.

    Reads that fail are treated as misses; writes that fail raise
    ``CacheWriteError`` so the caller can still return the coordinate.
    Driver-level connection errors (refused, reset, timed out) surface as
    ``OSError`` rather than ``SQLAlchemyError`` and are handled the same way.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, address_hash: str) -> GeocodingResult | None:
        try:
            async with self._session_factory() as session:
                return await cache_lookup(session, address_hash)
        except _DATABASE_ERRORS as e:
            logger.error(f"Error reading geocode cache, treating as miss: {type(e).__name__}: {e}")
            return None

    async def get_many(self, address_hashes: list[str]) -> dict[str, GeocodingResult]:
        """Fetch several entries in one round trip; a failed read is an empty result."""
        try:
            async with self._session_factory() as session:
                return await cache_lookup_many(session, address_hashes)
        except _DATABASE_ERRORS as e:
            logger.error(
                f"Error reading geocode cache, treating {len(address_hashes)} lookups as misses: "
                f"{type(e).__name__}: {e}"
            )
            return {}

    async def put(self, address_hash: str, original_address: str, result: GeocodingResult) -> None:
        """Upsert and commit one entry.

        Raises:
            CacheWriteError: If the database rejects the write or cannot be reached.
        """
        try:
            async with self._session_factory() as session:
                try:
                    await cache_store(session, address_hash, original_address, result)
                    await session.commit()
                except _DATABASE_ERRORS:
                    await _safe_rollback(session)
                    raise
        except _DATABASE_ERRORS as e:
            raise CacheWriteError(address_hash, f"{type(e).__name__}: {e}") from e

    async def stats(self) -> CacheStats:
        async with self._session_factory() as session:
            return await cache_stats(session)

    async def purge(self) -> int:
        async with self._session_factory() as session:
            deleted = await cache_purge(session)
            await session.commit()
        logger.info(f"Purged {deleted} geocode cache entries")
        return deleted
