"""Batch address resolution through the memory cache, persistent cache, and provider."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from geocode_api.lib.geocoder.address import address_hash, normalize_address
from geocode_api.lib.geocoder.base import (
    CacheWriteError,
    GeocodingResult,
    InvalidAddressError,
    ResolutionResult,
    ResolutionSource,
    ResolutionStatus,
)
from geocode_api.lib.geocoder.cache import GeocodeCacheStore
from geocode_api.lib.geocoder.memory import MemoryGeocodeCache
from geocode_api.lib.geocoder.rate_limit import RateLimitedGeocoder

DEFAULT_CONCURRENCY = 10
DEFAULT_MAX_BATCH_SIZE = 50


@dataclass
class _PendingAddress:
    """A unique normalized address within one batch."""

    normalized: str
    original: str


class BatchResolver:
    """Resolves addresses to coordinates, one result per input in input order.

    Lookup order per unique address: memory cache, persistent cache, then the
    rate-limited provider client. Newly resolved coordinates are written back
    to both cache layers before results are returned. Fallback coordinates are
    never cached, so the next request retries the provider.

    Args:
        client: Rate-limited provider client.
        store: Persistent cache.
        memory: Process-local cache owned by this resolver.
        concurrency: Maximum cache-miss addresses resolved at once.
        max_batch_size: Largest batch accepted by ``resolve_batch``.
    """

    def __init__(
        self,
        client: RateLimitedGeocoder,
        store: GeocodeCacheStore,
        memory: MemoryGeocodeCache,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> None:
        if concurrency < 1:
            msg = f"concurrency must be at least 1, got {concurrency}"
            raise ValueError(msg)
        self._client = client
        self._store = store
        self._memory = memory
        self._concurrency = concurrency
        self._max_batch_size = max_batch_size

    @property
    def max_batch_size(self) -> int:
        return self._max_batch_size

    async def resolve_one(self, address: str) -> ResolutionResult:
        """Resolve a single address.

        Raises:
            TypeError: If ``address`` is not a string.
        """
        results = await self.resolve_batch([address])
        return results[0]

    async def resolve_batch(self, addresses: Sequence[str]) -> list[ResolutionResult]:
        """Resolve a batch of addresses.

        Args:
            addresses: Raw address strings; duplicates and invalid entries allowed.

        Returns:
            One ResolutionResult per input address, in input order.

        Raises:
            TypeError: If ``addresses`` is not a list/tuple of strings.
            ValueError: If the batch exceeds ``max_batch_size``.
        """
        if not isinstance(addresses, (list, tuple)):
            msg = f"addresses must be a list of strings, got {type(addresses).__name__}"
            raise TypeError(msg)
        for item in addresses:
            if not isinstance(item, str):
                msg = f"addresses must contain only strings, got {type(item).__name__}"
                raise TypeError(msg)
        if len(addresses) > self._max_batch_size:
            msg = f"Maximum {self._max_batch_size} addresses per batch, got {len(addresses)}"
            raise ValueError(msg)
        if not addresses:
            return []

        # Normalize and deduplicate; slot_keys[i] is None for invalid input
        slot_keys: list[str | None] = []
        invalid_reasons: dict[int, str] = {}
        pending: dict[str, _PendingAddress] = {}
        for i, raw in enumerate(addresses):
            try:
                normalized = normalize_address(raw)
            except InvalidAddressError as e:
                slot_keys.append(None)
                invalid_reasons[i] = str(e)
                continue
            key = address_hash(normalized)
            slot_keys.append(key)
            pending.setdefault(key, _PendingAddress(normalized=normalized, original=raw))

        resolved, misses = await self._lookup_caches(pending)

        if misses:
            logger.debug(f"Resolving {len(misses)} cache misses out of {len(pending)} unique addresses")
            fresh = await self._resolve_misses(misses, pending)
            await self._write_back(fresh, pending)
            resolved.update(fresh)

        results: list[ResolutionResult] = []
        for i, key in enumerate(slot_keys):
            if key is None:
                results.append(
                    ResolutionResult(
                        address=addresses[i],
                        status=ResolutionStatus.INVALID_ADDRESS,
                        error=invalid_reasons[i],
                    )
                )
                continue
            result, source = resolved[key]
            results.append(
                ResolutionResult(
                    address=addresses[i],
                    status=ResolutionStatus.FALLBACK if result.fallback else ResolutionStatus.RESOLVED,
                    latitude=result.latitude,
                    longitude=result.longitude,
                    source=source,
                )
            )
        return results

    async def _lookup_caches(
        self, pending: dict[str, _PendingAddress]
    ) -> tuple[dict[str, tuple[GeocodingResult, ResolutionSource]], list[str]]:
        """Return cache hits keyed by hash and the keys that missed both layers.

        Memory misses are fetched from the persistent cache in a single query.
        """
        hits: dict[str, tuple[GeocodingResult, ResolutionSource]] = {}
        memory_misses: list[str] = []
        for key in pending:
            cached = self._memory.get(key)
            if cached is not None:
                hits[key] = (cached, ResolutionSource.MEMORY)
            else:
                memory_misses.append(key)

        if not memory_misses:
            return hits, []

        stored = await self._store.get_many(memory_misses)
        misses: list[str] = []
        for key in memory_misses:
            entry = stored.get(key)
            if entry is None:
                misses.append(key)
                continue
            self._memory.set(key, entry)
            hits[key] = (entry, ResolutionSource.DATABASE)
        return hits, misses

    async def _resolve_misses(
        self, misses: list[str], pending: dict[str, _PendingAddress]
    ) -> dict[str, tuple[GeocodingResult, ResolutionSource]]:
        """Resolve cache misses through the client, at most ``concurrency`` at a time."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _resolve(key: str) -> tuple[GeocodingResult, ResolutionSource]:
            async with semaphore:
                result = await self._client.resolve(pending[key].normalized)
            return result, ResolutionSource.FALLBACK if result.fallback else ResolutionSource.PROVIDER

        outcomes = await asyncio.gather(*(_resolve(key) for key in misses))
        return dict(zip(misses, outcomes, strict=True))

    async def _write_back(
        self,
        fresh: dict[str, tuple[GeocodingResult, ResolutionSource]],
        pending: dict[str, _PendingAddress],
    ) -> None:
        """Persist provider results, then mirror them into the memory cache."""
        for key, (result, source) in fresh.items():
            if source != ResolutionSource.PROVIDER:
                continue
            try:
                await self._store.put(key, pending[key].original, result)
            except CacheWriteError as e:
                logger.error(f"Failed to persist geocode cache entry, result returned uncached: {e}")
                continue
            self._memory.set(key, result)

    async def cache_stats(self) -> dict[str, Any]:
        """Return persistent cache statistics plus memory cache and queue counters."""
        stats = await self._store.stats()
        return {
            "entry_count": stats.entry_count,
            "oldest_entry": stats.oldest_entry,
            "newest_entry": stats.newest_entry,
            "memory": self._memory.stats(),
            "queue": self._client.stats(),
        }

    async def aclose(self) -> None:
        """Close the provider client. The caches are left intact."""
        await self._client.aclose()

    async def clear_cache(self) -> int:
        """Empty the memory cache and purge the persistent cache.

        Returns:
            Number of persistent entries deleted.
        """
        self._memory.clear()
        return await self._store.purge()
