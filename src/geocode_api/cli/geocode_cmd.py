"""Geocoding CLI commands: resolve addresses and inspect or purge the cache."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from geocode_api.lib.geocoder import BatchResolver
from geocode_api.schemas.geocoding import GeocodeResultResponse

geocode_app = typer.Typer()

T = TypeVar("T")


@geocode_app.command("one")
def geocode_one(
    address: str = typer.Argument(..., help="Freeform address to geocode"),
) -> None:
    """Geocode a single address through the caches and provider."""
    from geocode_api.services.geocoding_service import geocode_single_address

    result = _run(lambda resolver: geocode_single_address(resolver, address))
    _echo_result(result)
    if result.error is not None:
        raise typer.Exit(code=1)


@geocode_app.command("batch")
def geocode_batch_file(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with one address per line"),  # noqa: B008
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),  # noqa: FBT001
) -> None:
    """Geocode every address in a file, chunked to the configured batch size."""
    from geocode_api.services.geocoding_service import geocode_batch

    addresses = [line.strip() for line in file.read_text(encoding="utf-8").splitlines() if line.strip()]
    if not addresses:
        typer.echo("No addresses found in file.")
        return

    async def _resolve_all(resolver: BatchResolver) -> list[GeocodeResultResponse]:
        results: list[GeocodeResultResponse] = []
        size = resolver.max_batch_size
        for i in range(0, len(addresses), size):
            response = await geocode_batch(resolver, addresses[i : i + size])
            results.extend(response.results)
        return results

    results = _run(_resolve_all)

    if as_json:
        typer.echo(json.dumps([r.model_dump() for r in results], indent=2))
        return

    for result in results:
        _echo_result(result)
    fallbacks = sum(1 for r in results if r.fallback)
    invalid = sum(1 for r in results if r.error is not None)
    typer.echo(f"\nResolved {len(results)} addresses:")
    typer.echo(f"  Cached:    {sum(1 for r in results if r.cached)}")
    typer.echo(f"  Fallback:  {fallbacks}")
    typer.echo(f"  Invalid:   {invalid}")


@geocode_app.command("cache-stats")
def cache_stats() -> None:
    """Show persistent cache size and entry ages."""
    from geocode_api.services.geocoding_service import get_cache_stats

    stats = _run(get_cache_stats)
    typer.echo(f"Entries:       {stats.entry_count}")
    typer.echo(f"Oldest entry:  {stats.oldest_entry or '-'}")
    typer.echo(f"Newest entry:  {stats.newest_entry or '-'}")


@geocode_app.command("cache-clear")
def cache_clear(
    yes: bool = typer.Option(False, "--yes", help="Confirm deletion of every cached coordinate"),  # noqa: FBT001
) -> None:
    """Delete every persistent geocode cache entry."""
    from geocode_api.services.geocoding_service import clear_cache

    if not yes:
        typer.echo("Refusing to purge the geocode cache without --yes.", err=True)
        raise typer.Exit(code=1)

    deleted = _run(clear_cache)
    typer.echo(f"Deleted {deleted} cache entries.")


def _echo_result(result: GeocodeResultResponse) -> None:
    if result.error is not None:
        typer.echo(f"INVALID   {result.address!r}: {result.error}")
        return
    flag = "FALLBACK" if result.fallback else ("CACHED" if result.cached else "OK")
    typer.echo(f"{flag:<9} {result.lat:.6f}, {result.lng:.6f}  {result.address}")


def _run(operation: Callable[[BatchResolver], Awaitable[T]]) -> T:
    """Run an async operation against a resolver bound to a fresh engine."""
    return asyncio.run(_with_resolver(operation))


async def _with_resolver(operation: Callable[[BatchResolver], Awaitable[T]]) -> T:
    from geocode_api.core.config import get_settings
    from geocode_api.core.database import dispose_engine, get_session_factory, init_engine
    from geocode_api.lib.geocoder import create_resolver

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        resolver = create_resolver(settings, get_session_factory())
        try:
            return await operation(resolver)
        finally:
            await resolver.aclose()
    finally:
        await dispose_engine()
