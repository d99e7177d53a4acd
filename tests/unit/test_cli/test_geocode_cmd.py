"""Tests for the geocode CLI commands."""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from geocode_api.cli.app import app
from geocode_api.lib.geocoder import ResolutionResult, ResolutionSource, ResolutionStatus

runner = CliRunner()


def _result_for(address: str) -> ResolutionResult:
    if not address.strip():
        return ResolutionResult(
            address=address,
            status=ResolutionStatus.INVALID_ADDRESS,
            error="Address must not be empty or whitespace-only.",
        )
    if "nowhere" in address.lower():
        return ResolutionResult(
            address=address,
            status=ResolutionStatus.FALLBACK,
            latitude=45.5017,
            longitude=-73.5673,
            source=ResolutionSource.FALLBACK,
        )
    return ResolutionResult(
        address=address,
        status=ResolutionStatus.RESOLVED,
        latitude=45.523600,
        longitude=-73.581700,
        source=ResolutionSource.PROVIDER,
    )


@pytest.fixture
def resolver(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Patch the CLI so every command runs against a mocked resolver."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setattr("geocode_api.cli.app.setup_logging", lambda *args, **kwargs: None)

    resolver = MagicMock()
    resolver.max_batch_size = 2
    resolver.resolve_one = AsyncMock(side_effect=_result_for)
    resolver.resolve_batch = AsyncMock(side_effect=lambda addresses: [_result_for(a) for a in addresses])

    async def _fake_with_resolver(operation):
        return await operation(resolver)

    monkeypatch.setattr("geocode_api.cli.geocode_cmd._with_resolver", _fake_with_resolver)
    return resolver


class TestGeocodeOne:
    def test_resolved(self, resolver: MagicMock) -> None:
        result = runner.invoke(app, ["geocode", "one", "4200 Rue Saint-Denis, Montreal"])

        assert result.exit_code == 0
        assert "OK" in result.output
        assert "45.523600, -73.581700" in result.output
        resolver.resolve_one.assert_awaited_once_with("4200 Rue Saint-Denis, Montreal")

    def test_fallback(self, resolver: MagicMock) -> None:
        result = runner.invoke(app, ["geocode", "one", "1 Nowhere Rd"])

        assert result.exit_code == 0
        assert "FALLBACK" in result.output

    def test_invalid_exits_nonzero(self, resolver: MagicMock) -> None:
        result = runner.invoke(app, ["geocode", "one", "   "])

        assert result.exit_code == 1
        assert "INVALID" in result.output


class TestGeocodeBatch:
    def test_batch_chunks_by_max_size(self, resolver: MagicMock, tmp_path: Path) -> None:
        file = tmp_path / "addresses.txt"
        file.write_text("1 A St\n\n2 B St\n3 Nowhere Rd\n", encoding="utf-8")

        result = runner.invoke(app, ["geocode", "batch", str(file)])

        assert result.exit_code == 0
        assert resolver.resolve_batch.await_count == 2
        assert resolver.resolve_batch.await_args_list[0].args[0] == ["1 A St", "2 B St"]
        assert resolver.resolve_batch.await_args_list[1].args[0] == ["3 Nowhere Rd"]
        assert "Resolved 3 addresses" in result.output
        assert "Fallback:  1" in result.output

    def test_batch_json(self, resolver: MagicMock, tmp_path: Path) -> None:
        file = tmp_path / "addresses.txt"
        file.write_text("1 A St\n2 B St\n", encoding="utf-8")

        result = runner.invoke(app, ["geocode", "batch", str(file), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert [r["address"] for r in payload] == ["1 A St", "2 B St"]
        assert payload[0]["lat"] == pytest.approx(45.5236)

    def test_batch_empty_file(self, resolver: MagicMock, tmp_path: Path) -> None:
        file = tmp_path / "empty.txt"
        file.write_text("\n  \n", encoding="utf-8")

        result = runner.invoke(app, ["geocode", "batch", str(file)])

        assert result.exit_code == 0
        assert "No addresses found" in result.output
        resolver.resolve_batch.assert_not_awaited()

    def test_batch_missing_file(self, resolver: MagicMock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["geocode", "batch", str(tmp_path / "missing.txt")])
        assert result.exit_code != 0


class TestCacheCommands:
    def test_cache_stats(self, resolver: MagicMock) -> None:
        resolver.cache_stats = AsyncMock(
            return_value={
                "entry_count": 12,
                "oldest_entry": datetime(2026, 1, 1, tzinfo=UTC),
                "newest_entry": datetime(2026, 10, 1, tzinfo=UTC),
                "memory": {"hits": 0, "misses": 0, "keys": 0, "maxsize": 10000, "ttl": 86400},
                "queue": {"waiting": 0, "in_flight": 0, "min_interval": 0.1},
            }
        )

        result = runner.invoke(app, ["geocode", "cache-stats"])

        assert result.exit_code == 0
        assert "Entries:       12" in result.output
        assert "2026-01-01" in result.output

    def test_cache_clear_requires_confirmation(self, resolver: MagicMock) -> None:
        resolver.clear_cache = AsyncMock(return_value=3)

        result = runner.invoke(app, ["geocode", "cache-clear"])

        assert result.exit_code == 1
        resolver.clear_cache.assert_not_awaited()

    def test_cache_clear(self, resolver: MagicMock) -> None:
        resolver.clear_cache = AsyncMock(return_value=3)

        result = runner.invoke(app, ["geocode", "cache-clear", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 3 cache entries." in result.output
