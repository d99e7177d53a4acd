"""Tests for the database engine and session management module."""

import pytest
from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

import geocode_api.core.database as db_module
from geocode_api.core.database import (
    create_all_tables,
    dispose_engine,
    get_engine,
    get_session_factory,
    init_engine,
)


class TestGetEngine:
    """Tests for get_engine."""

    def test_raises_when_not_initialized(self) -> None:
        original_engine = db_module._engine
        db_module._engine = None
        try:
            with pytest.raises(RuntimeError, match="Database engine not initialized"):
                get_engine()
        finally:
            db_module._engine = original_engine

    @pytest.mark.asyncio
    async def test_returns_engine_when_initialized(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert get_engine() is engine
        finally:
            await dispose_engine()


class TestGetSessionFactory:
    """Tests for get_session_factory."""

    def test_raises_when_not_initialized(self) -> None:
        original_factory = db_module._session_factory
        db_module._session_factory = None
        try:
            with pytest.raises(RuntimeError, match="Session factory not initialized"):
                get_session_factory()
        finally:
            db_module._session_factory = original_factory


class TestInitEngine:
    """Tests for init_engine."""

    @pytest.mark.asyncio
    async def test_creates_engine_and_factory(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert engine is not None
            assert get_session_factory() is not None
        finally:
            await dispose_engine()

    def test_schema_rejects_non_dict_connect_args(self) -> None:
        with pytest.raises(TypeError, match="connect_args must be a dict"):
            init_engine("sqlite+aiosqlite:///:memory:", schema="pr_1", connect_args="bad")


class TestCreateAllTables:
    """Tests for create_all_tables."""

    @pytest.mark.asyncio
    async def test_creates_geocode_cache_table(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        try:
            await create_all_tables()
            async with get_engine().connect() as conn:
                tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            assert "geocode_cache" in tables
        finally:
            await dispose_engine()


class TestDisposeEngine:
    """Tests for dispose_engine."""

    @pytest.mark.asyncio
    async def test_clears_module_state(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        await dispose_engine()
        assert db_module._engine is None
        assert db_module._session_factory is None

    @pytest.mark.asyncio
    async def test_noop_when_not_initialized(self) -> None:
        await dispose_engine()
        await dispose_engine()


class TestEngineOptions:
    """Tests for backend-specific engine options."""

    def test_sqlite_uses_static_pool(self) -> None:
        options = db_module._engine_options("sqlite+aiosqlite:///:memory:", None, {})
        assert options["poolclass"] is StaticPool
        assert "pool_size" not in options

    def test_postgres_pool_defaults(self) -> None:
        options = db_module._engine_options("postgresql+asyncpg://localhost/db", None, {})
        assert options["pool_size"] == 10
        assert options["max_overflow"] == 5
        assert options["pool_pre_ping"] is True

    def test_schema_sets_search_path(self) -> None:
        options = db_module._engine_options(
            "postgresql+asyncpg://localhost/db", "pr_42", {"connect_args": {"timeout": 5}}
        )
        assert options["connect_args"] == {
            "timeout": 5,
            "server_settings": {"search_path": "pr_42,public"},
        }
