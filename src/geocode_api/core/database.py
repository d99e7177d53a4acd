"""Async SQLAlchemy engine for the persistent geocode cache.

One engine and session factory exist per process. The API lifespan and each
CLI command call ``init_engine`` on entry and ``dispose_engine`` on exit.
"""

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process engine.

    Raises:
        RuntimeError: If ``init_engine`` has not been called.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process session factory.

    Raises:
        RuntimeError: If ``init_engine`` has not been called.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def _engine_options(database_url: str, schema: str | None, options: dict[str, Any]) -> dict[str, Any]:
    """Fill in connection and pool options for the target backend."""
    if schema is not None:
        connect_args = options.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        # asyncpg applies server_settings to every pooled connection
        options["connect_args"] = {**connect_args, "server_settings": {"search_path": f"{schema},public"}}

    if make_url(database_url).get_backend_name() == "sqlite":
        # In-memory SQLite only survives on a single shared connection
        options.setdefault("poolclass", StaticPool)
    elif options.get("poolclass") is None:
        options.setdefault("pool_size", 10)
        options.setdefault("max_overflow", 5)
        options.setdefault("pool_pre_ping", True)
    return options


def init_engine(database_url: str, *, schema: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create the process engine and session factory.

    Args:
        database_url: Async connection string (``postgresql+asyncpg://`` or
            ``sqlite+aiosqlite://``).
        schema: Optional PostgreSQL schema placed first on the search path.
        **kwargs: Extra arguments for ``create_async_engine``.

    Returns:
        The new engine.

    Raises:
        TypeError: If ``connect_args`` is given but is not a dict.
    """
    global _engine, _session_factory  # noqa: PLW0603
    options = _engine_options(database_url, schema, dict(kwargs))
    _engine = create_async_engine(database_url, **options)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def create_all_tables() -> None:
    """Create the cache table directly from the ORM metadata.

    For local SQLite databases; PostgreSQL deployments run the Alembic migrations.
    """
    from geocode_api.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close all pooled connections and forget the engine."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
