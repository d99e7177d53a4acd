"""Database CLI commands: Alembic migrations and SQLite table bootstrap."""

import asyncio

import typer
from loguru import logger

db_app = typer.Typer()

ALEMBIC_CONFIG = "alembic.ini"


def _alembic_config():  # type: ignore[no-untyped-def]
    from alembic.config import Config

    return Config(ALEMBIC_CONFIG)


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
) -> None:
    """Apply geocode cache migrations up to the target revision."""
    from alembic import command

    logger.info(f"Upgrading database to {revision}")
    command.upgrade(_alembic_config(), revision)
    logger.info("Database upgrade complete")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
) -> None:
    """Roll back geocode cache migrations to the target revision."""
    from alembic import command

    logger.info(f"Downgrading database to {revision}")
    command.downgrade(_alembic_config(), revision)
    logger.info("Database downgrade complete")


@db_app.command()
def current() -> None:
    """Show the current database migration revision."""
    from alembic import command

    command.current(_alembic_config(), verbose=True)


@db_app.command("create-tables")
def create_tables() -> None:
    """Create the cache tables directly from the ORM models (local SQLite databases)."""
    asyncio.run(_create_tables())
    typer.echo("Tables created.")


async def _create_tables() -> None:
    from geocode_api.core.config import get_settings
    from geocode_api.core.database import create_all_tables, dispose_engine, init_engine

    settings = get_settings()
    init_engine(settings.database_url)
    try:
        await create_all_tables()
    finally:
        await dispose_engine()
