"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from geocode_api.models.base import Base
from geocode_api.models.geocode_cache import GeocodeCacheEntry

__all__ = [
    "Base",
    "GeocodeCacheEntry",
]
