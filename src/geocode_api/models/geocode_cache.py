"""GeocodeCacheEntry model — persistent coordinates keyed by normalized-address hash."""

from sqlalchemy import Double, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from geocode_api.models.base import Base, TimestampMixin, UUIDMixin


class GeocodeCacheEntry(Base, UUIDMixin, TimestampMixin):
    """Cached coordinate pair for one normalized address."""

    __tablename__ = "geocode_cache"

    address_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    original_address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)

    __table_args__ = (
        UniqueConstraint("address_hash", name="uq_geocode_cache_address_hash"),
        Index("ix_geocode_cache_updated_at", "updated_at"),
    )
