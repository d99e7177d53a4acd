"""Abstract base geocoder interface, result types, and geocoding errors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum


@dataclass
class GeocodingResult:
    """A coordinate pair produced by a provider or read back from a cache."""

    latitude: float
    longitude: float
    fallback: bool = False

    def __post_init__(self) -> None:
        if not (-90 <= self.latitude <= 90):
            msg = f"latitude must be between -90 and 90, got {self.latitude}"
            raise ValueError(msg)
        if not (-180 <= self.longitude <= 180):
            msg = f"longitude must be between -180 and 180, got {self.longitude}"
            raise ValueError(msg)


class ResolutionStatus(StrEnum):
    """Outcome of resolving one batch slot."""

    RESOLVED = "resolved"
    FALLBACK = "fallback"
    INVALID_ADDRESS = "invalid_address"


class ResolutionSource(StrEnum):
    """Where a slot's coordinates came from."""

    MEMORY = "memory"
    DATABASE = "database"
    PROVIDER = "provider"
    FALLBACK = "fallback"


@dataclass
class ResolutionResult:
    """One output slot of a batch resolution, aligned with an input address."""

    address: str
    status: ResolutionStatus
    latitude: float | None = None
    longitude: float | None = None
    source: ResolutionSource | None = None
    error: str | None = None

    @property
    def fallback(self) -> bool:
        return self.status == ResolutionStatus.FALLBACK

    @property
    def cached(self) -> bool:
        return self.source in (ResolutionSource.MEMORY, ResolutionSource.DATABASE)


class InvalidAddressError(ValueError):
    """Raised when an address normalizes to nothing and must not be geocoded."""


class CacheWriteError(Exception):
    """Raised when the persistent geocode cache cannot store an entry.

    Args:
        address_hash: Cache key of the entry that failed to persist.
        message: Human-readable error description.
    """

    def __init__(self, address_hash: str, message: str) -> None:
        self.address_hash = address_hash
        self.message = message
        super().__init__(f"{address_hash}: {message}")


class GeocodingProviderError(Exception):
    """Raised when a geocoding provider experiences a transport or service error.

    Distinguishes provider failures (timeout, HTTP error, connection error)
    from a successful response with no match (which returns None).

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseGeocoder(ABC):
    """Abstract geocoder interface. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this geocoder provider."""

    @property
    def requires_api_key(self) -> bool:
        """Whether this provider requires an API key to function."""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @abstractmethod
    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a single address.

        Args:
            address: Normalized address string.

        Returns:
            GeocodingResult or None if the provider found no match.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
