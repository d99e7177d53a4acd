"""Google Maps Geocoding API provider.

Uses the Google Maps Geocoding API
(https://developers.google.com/maps/documentation/geocoding/)
for address-to-coordinate resolution. Requires a server-side API key.
"""

import httpx
from loguru import logger

from geocode_api.lib.geocoder.base import BaseGeocoder, GeocodingProviderError, GeocodingResult

GOOGLE_API_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DEFAULT_TIMEOUT = 10.0

# Statuses Google documents as request or account failures
_ERROR_STATUSES = frozenset(
    {"REQUEST_DENIED", "OVER_QUERY_LIMIT", "OVER_DAILY_LIMIT", "INVALID_REQUEST", "UNKNOWN_ERROR"}
)


class GoogleMapsGeocoder(BaseGeocoder):
    """Google Maps geocoder provider.

    One ``httpx.AsyncClient`` is opened on first use and reused for every
    lookup until ``aclose`` is called.

    Args:
        api_key: Server-side key; the provider reports itself unconfigured without one.
        timeout: Transport timeout in seconds.
        region: Optional ccTLD region bias (e.g. ``ca``).
    """

    def __init__(
        self,
        api_key: str | None,
        timeout: float = DEFAULT_TIMEOUT,
        region: str | None = None,
    ) -> None:
        self._api_key = api_key or ""
        self._timeout = timeout
        self._region = region
        self._client: httpx.AsyncClient | None = None

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode an address using the Google Maps API.

        Args:
            address: Normalized address string.

        Returns:
            GeocodingResult or None if Google found no match.

        Raises:
            GeocodingProviderError: On transport, HTTP or API-status errors.
        """
        params = {"address": address, "key": self._api_key}
        if self._region:
            params["region"] = self._region

        try:
            response = await self._http().get(GOOGLE_API_URL, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("Google geocoder request timed out")
            raise GeocodingProviderError("google", "Geocoding request timed out") from e
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            logger.warning(f"Google geocoder answered HTTP {code}")
            raise GeocodingProviderError("google", f"Provider returned HTTP {code}", status_code=code) from e
        except httpx.TransportError as e:
            logger.warning(f"Google geocoder transport failure: {type(e).__name__}")
            raise GeocodingProviderError("google", "Connection to geocoding provider failed") from e

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingProviderError("google", "Response body is not JSON") from e
        return self._parse_response(data)

    def _parse_response(self, data: dict) -> GeocodingResult | None:
        """Turn a Geocoding API payload into the best match.

        Raises:
            GeocodingProviderError: On error statuses or a result without a usable location.
        """
        api_status = data.get("status", "UNKNOWN")

        if api_status == "ZERO_RESULTS":
            return None
        if api_status in _ERROR_STATUSES:
            raise GeocodingProviderError("google", f"API error: {data.get('error_message', api_status)}")
        if api_status != "OK":
            raise GeocodingProviderError("google", f"Unexpected API status: {api_status}")

        results = data.get("results") or []
        if not results:
            return None

        best = results[0]
        try:
            location = best["geometry"]["location"]
            return GeocodingResult(
                latitude=float(location["lat"]),
                longitude=float(location["lng"]),
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Unusable Google geocoder result: {e}")
            raise GeocodingProviderError("google", f"Failed to parse response: {e}") from e
