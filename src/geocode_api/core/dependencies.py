"""FastAPI dependency injection for the geocode resolver."""

from fastapi import HTTPException, Request, status

from geocode_api.lib.geocoder import BatchResolver


def get_resolver(request: Request) -> BatchResolver:
    """Return the process-wide BatchResolver created during application startup.

    Raises:
        HTTPException: 503 if the application lifespan has not created a resolver.
    """
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Geocoding service is not initialized.",
        )
    return resolver
