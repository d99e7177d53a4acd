"""Root API router with /api/v1 prefix."""

from fastapi import APIRouter

from geocode_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from geocode_api.api.v1.geocoding import geocoding_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)

    @root_router.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "environment": settings.environment}

    root_router.include_router(geocoding_router)

    return root_router
