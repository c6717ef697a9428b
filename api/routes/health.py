"""
Health Routes
Liveness check and startup cache inspection
"""
from fastapi import APIRouter
from datetime import datetime, timezone

from ..models.utility import HealthResponse, CachedSpacesResponse
from ..dependencies import get_cached_spaces

router = APIRouter()


@router.get("/api/health",
            tags=["Health"],
            response_model=HealthResponse,
            summary="Health check")
def health_check():
    """Basic health check endpoint - publicly accessible"""
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'))


@router.get("/api/debug/spaces",
            tags=["Health"],
            response_model=CachedSpacesResponse,
            summary="Show cached Confluence spaces",
            description="Spaces loaded from the configured Confluence account at server startup.")
def debug_spaces():
    spaces = get_cached_spaces()
    return CachedSpacesResponse(
        count=len(spaces),
        spaces=[{'key': space.get('key'), 'name': space.get('name')} for space in spaces]
    )
