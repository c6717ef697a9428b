"""
Routes Package
Aggregate all route routers
"""
from fastapi import APIRouter

# Import all routers
from .health import router as health_router
from .uploads import router as uploads_router
from .jira_operations import router as jira_operations_router
from .epics import router as epics_router
from .releases import router as releases_router
from .confluence import router as confluence_router
from .translation import router as translation_router

# Create main router
api_router = APIRouter()

# Include all routers
api_router.include_router(health_router)
api_router.include_router(uploads_router)
api_router.include_router(jira_operations_router)
api_router.include_router(epics_router)
api_router.include_router(releases_router)
api_router.include_router(confluence_router)
api_router.include_router(translation_router)
