"""
API v1 Router
"""

from fastapi import APIRouter
from . import organizations, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])


@router.get("/", tags=["API"])
async def api_root():
    """API root - returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/users/sync",
            "/users/me",
            "/users/context",
            "/users/org/{orgId}",
            "/users/{userId}",
            "/organizations",
            "/organizations/{orgId}",
        ],
    }
