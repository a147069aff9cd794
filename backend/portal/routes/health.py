"""
Health check endpoint.
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from portal import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }
