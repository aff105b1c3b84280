"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...services.routing.directions_client import check_health as provider_health_check
from ..deps import get_mapping_provider

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/provider", status_code=status.HTTP_200_OK)
async def health_provider() -> dict:
    """Check whether the mapping provider is configured and reachable."""
    result = await provider_health_check(get_mapping_provider())
    return {"service": "directions", **result}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and route cache table status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set FSR_SUPABASE_URL and FSR_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table("route_cache").select("route_key", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
