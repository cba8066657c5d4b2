from datetime import datetime, timezone

from fastapi import APIRouter
from tortoise import connections

from nft_sender.blockchain import chain_registry
from nft_sender.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "supported_chains": [c.value for c in chain_registry.get_supported_chains()],
    }


@router.get("/ready", summary="Readiness check")
async def readiness_check():
    """
    Readiness check - verifies dependencies are available.

    Checks the database connection and that a Crossmint base URL is configured.
    """
    checks = {}

    try:
        await connections.get("default").execute_query("SELECT 1")
        checks["database"] = True
    except Exception:
        checks["database"] = False

    checks["crossmint_api_url"] = bool(settings.crossmint_api_url)

    all_healthy = all(checks.values())

    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
