"""Health and readiness endpoints for monitoring.

Provides:
- /health - Basic liveness check
- /ready - Readiness check with storage connectivity
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.api.deps import get_provider, get_repository
from app.data.providers import QuoteProvider
from app.data.repository import PortfolioRepository
from config.settings import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness check: healthy whenever the application is running."""
    return {"status": "healthy"}


@router.get("/ready")
def ready(
    repo: PortfolioRepository = Depends(get_repository),
    provider: QuoteProvider = Depends(get_provider),
):
    """Readiness check against the database and configured providers.

    Returns:
        JSON with status ("ready" or "not_ready") and check details
    """
    checks = {}

    try:
        repo.ping()
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        checks["database"] = f"error: {str(e)}"

    settings = get_settings()
    checks["storage_backend"] = settings.storage_backend
    checks["quote_provider"] = provider.name

    return {
        "status": "ready" if checks["database"] == "ok" else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
