"""Health check API endpoints."""
from fastapi import APIRouter

from database import get_db_manager

router = APIRouter(tags=["health"])


@router.get("/")
def read_root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "BrightSteps Backend",
        "version": "1.0.0"
    }


@router.get("/health/db")
def database_health():
    """Database health check."""
    try:
        is_healthy = get_db_manager().health_check()

        if is_healthy:
            return {"status": "ok", "database": "connected"}
        else:
            return {"status": "error", "database": "connection_failed"}
    except Exception as e:
        return {"status": "error", "database": f"error: {str(e)}"}
