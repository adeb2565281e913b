"""Health check endpoints"""
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from roleboard import __version__
from roleboard.api.deps import get_storage
from roleboard.storage import Storage

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


@router.get("")
def health_check(storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    """
    Basic health check endpoint

    Returns 200 if service is running, in either storage mode
    """
    return {
        "status": "healthy",
        "service": "Roleboard",
        "version": __version__,
        "storage_mode": storage.mode,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/ready")
def readiness_check(storage: Storage = Depends(get_storage)):
    """
    Readiness check - verifies the persistent store when it is in use

    Memory mode is reported as ready but degraded: writes are not durable.
    Returns 503 if the persistent store is configured but unreachable.
    """
    checks = {
        "storage_mode": storage.mode,
        "database": False,
        "database_latency_ms": None
    }

    if not storage.persistent_available():
        return {
            "status": "degraded",
            "checks": checks,
            "message": "Running on in-memory storage; data is not durable",
            "timestamp": datetime.utcnow().isoformat()
        }

    try:
        latency_ms = storage.connection.ping()
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Database check failed: {str(e)}"
            },
        )

    if latency_ms > 1000:
        return JSONResponse(
            status_code=503,
            content={
                "status": "degraded",
                "checks": checks,
                "message": "Database latency is high"
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Returns 200 if process is alive
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": datetime.utcnow().isoformat()
    }
