"""
Health router - liveness and diagnostics endpoints, mounted at the root
without authentication.
"""

import logging
import platform
import sys
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from gearguard.schemas import success

logger = logging.getLogger(__name__)

router = APIRouter()

MEMORY_DEGRADED_PERCENT = 90
DB_DEGRADED_MS = 1000

MB = 1024 * 1024


def _uptime(request: Request) -> float:
    return round(time.monotonic() - request.app.state.started_at, 2)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def probe_database(engine) -> dict:
    """Run ``SELECT 1`` and time it"""
    start = time.perf_counter()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        return {"status": "down", "error": str(e)}
    return {"status": "up", "responseTime": round((time.perf_counter() - start) * 1000)}


def overall_status(database: dict, memory_percentage: float) -> str:
    if database["status"] == "down":
        return "unhealthy"
    if memory_percentage > MEMORY_DEGRADED_PERCENT or database.get("responseTime", 0) > DB_DEGRADED_MS:
        return "degraded"
    return "healthy"


@router.get("/health")
def health_check(request: Request):
    """
    Health check endpoint for monitoring.

    Returns 503 when the database is unreachable; a slow database or
    memory pressure only degrades the status.
    """
    settings = request.app.state.settings
    database = probe_database(request.app.state.engine)

    memory = psutil.virtual_memory()
    status = overall_status(database, memory.percent)

    result = {
        "status": status,
        "timestamp": _timestamp(),
        "uptime": _uptime(request),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "services": {
            "database": database,
            "memory": {
                "total": round(memory.total / MB),
                "used": round(memory.used / MB),
                "percentage": round(memory.percent),
            },
        },
    }

    return JSONResponse(
        status_code=503 if status == "unhealthy" else 200,
        content=success(result)
    )


@router.get("/ping")
def ping():
    return {"status": "success", "message": "pong", "timestamp": _timestamp()}


@router.get("/system")
def system_info(request: Request):
    """Interpreter, platform and process memory details"""
    memory = psutil.Process().memory_info()
    return success({
        "pythonVersion": sys.version.split()[0],
        "platform": sys.platform,
        "arch": platform.machine(),
        "env": request.app.state.settings.ENVIRONMENT,
        "uptime": _uptime(request),
        "memoryUsage": {
            "rss": f"{round(memory.rss / MB)} MB",
            "vms": f"{round(memory.vms / MB)} MB",
        },
    })
