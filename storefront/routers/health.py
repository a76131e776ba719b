"""
Liveness and readiness probes
"""
import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.concurrency import run_in_threadpool

from ..core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "storefront-backend"


@router.get("/healthz")
async def healthz():
    """Liveness check: only verifies the HTTP server is running. Never fails."""
    return {"ok": True, "service": SERVICE_NAME, "status": "healthy"}


def _ping_database() -> None:
    from ..db import get_engine
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1")).fetchone()


@router.get("/readyz")
async def readyz():
    """Readiness check: 200 when storage is reachable, 503 otherwise."""
    checks = {"database": {"status": "unknown", "error": None}}

    if settings.STORAGE_BACKEND == "memory":
        checks["database"]["status"] = "skipped"
    else:
        try:
            await asyncio.wait_for(run_in_threadpool(_ping_database), timeout=2.0)
            checks["database"]["status"] = "ok"
        except asyncio.TimeoutError:
            checks["database"] = {"status": "error", "error": "Database check timed out after 2s"}
            logger.error("[READYZ] Database check timed out after 2s")
        except Exception as e:
            checks["database"] = {"status": "error", "error": str(e)}
            logger.error(f"[READYZ] Database check failed: {e}")

    ready = all(check["status"] in ("ok", "skipped") for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"ready": ready, "checks": checks},
    )
