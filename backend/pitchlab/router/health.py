# backend/pitchlab/router/health.py
from __future__ import annotations
import logging
import time

from fastapi import APIRouter, HTTPException, Request

from pitchlab.db.config import settings
from pitchlab.db.session import DatabasePool, ping_db

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)

startup_time = time.time()


@router.get("/health")
async def health_check():
    """Basic health check - service is running"""
    return {"status": "ok", "uptime_seconds": int(time.time() - startup_time)}


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness check - container wired and, for Postgres, the pool answering"""
    if getattr(request.app.state, "container", None) is None:
        raise HTTPException(status_code=503, detail="Service starting up")
    if settings.store_backend == "postgres" and DatabasePool.pool is not None:
        ok, message = await ping_db()
        if not ok:
            raise HTTPException(status_code=503, detail=f"Database unavailable: {message}")
    return {"status": "ready"}


@router.get("/db-ping")
async def db_ping():
    """Simple DB connectivity test."""
    ok, message = await ping_db()
    return {"ok": ok, "message": message}
