from __future__ import annotations
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from threading import Lock
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ============================================================
# 🪵 Logging Setup
# ============================================================
logging.basicConfig(
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)
logger = logging.getLogger("pitchlab.app")

# ============================================================
# 📦 Core Imports (DB + Dependency Injection)
# ============================================================
from pitchlab.container import AppContainer, build_container
from pitchlab.core.errors import PitchLabError
from pitchlab.db.config import settings
from pitchlab.db.database import Database
from pitchlab.db.deps import enforce_admission
from pitchlab.db.schema import ensure_schema
from pitchlab.db.session import DatabasePool, ping_db

# ============================================================
# 🌐 Routers
# ============================================================
from pitchlab.router.batch_router import router as batch_router
from pitchlab.router.health import router as health_router
from pitchlab.router.seed_router import router as seed_router


# ============================================================
# ⚙️ Global State & Application Status
# ============================================================
class AppState:
    def __init__(self):
        self.startup_time = time.time()
        self.startup_complete = False
        self.sweep_task: Optional[asyncio.Task] = None
        self.last_sweep: Optional[float] = None
        self.swept_total = 0
        self.error: Optional[str] = None
        self.lock = Lock()

    def record_sweep(self, removed: int):
        with self.lock:
            self.last_sweep = time.time()
            self.swept_total += removed

    def set_error(self, error: str):
        with self.lock:
            self.error = error
            self.startup_complete = True

    def get_status(self):
        with self.lock:
            return {
                "startup_complete": self.startup_complete,
                "error": self.error,
                "last_sweep": self.last_sweep,
                "swept_total": self.swept_total,
                "uptime_seconds": time.time() - self.startup_time,
            }


app_state = AppState()


async def sweep_loop(container: AppContainer, interval: float):
    """Evict expired admission windows and idle sessions until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = container.admission_store.sweep() + container.session_store.sweep()
            app_state.record_sweep(removed)
            if removed:
                logger.debug(f"🧹 Swept {removed} expired entries")
        except Exception as e:
            logger.warning(f"⚠️ Sweep failed: {e}")


# ============================================================
# 🚀 Startup / Shutdown Lifecycle
# ============================================================
def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """
    Build the API. A prebuilt ``container`` skips database setup entirely,
    which is how tests and the in-memory backend run.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Initializing Pitch Lab API...")
        uses_db = container is None and settings.store_backend == "postgres"

        try:
            db = None
            if uses_db:
                await DatabasePool.init()
                ok, msg = await ping_db()
                if ok:
                    logger.info(f"✅ Database OK: {msg}")
                else:
                    logger.warning(f"⚠️ DB ping failed: {msg}")
                db = Database(DatabasePool.pool)
                await ensure_schema(db)

            app.state.container = container or build_container(settings, db=db)
            app_state.sweep_task = asyncio.create_task(
                sweep_loop(app.state.container, settings.sweep_interval_sec)
            )
            app_state.startup_complete = True
            logger.info("🎯 API is ready and accepting requests")
        except Exception as e:
            logger.error(f"❌ Startup failed: {e}", exc_info=True)
            app_state.set_error(f"Startup failed: {str(e)}")
            raise

        try:
            yield
        finally:
            try:
                if app_state.sweep_task and not app_state.sweep_task.done():
                    app_state.sweep_task.cancel()
                    try:
                        await app_state.sweep_task
                    except asyncio.CancelledError:
                        pass
                if uses_db:
                    await DatabasePool.close()
                logger.info("🧹 Application shutdown complete")
            except Exception as e:
                logger.warning(f"⚠️ Cleanup warning: {e}")

    # ============================================================
    # 🌍 FastAPI App Definition
    # ============================================================
    app = FastAPI(
        title="Pitch Lab API",
        description="Statcast reference ingestion and user pitch batch uploads",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # admission runs before routing, so throttled bodies are never parsed
    app.middleware("http")(enforce_admission)

    app.include_router(health_router)
    app.include_router(seed_router)
    app.include_router(batch_router)

    # ============================================================
    # ❗ Error mapping
    # ============================================================
    @app.exception_handler(PitchLabError)
    async def pitchlab_error_handler(request: Request, exc: PitchLabError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(x) for x in err.get('loc', ()))}: {err.get('msg', 'invalid value')}"
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details[:10]})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # ============================================================
    # 🆕 Status Endpoints
    # ============================================================
    @app.get("/status")
    async def get_app_status():
        """Application status with background sweep info"""
        status = app_state.get_status()
        system_status = "degraded" if status["error"] else "healthy"
        if not status["startup_complete"]:
            system_status = "initializing"
        return {
            "system_status": system_status,
            "store_backend": settings.store_backend if container is None else "custom",
            "timestamp": time.time(),
            **status,
        }

    @app.get("/")
    def root():
        return {
            "app": "Pitch Lab API",
            "version": "1.0.0",
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "readiness": "/health/ready",
                "status": "/status",
                "seed": "/seed",
                "seed_preview": "/seed/preview",
                "seed_job": "/seed/job",
                "batch_upload": "/pitches/batch",
            },
            "examples": {
                "seed": {
                    "method": "POST",
                    "path": "/seed",
                    "body": {"startDate": "2024-09-01", "endDate": "2024-09-30", "append": True},
                },
                "batch": {
                    "method": "POST",
                    "path": "/pitches/batch",
                    "body": {
                        "pitcher_id": 1,
                        "pitches": [{"pitch_type": "FF", "velocity_mph": 95.2, "spin_rate": 2300}],
                        "checkOnly": True,
                    },
                },
            },
        }

    return app


app = create_app()

# ============================================================
# 🏁 Entrypoint
# ============================================================
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Pitch Lab API on port 8080...")
    uvicorn.run(
        "pitchlab.main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_config=None,
    )
