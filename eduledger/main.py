from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.config import settings
from .core.database import close_db_connections
from .core.cache import cache_manager
from .core.errors import register_exception_handlers
from .core.logging import setup_logging

from .routers import health, attendance, grades, roster, notifications

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")

    if settings.cache_enabled:
        await cache_manager.connect()
        logger.info("Cache initialized")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await cache_manager.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")

app = FastAPI(
    title="EduLedger - Assessment & Attendance Tracking",
    description="Attendance ledger, grade book and notification fan-out for class rosters",
    version=settings.app_version,
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(attendance.router)
app.include_router(grades.router)
app.include_router(roster.router)
app.include_router(notifications.router)

@app.get("/")
async def root():
    return {
        "message": "EduLedger API",
        "version": settings.app_version,
        "features": ["Attendance Ledger", "Grade Book", "Notification Fan-out", "Redis Caching"],
        "status": "active"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("eduledger.main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
