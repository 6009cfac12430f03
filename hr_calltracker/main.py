"""
HR Call Tracker API

Auto-scheduling suggestions, call conflict checks and in-app notifications.
The lifespan owns the database bootstrap and the periodic re-analysis loop.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import hr_calltracker.models  # noqa: F401  Register tables before create_all
from hr_calltracker.core.config import settings
from hr_calltracker.core.exceptions import AppException
from hr_calltracker.core.logging import setup_logging
from hr_calltracker.database import init_db, SessionLocal
from hr_calltracker.dependencies import get_analytics_service, get_scheduling_engine
from hr_calltracker.routers.api_router import api_router
from hr_calltracker.services.analysis_scheduler import PeriodicAnalysis

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then run the analysis loop for the lifetime of the app."""
    logger.info(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    try:
        init_db()
    except Exception as e:
        logger.error(f"✗ Database initialization failed: {e}")
        raise
    logger.info(f"✓ Storage ready (backend: {settings.storage_backend})")

    analysis = None
    if settings.enable_auto_analysis:
        analysis = PeriodicAnalysis(
            engine=get_scheduling_engine(),
            analytics=get_analytics_service(),
            interval_seconds=settings.analysis_interval_minutes * 60,
        )
        analysis.start()
    else:
        logger.info("⚠ Periodic analysis disabled (ENABLE_AUTO_ANALYSIS=false)")

    yield

    if analysis is not None:
        await analysis.stop()
    logger.info(f"{settings.app_name} stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Suggests HR check-in calls and keeps the call calendar free of overlaps",
    lifespan=lifespan,
)

cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
if settings.environment == "development":
    cors_origins += ["http://localhost:5173", "http://127.0.0.1:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error envelope: {"success": false, "errors": [...]} ---

def _error_response(status_code: int, errors: List[Dict[str, Any]]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "errors": errors})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": str(error["loc"][-1]) if error["loc"] else "unknown", "msg": error["msg"]}
        for error in exc.errors()
    ]
    logger.warning(f"Rejected request to {request.url.path}: {errors}")
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, [{"msg": exc.message, "code": exc.error_code}])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, [{"msg": detail}])


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, [{"msg": "An unexpected server error occurred."}]
    )


app.include_router(api_router, prefix=settings.api_prefix)

# --- Operational endpoints (outside the API prefix) ---

@app.get("/", tags=["Health"])
def root():
    return {"message": "HR Call Tracker API", "version": settings.version, "docs": "/docs"}


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    """Readiness probe: the database behind the store and notifications must answer."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, [{"msg": "Service not ready"}])
    return {"status": "ready", "components": {"database": "connected"}}
