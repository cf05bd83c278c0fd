"""FastAPI application for daily check-ins and rewards."""
import os

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.api.v1.router import api_router
from app.core.cache import global_cache
from app.core.config import settings
from app.core.exceptions import CONFIG_ERROR_DETAIL, PersistenceError
from app.core.logging_config import get_logger, setup_logging
from app.core.rate_limit import limiter
from app.engine import InvalidConfigError
from app.middleware import LoggingMiddleware
from app.services.config import get_active_config

setup_logging(level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)

if settings.ENVIRONMENT == "production":
    settings.validate_production_config()

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(InvalidConfigError)
async def invalid_config_handler(request: Request, exc: InvalidConfigError) -> JSONResponse:
    """A company's stored check-in settings failed validation; an admin has to fix them."""
    logger.error("invalid_check_in_config", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": CONFIG_ERROR_DETAIL})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Outermost middleware: every request gets an ID before anything else runs
app.add_middleware(LoggingMiddleware)


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-API-Version"] = settings.APP_VERSION
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # admin dashboard authenticates with a cookie
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-API-Version"],
)

app.include_router(api_router)

logger.info(
    "application_started",
    app_title=settings.APP_TITLE,
    app_version=settings.APP_VERSION,
    environment=settings.ENVIRONMENT,
)


def _memory_usage() -> dict:
    try:
        import psutil
    except ImportError:
        return {"status": "psutil not installed"}

    try:
        process = psutil.Process(os.getpid())
        rss = process.memory_info().rss
        return {"rss_mb": round(rss / 1024 / 1024, 2), "percent": round(process.memory_percent(), 2)}
    except psutil.Error as e:
        logger.warning("health_check_memory_error", error=str(e))
        return {"error": "unable to read"}


def _check_in_config_status(db: Session) -> str:
    """Whether the default company's check-in rules load; a bad config blocks every check-in."""
    try:
        get_active_config(db, settings.DEFAULT_COMPANY_ID, global_cache)
    except InvalidConfigError as e:
        return f"invalid: {e}"
    return "valid"


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Liveness and readiness probe.

    Reports database connectivity, whether the default company's check-in
    configuration is usable, cache statistics and (with psutil installed)
    process memory. Only an unreachable database makes the service unhealthy
    (503); an invalid check-in configuration is reported as ``degraded``.
    """
    health = {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "database": {"status": "connected"},
        "cache": global_cache.get_stats(),
        "memory": _memory_usage(),
    }

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        health["status"] = "unhealthy"
        health["database"]["status"] = f"error: {e}"
        logger.error("health_check_failed", error=str(e))
        raise HTTPException(status_code=503, detail=health)

    health["check_in_config"] = _check_in_config_status(db)
    if health["check_in_config"] != "valid":
        health["status"] = "degraded"

    return health
