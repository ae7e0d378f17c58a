"""
Fellowship engagement service
Telemetry intake, completion gating, points ledger and facilitator dashboards
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from fellowship.config import settings
from fellowship.database import init_db
from fellowship.api import achievements, facilitator, resources, users
from fellowship.services.exceptions import EngagementServiceError
from fellowship.utils.cache import cache_service
from fellowship.utils.rate_limiter import rate_limiter

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Engagement scoring, completion gating and capped points for fellowship cohorts",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Per-client request limit; telemetry has its own per-user limit"""
    if request.url.path not in UNLIMITED_PATHS:
        try:
            await rate_limiter.check_rate_limit(request)
        except HTTPException as e:
            return JSONResponse(status_code=e.status_code, content=e.detail)

    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and timing; expose timing as a header"""
    started = time.time()
    response = await call_next(request)
    elapsed = time.time() - started

    response.headers["X-Process-Time"] = f"{elapsed:.3f}"
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")

    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Wrap every HTTP error in one envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(EngagementServiceError)
async def service_exception_handler(request: Request, exc: EngagementServiceError):
    """Domain errors a router did not translate"""
    logger.warning(f"Untranslated service error on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=400,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "status_code": 400
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "detail": str(exc) if settings.DEBUG else None
        }
    )


@app.get("/health")
async def health_check():
    """Liveness plus cache availability (the service runs without Redis)"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "cache": "connected" if cache_service.redis_client else "disabled",
        "timestamp": time.time()
    }


@app.get("/")
async def root():
    return {
        "message": "Fellowship Engagement & Gamification API",
        "version": settings.APP_VERSION,
        "endpoints": [
            resources.router.prefix,
            users.router.prefix,
            achievements.router.prefix,
            facilitator.router.prefix
        ],
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(resources.router)
app.include_router(users.router)
app.include_router(achievements.router)
app.include_router(facilitator.router)


@app.on_event("startup")
async def startup_event():
    """Create tables and log the active completion gate"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info(
        f"Completion gate: video>={settings.VIDEO_WATCH_THRESHOLD}%, "
        f"article>={settings.ARTICLE_SCROLL_THRESHOLD}%, "
        f"quality>={settings.MIN_ENGAGEMENT_QUALITY}; "
        f"default monthly cap {settings.DEFAULT_MONTHLY_POINTS_CAP}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fellowship.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
