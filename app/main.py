"""FastAPI application bootstrap."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
import httpx
from httpx import Timeout
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from app.config import settings
from app.api.routes import router
from app.exceptions import SearchError
from app.services.inflight_registry import InflightRegistry
from app.services.jsearch_client import JSearchClient
from app.services.rate_limiter import TokenBucketRateLimiter
from app.services.search_cache import SearchCache
from app.utils.logging import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)

# Initialize Sentry if DSN provided
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.1,
        environment="production",
    )
    logger.info("Sentry initialized")


# Startup/shutdown lifecycle
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Job Search API")

    async with httpx.AsyncClient(timeout=Timeout(settings.upstream_timeout_seconds)) as http_client:
        cache = SearchCache()
        inflight = InflightRegistry()

        # Process-wide components, injected into routes through dependencies
        app.state.search_cache = cache
        app.state.inflight_registry = inflight
        app.state.rate_limiter = TokenBucketRateLimiter()
        app.state.jsearch_client = JSearchClient(http_client, cache, inflight)

        if not settings.has_api_key:
            logger.warning("RAPIDAPI_KEY is not set; searches will fail with CONFIGURATION_ERROR")

        logger.info(
            "Application startup complete",
            extra={
                "cache_ttl_seconds": settings.cache_ttl_seconds,
                "rate_limited_cache_ttl_seconds": settings.rate_limited_cache_ttl_seconds,
                "cache_max_items": settings.cache_max_items,
                "rate_limit_capacity": settings.rate_limit_capacity,
                "rate_limit_window_seconds": settings.rate_limit_window_seconds,
            }
        )

        yield

        logger.info("Shutting down Job Search API")

    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Job Search API",
    description="Aggregated job search with request coalescing, caching and rate limiting",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-cache", "x-inflight", "x-ratelimit-remaining", "Retry-After"],
)


@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError):
    """Render search errors as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers(),
    )


# Request validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(exc.errors())
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "error": str(exc),
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    )


# Include routers
app.include_router(router, prefix="/api/v1", tags=["Jobs"])
app.include_router(router, tags=["Jobs"], include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Job Search API",
        "version": "1.0.0",
        "status": "running"
    }
