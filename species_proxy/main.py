"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests build their own instances with dependency overrides

2. Lifespan Events
   - startup: connect the shared Redis store, open the upstream HTTP client
   - shutdown: close both

3. Exception Handlers
   - Domain exceptions become the fixed client-visible responses
   - Details are logged server-side and never returned
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from species_proxy.config import get_settings
from species_proxy.dependencies import species_rate_limit_rule
from species_proxy.exceptions import (
    CacheLookupFailure,
    RateLimitExceeded,
    ServiceNotReady,
    StoreUnavailable,
    UpstreamFetchFailure,
)
from species_proxy.routers import species_router
from species_proxy.services.rate_limiter import rate_limit_exceeded_handler
from species_proxy.services.store import SpeciesStore

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DATA_UNAVAILABLE = "Data unavailable"


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield runs on startup, code after yield on shutdown.

    The store is connected here before any request is served. If Redis is
    down at startup the app still starts; the readiness gate in
    dependencies.get_store answers 503 until the connection succeeds.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")

    store = SpeciesStore(settings.redis_url, socket_timeout=settings.redis_socket_timeout)
    try:
        await store.start()
        logger.info("Redis store connected - caching and rate limiting enabled")
    except StoreUnavailable:
        logger.warning("Redis unavailable - requests will be rejected until it is reachable")
    app.state.store = store

    app.state.http_client = httpx.AsyncClient(timeout=settings.upstream_timeout)

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    await app.state.http_client.aclose()
    await store.stop()


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Rate-limited proxy for the FishWatch species API. "
            "Responses are cached in Redis for a few seconds."
        ),
        version=settings.api_version,
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(UpstreamFetchFailure)
    async def upstream_fetch_failure_handler(
        request: Request,
        exc: UpstreamFetchFailure,
    ) -> PlainTextResponse:
        """Upstream, empty-result or cache population failure: 404 "Data unavailable"."""
        logger.error(f"Species fetch failed: {exc.message} {exc.context}")
        return PlainTextResponse(DATA_UNAVAILABLE, status_code=404)

    @app.exception_handler(CacheLookupFailure)
    async def cache_lookup_failure_handler(
        request: Request,
        exc: CacheLookupFailure,
    ) -> Response:
        """Cache read or decode failure: empty 404."""
        logger.error(f"Cache lookup failed: {exc.message} {exc.context}")
        return Response(status_code=404)

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(
        request: Request,
        exc: StoreUnavailable,
    ) -> JSONResponse:
        """Redis unreachable under the fail-closed policy."""
        logger.error(f"Key-value store unavailable: {exc.message} {exc.context}")
        return JSONResponse(
            status_code=503,
            content={"message": "Service temporarily unavailable"},
        )

    @app.exception_handler(ServiceNotReady)
    async def service_not_ready_handler(
        request: Request,
        exc: ServiceNotReady,
    ) -> JSONResponse:
        logger.warning(f"Request rejected, service not ready: {exc.message}")
        return JSONResponse(
            status_code=503,
            content={"message": "Service is starting up"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    app.include_router(species_router)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and Redis is reachable.",
    )
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint for load balancers and monitoring.

        Reports "degraded" instead of failing when Redis is unreachable.
        """
        store = getattr(request.app.state, "store", None)
        store_connected = store is not None and await store.ping()
        rule = species_rate_limit_rule(settings)

        return {
            "status": "healthy" if store_connected else "degraded",
            "app": settings.app_name,
            "version": settings.api_version,
            "store": {"status": "connected" if store_connected else "disconnected"},
            "cache": {"ttl": settings.cache_ttl},
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "endpoint": rule.endpoint,
                "window_seconds": rule.window_seconds,
                "max_requests": rule.max_requests,
                "store_failure_policy": settings.store_failure_policy,
            },
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn species_proxy.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m species_proxy.main (PORT overrides the default 3000)

def run() -> None:
    """Run the development server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "species_proxy.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
