"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from . import __version__
from .clients.catalog_client import CatalogClient, build_catalog_client
from .core.config import settings
from .core.database import async_session_factory, close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    validation_exception_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import availability, booking, estimate, health, metrics, package, property

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    logger.info("Starting booking engine")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")

    try:
        # Setup observability
        setup_tracing(settings.otlp_endpoint)
        setup_metrics(settings.otlp_endpoint)
        instrument_sqlalchemy(engine)
        logger.info("Observability setup completed")

        # Initialize database
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down booking engine")

    try:
        await app.state.catalog_client.aclose()
        logger.info("Catalog client closed")

        # Close database connections
        await close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during application cleanup: {e}")

    logger.info("Application shutdown complete")


def create_app(catalog_client: CatalogClient | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        catalog_client: External catalog client, built from settings when omitted

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Stay Booking Engine",
        description="RPC-over-HTTP API resolving property packages, pricing stays and booking free dates",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.catalog_client = catalog_client or build_catalog_client()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "traceparent", "tracestate"],
    )

    # Setup custom middleware
    setup_middleware(app, enable_logging=True)

    # Instrument FastAPI with OpenTelemetry
    instrument_fastapi(app)

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        description="Check if the service is healthy and responsive",
        response_model=dict,
    )
    async def health_check():
        """Health check endpoint that returns service status."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": __version__,
            "environment": settings.environment,
            "debug": settings.debug,
        }

    @app.get(
        "/ready",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Readiness Check",
        description="Check if the service is ready to accept requests",
        response_model=dict,
    )
    async def readiness_check():
        """
        Readiness check endpoint that verifies the database is reachable.

        Returns:
            dict: Readiness status information
        """
        database = "ok"
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Readiness database check failed", extra={"error": str(e)})
            database = "unavailable"

        return {
            "status": "ready" if database == "ok" else "not_ready",
            "service": SERVICE_NAME,
            "checks": {
                "database": database,
                "external_catalog": "configured" if settings.external_catalog_url else "disabled",
            },
        }

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        description="Get detailed information about the service",
        response_model=dict,
    )
    async def service_info():
        """Service information endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "description": "Package resolution, pricing and availability engine for rentable properties",
            "environment": settings.environment,
            "debug": settings.debug,
            "features": {
                "external_catalog": bool(settings.external_catalog_url),
                "catalog_cache_ttl_seconds": settings.catalog_cache_ttl_seconds,
                "tracing": True,
                "problem_details": True,
            },
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
            },
        }

    # Register API routers
    app.include_router(health.router)
    app.include_router(property.router)
    app.include_router(package.router)
    app.include_router(estimate.router)
    app.include_router(availability.router)
    app.include_router(booking.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stay_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
