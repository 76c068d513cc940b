"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import Settings
from .core.database import Database
from .core.exceptions import register_exception_handlers
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import (
    auth_router,
    bookings_router,
    categories_router,
    cities_router,
    export_router,
    metrics_router,
    reviews_router,
    tours_router,
    users_router,
)
from .schemas.health import HealthResponse, HealthStatus, ReadinessResponse
from .workers.manager import WorkerManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database
    workers: Optional[WorkerManager] = None

    logger.info("Starting FastAPI application")
    logger.info(f"Environment: {settings.environment}")

    try:
        setup_tracing(settings)
        setup_metrics(settings)
        instrument_sqlalchemy(database.engine)
        logger.info("Observability setup completed")

        # Production schemas are managed by Alembic
        if settings.is_sqlite or settings.debug:
            await database.create_all()
            logger.info("Database tables ensured")

        if settings.enable_workers:
            workers = WorkerManager(database, settings)
            await workers.start_all()
            logger.info("Background workers started successfully")
        app.state.workers = workers
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")

    try:
        if workers is not None:
            await workers.stop_all()
            logger.info("Background workers stopped")

        await database.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during application cleanup: {e}")

    logger.info("Application shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or Settings()

    setup_structured_logging(settings)
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app = FastAPI(
        title="Tourdesk API",
        description="Tour storefront API: catalog, bookings, payments, reviews and exports",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )
    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.workers = None

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition", "traceparent", "tracestate"],
    )

    setup_middleware(app, enable_logging=True)
    instrument_fastapi(app)
    register_exception_handlers(app)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=HealthResponse,
    )
    async def health_check():
        """Liveness probe; never touches the database."""
        return HealthResponse(
            status=HealthStatus.HEALTHY,
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            environment=settings.environment,
        )

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        response_model=ReadinessResponse,
    )
    async def readiness_check():
        """
        Readiness probe that runs ``SELECT 1`` against the database.

        Returns 503 while the database is unreachable.
        """
        try:
            await app.state.database.ping()
        except Exception as e:
            logger.warning("Readiness check failed", extra={"error": str(e)})
            body = ReadinessResponse(
                status=HealthStatus.NOT_READY,
                service=SERVICE_NAME,
                checks={"database": "unavailable"},
            )
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump(mode="json"))

        return ReadinessResponse(
            status=HealthStatus.READY,
            service=SERVICE_NAME,
            checks={"database": "ok"},
        )

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        workers = app.state.workers
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Tour storefront API",
            "environment": settings.environment,
            "currency": settings.currency,
            "workers": workers.get_worker_status() if workers else {},
            "features": {
                "authentication": True,
                "tracing": settings.otlp_endpoint is not None,
                "exports": ["pdf", "csv", "xlsx"],
            },
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "api": "/api/v1",
                "docs": None if settings.is_production else "/docs",
            },
        }

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(cities_router)
    app.include_router(categories_router)
    app.include_router(tours_router)
    app.include_router(bookings_router)
    app.include_router(reviews_router)
    app.include_router(export_router)
    app.include_router(metrics_router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = app.state.settings
    uvicorn.run(
        "tourdesk.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level.lower(),
        access_log=True,
    )
