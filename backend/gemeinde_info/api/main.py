"""
FastAPI application factory and main entry point.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gemeinde_info.api.middleware import WideEventMiddleware
from gemeinde_info.api.routes import health, municipality, school
from gemeinde_info.core.config import settings
from gemeinde_info.core.exceptions import DatasetError, GemeindeInfoException, NotFoundError
from gemeinde_info.core.logging import configure_logging
from gemeinde_info.db import close_db, get_db_session, init_db
from gemeinde_info.db.seeder import seed_municipalities
from gemeinde_info.services.authority_info import build_authority_info_service
from gemeinde_info.services.http_client import create_http_client

configure_logging(
    json_logs=not settings.debug,
    log_level="DEBUG" if settings.debug else "INFO",
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Starting Gemeinde Info API", version=settings.app_version, storage=settings.storage_backend)

    if settings.storage_backend == "database":
        await init_db()
        if settings.seed_on_startup:
            async with get_db_session() as db:
                await seed_municipalities(db)

    client = create_http_client(settings)
    app.state.authority_info_service = build_authority_info_service(client, settings)

    yield

    logger.info("Shutting down Gemeinde Info API")
    await client.aclose()
    if settings.storage_backend == "database":
        await close_db()
        logger.info("Database connections closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Swiss municipality resolution and office information",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Canonical log line per request
    app.add_middleware(WideEventMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(municipality.router, prefix="/api/v1/municipality", tags=["Municipality"])
    app.include_router(school.router, prefix="/api/v1/school", tags=["School"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI validation errors"""
        logger.warning("Validation error", url=str(request.url), errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "message": "Validation failed",
                    "type": "validation_error",
                    "details": exc.errors(),
                }
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(request: Request, exc: NotFoundError):
        """Resolution exhausted every tier"""
        logger.info("Municipality not found", url=str(request.url), query=exc.query)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "message": exc.message,
                    "type": exc.code,
                    "hint": exc.hint,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(DatasetError)
    async def dataset_exception_handler(request: Request, exc: DatasetError):
        """Handle dataset store errors"""
        logger.error("Dataset error", url=str(request.url), error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "Municipality dataset unavailable"},
        )

    @app.exception_handler(GemeindeInfoException)
    async def app_exception_handler(request: Request, exc: GemeindeInfoException):
        """Handle custom app exceptions"""
        logger.error("App error", url=str(request.url), message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "message": exc.message,
                    "type": exc.code,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        logger.error("Unexpected error", url=str(request.url), error=str(exc), exc_info=True)

        # Don't expose internal details in production
        message = str(exc) if settings.debug else "An unexpected error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": message,
                    "type": "internal_server_error",
                }
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gemeinde_info.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
