"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contract_intel import __version__
from contract_intel.api.dependencies import Services, build_services
from contract_intel.config import Settings, get_settings
from contract_intel.exceptions import (
    ContractIntelError,
    EmptyContentError,
    ExtractionFailedError,
    NotFoundError,
    ValidationError,
)
from contract_intel.utils.logging_config import configure_logging

logger = structlog.get_logger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    EmptyContentError: 400,
    ExtractionFailedError: 400,
    ValidationError: 400,
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(
    settings: Settings | None = None,
    services: Services | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        # Startup
        configure_logging(settings.log_level, settings.log_json)
        logger.info("application_starting")

        settings.ensure_directories()
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(settings)

        logger.info(
            "configuration_loaded",
            environment=settings.environment,
            debug=settings.debug,
            ai_enabled=app.state.services.llm.available,
            email_enabled=settings.email_enabled,
            redis_enabled=settings.redis_enabled,
        )

        yield

        # Shutdown
        logger.info("application_shutting_down")
        await app.state.services.orchestrator.wait_for_notifications()
        close = getattr(app.state.services.store, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title="Contract Intelligence API",
        description="AI analysis of legal contracts: extraction, risk, compliance and pricing",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ContractIntelError)
    async def contract_error_handler(request: Request, exc: ContractIntelError) -> JSONResponse:
        status_code = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
        )
        if status_code == 500:
            logger.error("request_failed", path=request.url.path, error=str(exc))
            return _error(500, "Internal server error")
        return _error(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid input") if errors else "invalid input"
        return _error(400, f"Validation failed: {detail}")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return _error(500, str(exc) if settings.debug else "Internal server error")

    # Include routers
    from contract_intel.api.routes import contracts

    app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"])

    # Health check
    @app.get("/health")
    async def health_check(request: Request) -> dict:
        """Health check endpoint."""
        services: Services = request.app.state.services
        return {
            "ok": True,
            "data": {
                "status": "healthy",
                "environment": settings.environment,
                "ai_enabled": services.llm.available,
                "email_enabled": settings.email_enabled,
            },
        }

    # Root endpoint
    @app.get("/")
    async def root() -> dict:
        """Root endpoint."""
        return {
            "ok": True,
            "data": {
                "name": "Contract Intelligence API",
                "version": __version__,
                "endpoints": {
                    "contracts": "/api/contracts",
                    "health": "/health",
                },
            },
        }

    return app
