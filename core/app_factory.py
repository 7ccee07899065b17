"""
FastAPI application factory and lifecycle wiring.

Keeps app assembly separate from route/business modules for easier maintenance.
"""

# Standard library
import asyncio
import logging
import os
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

# Third-party
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from core.config import Settings, get_settings
from core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    upstream_error_handler,
    validation_exception_handler,
)
from core.providers import ProviderRegistry, configure_providers, should_use_fake_providers
from core.services import ServiceContainer, build_services, run_periodic_sweep
from translation.errors import UpstreamError

logger = logging.getLogger(__name__)

_DEFAULT_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
    "http://localhost:3000",  # React CRA
    "http://127.0.0.1:3000",
]
_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"]
_EXPOSE_HEADERS = ["Content-Disposition", "X-Request-Id"]


def _load_environment() -> None:
    """Load environment variables from config.env."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    dotenv_path = os.path.join(project_root, "config.env")
    load_dotenv(dotenv_path=dotenv_path)


def _configure_logging(settings: Settings) -> None:
    """Configure application logging and key environment visibility."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"DEEPLX_API_URL: {settings.deeplx_api_url}")
    logger.info(f"ADMIN_TOKEN: {'Loaded' if settings.admin_token else 'Not Found'}")
    logger.info(f"DEV_MODE: {settings.dev_mode}")
    logger.info(f"USE_FAKE_PROVIDERS: {should_use_fake_providers()}")


def _get_cors_origins() -> list[str]:
    """Return CORS origins from env or secure defaults."""
    raw_origins = os.getenv("CORS_ORIGINS", "")
    if raw_origins:
        origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        if origins:
            logger.info(f"CORS: Using env origins: {origins}")
            return origins
        logger.warning("CORS_ORIGINS is set but empty after parsing; using defaults")

    logger.info("CORS: Using development origins (set CORS_ORIGINS for production)")
    return list(_DEFAULT_ORIGINS)


def _configure_cors(app: FastAPI) -> None:
    """Attach CORS middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=True,
        allow_methods=list(_ALLOWED_METHODS),
        allow_headers=["*"],  # X-Session-Token, X-Admin-Token
        expose_headers=list(_EXPOSE_HEADERS),  # For file downloads
    )


def _register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def _register_middlewares(app: FastAPI) -> None:
    """Register middleware components."""

    @app.middleware("http")
    async def request_id_middleware(
        request: Request, call_next
    ) -> Response:
        request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response


def _register_routers(app: FastAPI) -> None:
    """Register all API routers with existing prefixes."""
    from documents.router import router as documents_router
    from sessions.router import router as sessions_router
    from translation.router import router as translation_router

    app.include_router(translation_router, prefix="/translate", tags=["Text Translation"])
    app.include_router(documents_router, prefix="/documents", tags=["Document Translation"])
    app.include_router(sessions_router, prefix="/auth/sessions", tags=["Access Sessions"])


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan hook: expiry sweeper on startup, queue drain on shutdown."""
    services: ServiceContainer = app.state.services
    logger.info("=== Application Startup ===")
    sweeper = asyncio.create_task(
        run_periodic_sweep(services, services.settings.sweep_interval_seconds)
    )
    logger.info(
        f"Expiry sweep every {services.settings.sweep_interval_seconds}s "
        f"(ttl={services.settings.job_ttl_seconds}s)"
    )
    try:
        yield
    finally:
        logger.info("=== Application Shutdown ===")
        sweeper.cancel()
        await asyncio.gather(sweeper, return_exceptions=True)
        await services.shutdown()


async def read_root() -> dict[str, str]:
    """Health check endpoint."""
    return {"message": "Welcome to the Large-Text & Document Translation API."}


def create_app(
    registry: Optional[ProviderRegistry] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        registry: Providers to wire in. Defaults to the env-selected registry.
        settings: Settings snapshot. Defaults to the cached env settings.
    """
    _load_environment()
    settings = settings or get_settings()
    _configure_logging(settings)
    registry = registry or configure_providers()

    app = FastAPI(
        title="Large-Text & Document Translation API",
        description="Chunked, retrying, queued machine translation for text and documents",
        version="1.0.0",
        lifespan=app_lifespan,
    )
    app.state.services = build_services(registry, settings)
    _configure_cors(app)
    _register_middlewares(app)
    _register_error_handlers(app)
    _register_routers(app)
    app.add_api_route("/", read_root, methods=["GET"])
    return app
