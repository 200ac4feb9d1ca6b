"""Nexus Server - FastAPI application."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nexus.api import (
    ai_router, auth_router, config_router,
    content_router, files_router, users_router,
)
from nexus.config import Settings, get_settings
from nexus.errors import NexusError
from nexus.services import Services, build_services


logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def nexus_error_handler(request: Request, exc: NexusError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error(exc.status_code, exc.message, headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error(exc.status_code, message, getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return _error(400, f"{location}: {message}" if location else message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[Services] = None,
) -> FastAPI:
    """Build the application; tests pass their own services."""
    settings = settings or get_settings()
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - prepare the key-value store on startup."""
        await services.kv.init()
        yield
        await services.kv.close()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Media portal backend with accounts and credit-gated AI generation",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["Content-Type", "x-admin-password", "Range", "Authorization"],
        expose_headers=["Content-Length", "Content-Range", "Accept-Ranges", "ETag"],
        max_age=86400,
    )

    app.add_exception_handler(NexusError, nexus_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(auth_router)
    app.include_router(ai_router)
    app.include_router(users_router)
    app.include_router(config_router)
    app.include_router(content_router)
    app.include_router(files_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "nexus-api"}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": f"{settings.app_name} API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


settings = get_settings()
configure_logging(settings)
app = create_app(settings)
