"""
mailbridge.api.main - FastAPI Application Factory

Creates and configures the FastAPI application for the mail gateway.

Usage:
    # Development
    uvicorn mailbridge.api.main:app --reload

    # Production
    uvicorn mailbridge.api.main:app --host 0.0.0.0 --port 3000

Environment Variables:
    APP_SECRET_KEY: Shared secret every caller sends as x-api-key
    ALLOWED_ORIGINS: Comma-separated list of allowed CORS origins (default "*")
"""

import hmac
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mailbridge import __version__
from mailbridge.api.router import api_router
from mailbridge.integrations.email import ProviderError, get_cursor_cache
from mailbridge.services import MailGateway
from mailbridge.settings import MailBridgeSettings, get_settings

logger = logging.getLogger(__name__)

# Paths reachable without an API key
PUBLIC_PATHS = frozenset({"/health"})


def error_body(error: str, details: str, provider: str | None = None) -> dict[str, str]:
    """Build the JSON error envelope shared by every failure response."""
    body = {"error": error, "details": details}
    if provider is not None:
        body["provider"] = provider
    return body


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Opens the shared upstream HTTP client on startup,
    closes it on shutdown.
    """
    settings: MailBridgeSettings = app.state.settings
    logger.info("Starting mailbridge API server...")

    client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    app.state.http_client = client
    app.state.gateway = MailGateway(client, settings, get_cursor_cache())
    logger.info(f"Upstream client ready (timeout={settings.upstream_timeout_seconds}s)")

    yield

    logger.info("Shutting down mailbridge API server...")
    await client.aclose()
    logger.info("Upstream client closed")


def create_app(settings: MailBridgeSettings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to serve with (defaults to get_settings())

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="mailbridge API",
        description="Unified gateway over Gmail, Outlook and Postmark",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    if not settings.app_secret_key:
        logger.warning("APP_SECRET_KEY is not set; every API request will be rejected")

    @app.middleware("http")
    async def verify_api_key(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        supplied = request.headers.get("x-api-key", "")
        expected = settings.app_secret_key
        if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
            logger.info(f"Rejected request without valid API key: {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=error_body("Unauthorized", "Missing or invalid x-api-key header"),
            )
        return await call_next(request)

    # Added last so it wraps the key check and answers preflight requests
    cors_origins = settings.cors_origins()
    logger.info(f"Configuring CORS for origins: {cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
        provider = str(exc.provider) if exc.provider is not None else None
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", extra={"provider": provider})
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc}", extra={"provider": provider})
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.public_message, str(exc), provider),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Invalid request", details),
        )

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    return app


# Create the application instance
app = create_app()
