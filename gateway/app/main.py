"""
FastAPI Application Factory
===========================

Entry point for the CentralAuth example server. The server shows how the
CentralAuth client plugs into FastAPI routes; all authentication protocol
work happens inside the client.

Routers:
    - /api/auth/*   : Login, callback, user info and logout (delegated to CentralAuth)
    - /, /profile   : HTML pages
    - /health       : Health check endpoint

Environment Variables:
    - BASE_URL: Public URL of this server (default: http://localhost:3000)
    - AUTH_ORGANIZATION_ID: CentralAuth organization ID
    - AUTH_SECRET: CentralAuth organization secret
    - AUTH_BASE_URL: CentralAuth base URL (default: https://centralauth.com)
    - AUTH_DEBUG: Log client steps at INFO level (default: true)
    - SESSION_SECRET: Session cookie signing key (default: AUTH_SECRET)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn gateway.app.main:app --reload --port 3000

    Or, listening on the port from BASE_URL:
        python -m gateway.app.main
"""

import logging
import secrets
import sys
from contextlib import asynccontextmanager
from typing import Dict

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from gateway.app.auth.routes import auth_router
from gateway.app.config import Settings, get_settings, validate_configuration
from gateway.app.pages import pages_router


SERVICE_NAME = "centralauth-gateway"
SERVICE_VERSION = "1.0.0"


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def log_configuration(settings: Settings, logger: logging.Logger) -> None:
    """Log which auth variables are set, without their values."""
    status = validate_configuration(settings)
    variables = status["variables"]

    logger.info(f"Server running on {settings.base_url}")
    logger.info("Environment variables loaded:")
    logger.info(f"- AUTH_ORGANIZATION_ID: {'✓' if variables['AUTH_ORGANIZATION_ID'] else '✗'}")
    logger.info(f"- AUTH_SECRET: {'✓' if variables['AUTH_SECRET'] else '✗'}")
    logger.info(f"- AUTH_BASE_URL: {variables['AUTH_BASE_URL']}")
    logger.info(f"- BASE_URL: {variables['BASE_URL']}")

    for error in status["errors"]:
        logger.error(f"Configuration error: {error}")
    for warning in status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging and report the auth configuration.
    Shutdown: log it. There are no shared resources to release; auth
    clients live only for the request that built them.
    """
    settings = get_settings()

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("gateway.main")

    log_configuration(settings, logger)
    logger.info(
        "Gateway started successfully",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "auth_base_url": settings.auth_base_url,
        }
    )

    yield

    logger.info("Gateway shutdown complete")


# Create FastAPI application
def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Signed cookie sessions (used by the CentralAuth client)
        - Route handlers
        - Exception handlers

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="CentralAuth Gateway",
        description="Example server delegating authentication to CentralAuth",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    session_secret = settings.session_secret
    if not session_secret:
        logging.getLogger("gateway.main").warning(
            "No SESSION_SECRET or AUTH_SECRET set, using a random session key"
        )
        session_secret = secrets.token_urlsafe(32)

    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie="centralauth_session",
        same_site="lax",
        https_only=settings.base_url.startswith("https://"),
    )

    # Pages: / and /profile
    app.include_router(pages_router)

    # Auth router: login, callback, user and logout, delegated to CentralAuth
    app.include_router(auth_router)

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logger = logging.getLogger("gateway.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None
            }
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "gateway.app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
