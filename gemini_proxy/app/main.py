"""
FastAPI Gemini Proxy Application Factory
========================================

Main entry point for the proxy service that sits between browser/mobile
clients and the Google Gemini API, keeping the API key server-side.

Architecture:
    Client → Gemini Proxy (this service) → generativelanguage.googleapis.com

Routers:
    - /gemini-proxy : Forward generateContent payloads to Gemini
    - /health       : Health check endpoint

Environment Variables:
    - GEMINI_API_KEY: Upstream API key (required for proxying)
    - GEMINI_MODEL: Model id (default: gemini-2.5-flash-preview-09-2025)
    - GEMINI_API_BASE_URL: Models collection base URL
    - EXPOSE_ERROR_DETAILS: Include failure text in 500 bodies (default: true)
    - ALLOWED_ORIGINS: Comma-separated CORS origins
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn gemini_proxy.app.main:app --reload --host 0.0.0.0 --port 8080

    With payload diagnostics:
        LOG_LEVEL=DEBUG uvicorn gemini_proxy.app.main:app --reload
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import httpx
import uvicorn

from gemini_proxy.app.config import Settings, get_settings, validate_configuration
from gemini_proxy.app.proxy.routes import PROXY_PATH, method_not_allowed_response, proxy_router

SERVICE_NAME = "gemini-proxy"
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


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Report configuration problems
        - Create the shared httpx.AsyncClient for upstream calls

    Shutdown:
        - Close the upstream client
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("gemini_proxy.main")

    report = validate_configuration(settings)
    for error in report["errors"]:
        logger.critical(f"Configuration error: {error}")
    for warning in report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")

    app.state.http_client = httpx.AsyncClient()
    logger.info(
        "Gemini proxy started",
        extra={
            "upstream_url": settings.gemini_api_url,
            "log_level": settings.LOG_LEVEL,
        }
    )

    yield

    logger.info("Shutting down Gemini proxy")
    await app.state.http_client.aclose()
    app.state.http_client = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Settings to inject; loaded from the environment when omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Gemini Proxy",
        description="Forwards generateContent requests to Gemini with a server-held API key",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = None

    origins = settings.allowed_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=False,
            allow_methods=["POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    app.include_router(proxy_router, tags=["Gemini Proxy"])

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "api_key_configured": settings.api_key_configured,
        }

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Gemini generateContent proxy",
            "endpoints": {
                "health": "/health",
                "proxy": "/gemini-proxy",
            }
        }

    @app.exception_handler(StarletteHTTPException)
    async def proxy_http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Answer unrouted methods on the proxy path with the proxy's own 405 body.
        """
        if exc.status_code == 405 and request.url.path == PROXY_PATH:
            return method_not_allowed_response()
        return await http_exception_handler(request, exc)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a JSON 500 response; the exception text is
        only included at DEBUG log level.
        """
        logger = logging.getLogger("gemini_proxy.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        content = {"error": "Internal server error."}
        if settings.LOG_LEVEL == "DEBUG":
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "gemini_proxy.app.main:app",
        host=settings.PROXY_HOST,
        port=settings.PROXY_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
