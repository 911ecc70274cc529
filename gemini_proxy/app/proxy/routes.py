"""
Proxy Routes - HTTP surface for the Gemini proxy
================================================

Exposes the ProxyHandler over FastAPI. The route accepts every common method
so that method rejection (405) comes from the handler with the same JSON body
as the serverless entry point.

Endpoints:
----------
- /gemini-proxy: Forward a generateContent payload to Gemini
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import httpx

from ..config import Settings
from ..models import InboundRequest, ProxiedResponse
from .handler import ProxyHandler, create_proxy_handler, error_response

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter()

PROXY_PATH = "/gemini-proxy"

# Methods outside this list are answered by the app-level 405 handler in main.py
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


def to_response(proxied: ProxiedResponse) -> Response:
    return Response(
        content=proxied.body,
        status_code=proxied.statusCode,
        headers=proxied.headers,
    )


def method_not_allowed_response() -> Response:
    """405 in the same JSON shape the handler uses."""
    return to_response(error_response(405, "Method Not Allowed"))


# ============================================================================
# Dependencies
# ============================================================================

def get_app_settings(request: Request) -> Settings:
    """
    Dependency returning the settings the application was created with.
    """
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Dependency to get the upstream HTTP client from app state.

    Raises:
        HTTPException: If the client has not been initialized by the lifespan
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upstream client not initialized"
        )
    return client


def get_proxy_handler(
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ProxyHandler:
    return create_proxy_handler(settings, client)


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.api_route(PROXY_PATH, methods=PROXY_METHODS)
async def gemini_proxy(
    request: Request,
    handler: ProxyHandler = Depends(get_proxy_handler),
) -> Response:
    """
    Proxy a generateContent request to Gemini.

    The raw body is handed to the handler untouched; status, headers and body
    of the ProxiedResponse are returned as-is.
    """
    inbound = InboundRequest(
        httpMethod=request.method,
        body=await request.body(),
    )
    proxied = await handler.handle(inbound)

    return to_response(proxied)
