"""
Proxy Package
=============

This package forwards client generateContent requests to the Gemini API
with the server-held API key attached.

Main Components:
----------------
- handler.py: ProxyHandler, the single request/response proxy
- routes.py: FastAPI router exposing the handler at /gemini-proxy

Usage:
------
    from gemini_proxy.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .handler import ProxyHandler, create_proxy_handler
from .routes import proxy_router

__all__ = ["ProxyHandler", "create_proxy_handler", "proxy_router"]
