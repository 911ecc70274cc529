"""
Serverless function entry point.

Adapts a Netlify / AWS Lambda style event into an InboundRequest, runs the
proxy handler once and returns the {statusCode, headers, body} dict the
platform expects. Each invocation opens its own upstream client.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from .config import Settings, get_settings
from .models import InboundRequest
from .proxy.handler import create_proxy_handler


def event_to_request(event: Dict[str, Any]) -> InboundRequest:
    """
    Build an InboundRequest from a platform event.

    The body is passed through undecoded; base64 bodies are decoded by the
    handler after the method and configuration checks.
    """
    return InboundRequest(
        httpMethod=event.get("httpMethod") or "",
        body=event.get("body"),
        isBase64Encoded=bool(event.get("isBase64Encoded")),
    )


async def handle_event(event: Dict[str, Any], settings: Settings) -> Dict[str, Any]:
    inbound = event_to_request(event)

    async with httpx.AsyncClient() as client:
        proxied = await create_proxy_handler(settings, client).handle(inbound)
    return proxied.model_dump()


def handler(event: Dict[str, Any], context: Optional[Any] = None) -> Dict[str, Any]:
    """Serverless function handler."""
    return asyncio.run(handle_event(event, get_settings()))
