"""
Proxy Handler - Gemini Request Forwarding
=========================================

Forwards a client request to the Gemini generateContent endpoint with the
server-held API key attached, and relays the upstream result.

Flow:
-----
1. Reject non-POST methods (405)
2. Require the API key from settings (500 when missing)
3. Decode and parse the inbound body as strict JSON (400 when invalid)
4. POST the payload upstream with ?key=<API_KEY>
5. Relay upstream status and JSON body unchanged (200 on success)
6. Transport failures or non-JSON upstream bodies become 500

The handler never raises for these cases; every path produces a
ProxiedResponse. There are no retries.
"""

import base64
import json
import logging
from typing import Any, Optional

import httpx

from ..config import Settings
from ..models import ErrorBody, InboundRequest, JSON_HEADERS, ProxiedResponse

logger = logging.getLogger(__name__)

API_KEY_ENV_NAME = "GEMINI_API_KEY"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_payload(request: InboundRequest) -> Any:
    """
    Decode and parse the inbound body as strict JSON.

    Base64 bodies are decoded first and bytes must be valid UTF-8. NaN and
    Infinity are rejected since they cannot be re-serialized as JSON.

    Raises:
        TypeError: If there is no body
        ValueError: If the body is not valid base64, UTF-8 or JSON
    """
    body = request.body
    if body is None:
        raise TypeError("Request body is missing")

    if request.isBase64Encoded:
        body = base64.b64decode(body, validate=True)

    if isinstance(body, bytes):
        body = body.decode("utf-8")

    return json.loads(body, parse_constant=_reject_constant)


def error_response(status_code: int, message: str, details: Optional[str] = None) -> ProxiedResponse:
    """Build a ProxiedResponse carrying a locally generated error body."""
    return ProxiedResponse(
        statusCode=status_code,
        body=ErrorBody(error=message, details=details).to_json(),
    )


class ProxyHandler:
    """
    Single-request proxy to the Gemini API.

    Attributes:
        api_key: Upstream credential (None or empty means misconfigured)
        upstream_url: generateContent URL without the key parameter
        client: Shared httpx.AsyncClient used for the outbound call
        logger: Log sink; payload diagnostics are emitted at DEBUG
        expose_error_details: Include the failure text in 500 bodies
    """

    def __init__(
        self,
        api_key: Optional[str],
        upstream_url: str,
        client: httpx.AsyncClient,
        logger: Optional[logging.Logger] = None,
        expose_error_details: bool = True,
    ):
        self.api_key = api_key
        self.upstream_url = upstream_url
        self.client = client
        self.logger = logger or logging.getLogger(__name__)
        self.expose_error_details = expose_error_details

    async def handle(self, request: InboundRequest) -> ProxiedResponse:
        """
        Proxy one inbound request.

        Args:
            request: Inbound method and raw body

        Returns:
            ProxiedResponse with upstream or locally generated status/body
        """
        self.logger.info("Proxy invocation started", extra={"method": request.httpMethod})
        try:
            return await self._handle(request)
        finally:
            self.logger.info("Proxy invocation finished")

    async def _handle(self, request: InboundRequest) -> ProxiedResponse:
        # HTTP method names are case-sensitive
        if request.httpMethod != "POST":
            return error_response(405, "Method Not Allowed")

        if not self.api_key:
            self.logger.critical(f"{API_KEY_ENV_NAME} is not set; refusing to call upstream")
            return error_response(500, f"Server configuration error: {API_KEY_ENV_NAME} not set.")

        try:
            payload = parse_payload(request)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Error parsing JSON payload: {e}")
            return error_response(400, "Invalid JSON payload.")

        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Received payload: {json.dumps(payload, indent=2)}")

        try:
            response = await self.client.post(
                self.upstream_url,
                params={"key": self.api_key},
                json=payload,
                headers=dict(JSON_HEADERS),
            )
            # Validate that the upstream body is JSON before relaying it
            data: Any = response.json()
        except (httpx.HTTPError, ValueError) as e:
            details = str(e) or type(e).__name__
            self.logger.error(f"Upstream call failed (network, timeout or bad body): {details}")
            return error_response(
                500,
                "Internal server error during API call.",
                details if self.expose_error_details else None,
            )

        if not response.is_success:
            self.logger.error(
                f"Gemini API returned status {response.status_code}",
                extra={"status_code": response.status_code, "upstream_error": json.dumps(data)},
            )
            return ProxiedResponse(statusCode=response.status_code, body=response.text)

        self.logger.info("Gemini API call successful")
        return ProxiedResponse(statusCode=200, body=response.text)


def create_proxy_handler(
    settings: Settings,
    client: httpx.AsyncClient,
    logger: Optional[logging.Logger] = None,
) -> ProxyHandler:
    """Build a ProxyHandler from application settings."""
    return ProxyHandler(
        api_key=settings.GEMINI_API_KEY,
        upstream_url=settings.gemini_api_url,
        client=client,
        logger=logger,
        expose_error_details=settings.EXPOSE_ERROR_DETAILS,
    )
