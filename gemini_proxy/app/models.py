"""
Data Models Module

Pydantic models for the two transient shapes the proxy deals with, plus the
body used for locally generated errors.

Field names follow the serverless event/response convention (httpMethod,
statusCode) so instances dump straight into a function response.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Union


JSON_HEADERS = {"Content-Type": "application/json"}


class InboundRequest(BaseModel):
    """
    Request received from the client.

    The body is kept exactly as received (text or raw bytes, possibly base64
    encoded); decoding happens in the handler after the method and
    configuration checks.
    """
    httpMethod: str = Field(..., description="HTTP method of the inbound request")
    body: Optional[Union[str, bytes]] = Field(None, description="Raw request body, expected to be JSON text")
    isBase64Encoded: bool = Field(default=False, description="Body is base64 encoded")


class ProxiedResponse(BaseModel):
    """Response returned to the client."""
    statusCode: int = Field(..., description="HTTP status code")
    headers: Dict[str, str] = Field(default_factory=lambda: dict(JSON_HEADERS))
    body: str = Field(..., description="JSON text")


class ErrorBody(BaseModel):
    """Body of an error produced by the proxy itself."""
    error: str = Field(..., description="Human readable error message")
    details: Optional[str] = Field(None, description="Underlying failure description")

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
