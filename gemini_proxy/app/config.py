"""
Configuration module for the Gemini Proxy.

This module uses Pydantic Settings to load and validate environment variables
for the upstream Gemini endpoint, the server-held API key, logging and CORS.

Environment variables are loaded from .env file or system environment. The
settings object is built once at startup and handed to the proxy handler
factory; request handling never reads the environment directly.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The API key is optional at load time: a missing key is reported per
    request as a server configuration error rather than failing startup.
    """

    # =========================================================================
    # Upstream (Gemini) Configuration
    # =========================================================================

    GEMINI_API_KEY: Optional[str] = Field(
        None,
        description="Google Generative Language API key injected into upstream calls",
    )

    GEMINI_MODEL: str = Field(
        default=DEFAULT_GEMINI_MODEL,
        description="Model identifier used in the generateContent URL",
        min_length=1,
    )

    GEMINI_API_BASE_URL: str = Field(
        default=DEFAULT_GEMINI_API_BASE_URL,
        description="Base URL of the models collection",
        min_length=1,
    )

    EXPOSE_ERROR_DETAILS: bool = Field(
        default=True,
        description="Include the underlying error message in 500 responses after a failed upstream call",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG enables payload diagnostics)",
    )

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    PROXY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the proxy server",
    )

    PROXY_PORT: int = Field(
        default=8080,
        description="Port to bind the proxy server",
        ge=1,
        le=65535,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def gemini_api_url(self) -> str:
        """
        Full generateContent endpoint, without the key query parameter.
        """
        base = self.GEMINI_API_BASE_URL.rstrip("/")
        return f"{base}/{self.GEMINI_MODEL}:generateContent"

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def api_key_configured(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate and normalize the logging level name.

        Raises:
            ValueError: If the level is not a standard logging level
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.strip().upper()

        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @field_validator("GEMINI_API_BASE_URL")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid GEMINI_API_BASE_URL: '{v}'. Expected an http(s) URL"
            )
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Cached so the environment is read once per process.

    Example:
        >>> from gemini_proxy.app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.gemini_api_url)
    """
    return Settings()


def validate_configuration(settings: Settings) -> dict:
    """
    Validate critical configuration settings and return a status report.

    A missing API key is an error here, but the service still starts so that
    callers receive an explicit configuration error instead of no response.

    Returns:
        Dictionary with validation status, errors and warnings.
    """
    errors = []
    warnings = []

    if not settings.api_key_configured:
        errors.append("GEMINI_API_KEY is not set")

    if settings.GEMINI_API_BASE_URL.startswith("http://"):
        warnings.append("GEMINI_API_BASE_URL is not HTTPS; the API key will be sent in clear text")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "gemini_api_url": settings.gemini_api_url,
    }
