"""Settings for the Lendly request lifecycle API."""

from typing import List
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


class Settings(BaseSettings):
    """
    Settings for the request lifecycle API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from environment variables and, for local development, a .env file.

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (auth_url, auth_api_key, database_url).
    """

    service_name: str = "Lendly Request API"
    """Service name reported by health endpoints and startup logs."""

    # Authentication provider
    auth_url: str
    """Base URL of the authentication provider (required). Caller tokens are resolved at {auth_url}/auth/v1/user."""

    auth_api_key: str
    """Public API key of the authentication provider, sent as the `apikey` header (required)."""

    auth_timeout_seconds: float = 5.0
    """Timeout for identity lookups against the authentication provider."""

    # Request store
    database_url: Optional[str] = None
    """PostgreSQL connection string for the requests table. When unset an in-process store is used."""

    db_schema: str = "public"
    """Schema that holds the requests table."""

    db_pool_min_size: int = 2
    db_pool_max_size: int = 10

    db_command_timeout: float = 30.0
    """Query timeout in seconds."""

    # CORS
    cors_allow_origins: List[str] = ["*"]
    """Origins allowed to call the API from a browser."""

    cors_allow_headers: List[str] = DEFAULT_CORS_HEADERS
    """Request headers allowed on cross-origin calls."""

    # Logging
    log_level: str = "INFO"
    """Minimum level for the console log sink."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )
