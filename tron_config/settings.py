"""
Runtime Settings (Pydantic Settings).

Loads configuration from environment variables (.env file or system env).
Engine defaults (timeouts, retry backoff) live here so that agents and
plugins share one source of truth.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings loaded from environment variables.

    Every value has a safe default so an engine can be built in tests
    without any environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # ========================================================================
    # TOOL EXECUTION
    # ========================================================================
    TOOL_DEFAULT_TIMEOUT_MS: int = Field(
        default=30000,
        gt=0,
        description="Timeout applied when neither the call nor the tool sets one",
    )
    TOOL_DEFAULT_RETRIES: int = Field(
        default=0, ge=0, description="Retries applied when the call does not set one"
    )
    TOOL_BACKOFF_BASE_MS: int = Field(
        default=100, ge=0, description="Base delay for exponential retry backoff"
    )
    TOOL_BACKOFF_MAX_MS: int = Field(
        default=5000, ge=0, description="Upper bound for a single backoff delay"
    )
    TOOL_REQUESTER_DEFAULT: str = Field(
        default="anonymous", description="Requester id used when a call names none"
    )

    # ========================================================================
    # BUILT-IN TOOLS
    # ========================================================================
    BUILTIN_FILE_ROOT: str = Field(
        default="",
        description="If set, file tools refuse paths outside this directory",
    )
    BUILTIN_HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # ========================================================================
    # LOGGING
    # ========================================================================
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|text)$")

    # ========================================================================
    # OBSERVABILITY
    # ========================================================================
    METRICS_ENABLED: bool = Field(default=True)
    OTEL_EXPORTER_OTLP_ENDPOINT: str = Field(default="http://localhost:4317")
    OTEL_SERVICE_NAME: str = Field(default="tron-tools")
    OTEL_TRACES_ENABLED: bool = Field(default=False)

    # ========================================================================
    # DEPLOYMENT
    # ========================================================================
    ENVIRONMENT: str = Field(
        default="development", pattern="^(development|staging|production)$"
    )
