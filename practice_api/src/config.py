"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Authentication (JWT settings, password hashing)
- API settings (CORS, rate limiting, security headers)
- Mock repository behaviour (artificial latency)
- API client and smoke runner settings
- Logging, metrics and tracing

All settings support environment variable overrides and .env file loading.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field, field_validator, model_validator
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "PRACTICE_API_" (e.g., PRACTICE_API_JWT_SECRET_KEY).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="Legal Practice Management API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    api_prefix: str = Field(
        default="/api",
        description="API URL prefix"
    )

    debug: bool = Field(
        default=False,
        description="Debug mode - enables verbose logging and error traces"
    )
    environment: str = Field(
        default="production",
        description="Environment: development|test|staging|production"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=8000,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # JWT Authentication Settings
    # =========================================================================

    jwt_secret_key: str = Field(
        default="change-this-secret-key-in-production-use-env-var-minimum-32-chars",
        description="Secret key for JWT token signing (MUST be changed in production)",
        min_length=32
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    jwt_access_token_expire_minutes: int = Field(
        default=60,
        description="Access token expiration time in minutes",
        gt=0,
        le=1440
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7,
        description="Refresh token expiration time in days",
        gt=0,
        le=90
    )

    # =========================================================================
    # Password Hashing Settings
    # =========================================================================

    password_bcrypt_rounds: int = Field(
        default=12,
        description="BCrypt hash rounds (4 is the bcrypt floor, used by tests)",
        ge=4,
        le=14
    )

    # =========================================================================
    # Bootstrap Account
    # =========================================================================

    bootstrap_admin_username: Optional[str] = Field(
        default=None,
        description="Username of an admin account created at startup"
    )
    bootstrap_admin_email: str = Field(
        default="admin@practice.local",
        description="Email of the bootstrap admin account"
    )
    bootstrap_admin_password: Optional[str] = Field(
        default=None,
        description="Password of the bootstrap admin account"
    )

    # =========================================================================
    # CORS Settings
    # =========================================================================

    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials (cookies, authorization headers) in CORS"
    )
    cors_allow_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods"
    )
    cors_allow_headers: List[str] = Field(
        default=["*"],
        description="Allowed HTTP headers"
    )

    # =========================================================================
    # Rate Limiting Settings
    # =========================================================================

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable rate limiting"
    )
    rate_limit_requests: int = Field(
        default=100,
        description="Max requests per window",
        gt=0,
        le=10000
    )
    rate_limit_window: int = Field(
        default=60,
        description="Rate limit window (seconds)",
        gt=0,
        le=3600
    )

    # =========================================================================
    # Security Settings
    # =========================================================================

    security_headers_enabled: bool = Field(
        default=True,
        description="Enable security headers (X-Frame-Options, etc.)"
    )
    security_require_https: bool = Field(
        default=False,
        description="Send HSTS header (enable behind TLS)"
    )
    security_hsts_max_age: int = Field(
        default=31536000,
        description="HSTS max age (seconds)"
    )

    # =========================================================================
    # Audit Logging Settings
    # =========================================================================

    audit_enabled: bool = Field(
        default=True,
        description="Record audit entries for authentication, CRUD and denials"
    )
    audit_max_entries: int = Field(
        default=10000,
        description="Maximum audit entries kept in memory",
        gt=0
    )

    # =========================================================================
    # Mock Repository Settings
    # =========================================================================

    mock_delay_min_seconds: float = Field(
        default=0.3,
        description="Lower bound of the artificial latency of the mock repository",
        ge=0.0
    )
    mock_delay_max_seconds: float = Field(
        default=0.5,
        description="Upper bound of the artificial latency of the mock repository",
        ge=0.0
    )
    mock_seed_items: bool = Field(
        default=True,
        description="Seed each feature with two fabricated records"
    )

    # =========================================================================
    # API Client Settings
    # =========================================================================

    api_base_url: str = Field(
        default="http://localhost:8000/api",
        validation_alias=AliasChoices("VITE_API_URL", "PRACTICE_API_API_BASE_URL"),
        description="Base URL used by the API client"
    )
    api_client_timeout: float = Field(
        default=10.0,
        description="API client request timeout (seconds)",
        gt=0
    )
    login_path: str = Field(
        default="/login",
        description="Where clients are sent after a forced logout"
    )

    # =========================================================================
    # Smoke Runner Settings
    # =========================================================================

    smoke_base_url: str = Field(
        default="http://localhost:8000",
        description="Server root targeted by the smoke runners"
    )
    smoke_request_timeout: float = Field(
        default=10.0,
        description="Per-request timeout of the smoke runners (seconds)",
        gt=0
    )
    smoke_health_timeout: float = Field(
        default=5.0,
        description="Timeout of a single health check (seconds)",
        gt=0
    )
    smoke_server_start_timeout: float = Field(
        default=15.0,
        description="How long to wait for the server to become healthy (seconds)",
        gt=0
    )

    # =========================================================================
    # Monitoring and Observability
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    tracing_enabled: bool = Field(
        default=True,
        description="Enable OpenTelemetry tracing"
    )
    tracing_exporter: str = Field(
        default="otlp",
        description="Span exporter: otlp|console|none"
    )
    tracing_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        description="OTLP/HTTP collector endpoint for spans"
    )
    tracing_sample_rate: float = Field(
        default=0.1,
        description="Trace sampling rate (0.0-1.0, where 1.0 = 100%)",
        ge=0.0,
        le=1.0
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )

    # =========================================================================
    # Pagination Settings
    # =========================================================================

    pagination_default_limit: int = Field(
        default=10,
        description="Default page size",
        gt=0,
        le=1000
    )
    pagination_max_limit: int = Field(
        default=100,
        description="Maximum page size",
        gt=0,
        le=10000
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "test", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: List[str]) -> List[str]:
        """Validate CORS origins are not empty."""
        if not v:
            return ["*"]
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate JWT algorithm is a supported HMAC algorithm."""
        allowed = ["HS256", "HS384", "HS512"]
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {allowed}, got: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("tracing_exporter")
    @classmethod
    def validate_tracing_exporter(cls, v: str) -> str:
        """Validate span exporter."""
        allowed = ["otlp", "console", "none"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"tracing_exporter must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("api_base_url", "smoke_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_mock_delay_range(self) -> "Settings":
        """Validate the mock latency bounds are ordered."""
        if self.mock_delay_min_seconds > self.mock_delay_max_seconds:
            raise ValueError(
                "mock_delay_min_seconds must not exceed mock_delay_max_seconds"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running under the test suite."""
        return self.environment == "test"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def rate_limit_default(self) -> str:
        """Rate limit expressed in slowapi's limit string syntax."""
        return f"{self.rate_limit_requests}/{self.rate_limit_window} seconds"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="PRACTICE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once and shared
    across the application. Settings are loaded from:
    1. Environment variables with PRACTICE_API_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from practice_api.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.api_prefix)
        /api
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.

    Example:
        >>> from practice_api.src.config import get_settings, clear_settings_cache
        >>> os.environ['PRACTICE_API_DEBUG'] = 'true'
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Will reload with new env vars
    """
    get_settings.cache_clear()
