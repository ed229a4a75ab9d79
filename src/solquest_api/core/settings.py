"""Application settings and configuration.

This module defines all configuration options for the SolQuest API.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="SolQuest API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")

    # Database configuration
    database_url: str = Field(default="sqlite:///./solquest.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    create_tables_on_startup: bool = Field(default=True, alias="CREATE_TABLES_ON_STARTUP")

    # Redis backs the single-use challenge store when configured
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # JWT session tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Wallet challenge
    product_name: str = Field(default="SolQuest.io", alias="PRODUCT_NAME")
    challenge_ttl_seconds: int = Field(default=300, alias="CHALLENGE_TTL_SECONDS")
    challenge_clock_skew_seconds: int = Field(default=30, alias="CHALLENGE_CLOCK_SKEW_SECONDS")
    challenge_single_use: bool = Field(default=True, alias="CHALLENGE_SINGLE_USE")

    # OG collection
    og_max_supply: int = Field(default=10_000, ge=0, alias="OG_MAX_SUPPLY")
    og_collection_name: str = Field(default="SolQuest OG", alias="OG_COLLECTION_NAME")
    og_collection_symbol: str = Field(default="SQOG", alias="OG_COLLECTION_SYMBOL")
    og_external_url_base: str = Field(
        default="https://solquest.io/nft",
        alias="OG_EXTERNAL_URL_BASE",
    )

    # External mint service
    mint_service_url: str | None = Field(default=None, alias="MINT_SERVICE_URL")
    mint_service_api_key: str | None = Field(default=None, alias="MINT_SERVICE_API_KEY")
    mint_timeout_seconds: float = Field(default=30.0, gt=0, alias="MINT_TIMEOUT_SECONDS")
    mint_circuit_failure_threshold: int = Field(
        default=5,
        alias="MINT_CIRCUIT_FAILURE_THRESHOLD",
    )
    mint_circuit_recovery_seconds: float = Field(
        default=60.0,
        alias="MINT_CIRCUIT_RECOVERY_SECONDS",
    )

    # Reconciliation of reservations left behind by crashed requests
    claim_reservation_timeout_seconds: int = Field(
        default=900,
        alias="CLAIM_RESERVATION_TIMEOUT_SECONDS",
    )
    reconcile_enabled: bool = Field(default=True, alias="RECONCILE_ENABLED")
    reconcile_interval_seconds: float = Field(default=60.0, alias="RECONCILE_INTERVAL_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Invalid LOG_LEVEL. Must be one of: {allowed}")
        return v_upper

    @property
    def access_token_ttl_seconds(self) -> int:
        """Return the session token lifetime in seconds."""
        return self.access_token_expire_minutes * 60

    @property
    def mint_service_enabled(self) -> bool:
        """Return True when a real mint service endpoint is configured."""
        return bool(self.mint_service_url)


settings = Settings()  # type: ignore[call-arg]
