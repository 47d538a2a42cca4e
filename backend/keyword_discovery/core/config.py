"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
No hardcoded credentials. Missing credentials are not an error here: the
integration clients report themselves unavailable and the pipeline skips
the affected source.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Keyword Discovery")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # DataForSEO (suggestions, competitor rankings, bulk keyword metadata)
    dataforseo_api_login: str | None = Field(
        default=None,
        description="DataForSEO API login (email)",
    )
    dataforseo_api_password: str | None = Field(
        default=None,
        description="DataForSEO API password",
    )
    dataforseo_timeout: float = Field(
        default=60.0, description="DataForSEO request timeout in seconds"
    )
    dataforseo_max_retries: int = Field(
        default=3, description="Maximum retry attempts for DataForSEO requests"
    )
    dataforseo_retry_delay: float = Field(
        default=1.0, description="Base delay between retries in seconds"
    )
    dataforseo_default_location_code: int = Field(
        default=2840, description="Default location code (2840 = United States)"
    )
    dataforseo_default_language_code: str = Field(
        default="en", description="Default language code"
    )
    dataforseo_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    dataforseo_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # Google Search Console (client performance data)
    search_console_access_token: str | None = Field(
        default=None,
        description="OAuth access token with the webmasters.readonly scope",
    )
    search_console_timeout: float = Field(
        default=30.0, description="Search Console request timeout in seconds"
    )
    search_console_max_retries: int = Field(
        default=3, description="Maximum retry attempts for Search Console requests"
    )
    search_console_retry_delay: float = Field(
        default=1.0, description="Base delay between retries in seconds"
    )
    search_console_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    search_console_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # Discovery pipeline
    discovery_suggestions_per_seed: int = Field(
        default=10, description="Keyword suggestions requested per manual seed"
    )
    discovery_competitor_keyword_limit: int = Field(
        default=50, description="Ranked keywords kept per competitor domain"
    )
    discovery_narrow_row_limit: int = Field(
        default=25, description="Row cap for the collection-time performance fetch"
    )
    discovery_wide_row_limit: int = Field(
        default=2000, description="Row cap for the cross-reference performance fetch"
    )
    discovery_lookback_days: int = Field(
        default=90, description="Default performance date window in days"
    )
    discovery_max_concurrent: int = Field(
        default=5, description="Concurrent seed expansions / competitor lookups"
    )
    discovery_narrow_fetch_timeout: float = Field(
        default=60.0, description="Timeout for the narrow performance fetch (seconds)"
    )
    discovery_wide_fetch_timeout: float = Field(
        default=120.0, description="Timeout for the wide performance fetch (seconds)"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
