"""Configuration management using Pydantic Settings."""
from typing import Any, List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


# Defaults used when an environment value is missing, unparseable or non-positive
CACHE_DEFAULTS = {
    "cache_ttl_seconds": 21600,
    "rate_limited_cache_ttl_seconds": 30,
    "cache_max_items": 200,
    "cache_max_entry_bytes": 1_000_000,
    "upstream_timeout_seconds": 12.0,
    "rate_limit_capacity": 30,
    "rate_limit_window_seconds": 60.0,
    "max_results_ceiling": 100,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # JSearch (RapidAPI) Configuration
    rapidapi_key: Optional[str] = Field(None, alias="RAPIDAPI_KEY")
    jsearch_base_url: str = Field("https://jsearch.p.rapidapi.com", alias="JSEARCH_BASE_URL")
    jsearch_host: str = Field("jsearch.p.rapidapi.com", alias="JSEARCH_HOST")
    upstream_timeout_seconds: float = Field(12.0, alias="UPSTREAM_TIMEOUT_SECONDS")

    # Cache Configuration
    cache_ttl_seconds: int = Field(21600, alias="CACHE_TTL_SECONDS")
    rate_limited_cache_ttl_seconds: int = Field(30, alias="RATE_LIMITED_CACHE_TTL_SECONDS")
    cache_max_items: int = Field(200, alias="CACHE_MAX_ITEMS")
    cache_max_entry_bytes: int = Field(1_000_000, alias="CACHE_MAX_ENTRY_BYTES")

    # Client rate limiting (token bucket)
    rate_limit_capacity: int = Field(30, alias="RATE_LIMIT_CAPACITY")
    rate_limit_window_seconds: float = Field(60.0, alias="RATE_LIMIT_WINDOW_SECONDS")

    # Search limits
    max_results_ceiling: int = Field(100, alias="MAX_RESULTS_CEILING")

    # CORS
    cors_allow_origins: str = Field("*", alias="CORS_ALLOW_ORIGINS")

    # Monitoring
    sentry_dsn: Optional[str] = Field(None, alias="SENTRY_DSN")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator(*CACHE_DEFAULTS.keys(), mode="before")
    @classmethod
    def fallback_to_default(cls, v: Any, info) -> Any:
        """Replace blank, unparseable or non-positive numeric values with the default."""
        default = CACHE_DEFAULTS[info.field_name]
        if v is None or (isinstance(v, str) and not v.strip()):
            return default
        try:
            number = type(default)(float(v))
        except (TypeError, ValueError):
            return default
        if number <= 0:
            return default
        return number

    @property
    def cors_origins(self) -> List[str]:
        """Split the comma-separated CORS origins."""
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @property
    def has_api_key(self) -> bool:
        """Check if the upstream API key is configured."""
        return bool(self.rapidapi_key and self.rapidapi_key.strip())

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


# Global settings instance
settings = Settings()
