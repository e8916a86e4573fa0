"""
Shared configuration management for the Countries Gateway.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEVELOPMENT_ENVS = frozenset({"development", "dev", "local"})


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="COUNTRIES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="development")
    log_level: str = Field(default="info")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    allowed_origins: str = Field(default="*")
    trust_proxy: bool = Field(default=False)

    # Upstream provider
    upstream_base_url: str = Field(default="https://restcountries.com/v3.1")
    upstream_timeout_seconds: float = Field(default=10.0)
    upstream_listing_fields: str = Field(
        default="name,cca2,cca3,flags,population,region,subregion,capital,languages,currencies"
    )

    # Security
    auth_token: Optional[str] = Field(default=None)
    require_auth: bool = Field(default=True)

    # Caching
    listing_cache_ttl: int = Field(default=300)
    detail_cache_ttl: int = Field(default=600)
    cache_max_entries: int = Field(default=1000)
    cache_single_flight: bool = Field(default=True)

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=15 * 60)
    rate_limit_max_requests: int = Field(default=100)

    @property
    def is_development(self) -> bool:
        """Whether error responses may carry internal details."""
        return self.env.lower() in DEVELOPMENT_ENVS

    @property
    def allowed_origin_list(self) -> List[str]:
        """CORS origins parsed from the comma-separated setting."""
        origins = [origin.strip() for origin in self.allowed_origins.split(",")]
        return [origin for origin in origins if origin] or ["*"]

    @property
    def listing_field_list(self) -> List[str]:
        fields = [field.strip() for field in self.upstream_listing_fields.split(",")]
        return [field for field in fields if field]


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
