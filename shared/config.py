"""
Shared configuration management for the JWKS cache.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="JWKS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )
    
    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    
    # Identity provider
    auth_server_url: str = Field(default="http://localhost:8080")
    realm_name: str = Field(default="254carbon")
    jwks_url: Optional[str] = Field(default=None)
    http_timeout: float = Field(default=10.0, gt=0)
    
    # Refresh policy, in minutes
    min_time_between_jwks_requests: int = Field(default=24 * 60, ge=0)
    
    # Persistence
    storage_backend: str = Field(default="memory", pattern="^(memory|redis)$")
    redis_url: str = Field(default="redis://localhost:6379/0")
    storage_prefix: str = Field(default="jwks:")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""
    
    service_name: str = "jwks-cache"


def get_config(service_name: str = "jwks-cache", **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
