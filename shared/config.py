"""
Shared configuration management for the cache proxy.
"""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PROXY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Cache store
    cache_backend: Literal["file", "redis", "memory"] = Field(default="file")
    cache_dir: Optional[str] = Field(default=None)
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Eviction
    eviction_policy: Literal["none", "lru", "ttl_sweep"] = Field(default="none")
    cache_max_entries: int = Field(default=10000, ge=1)
    cache_max_age_seconds: float = Field(default=7 * 24 * 3600.0, gt=0)

    # Upstream provider
    upstream_url: str = Field(default="http://localhost:8090")
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)
    upstream_failure_threshold: int = Field(default=5, ge=1)
    upstream_recovery_timeout: float = Field(default=30.0, ge=0)

    # Hosting
    serverless: bool = Field(default=False)


class ProxyConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "proxy"
    host: str = "0.0.0.0"
    port: int = 30010

    def resolved_cache_dir(self) -> Path:
        """Directory used by the file cache backend.

        Serverless platforms only allow writes under /tmp.
        """
        if self.cache_dir:
            return Path(self.cache_dir)
        if self.serverless:
            return Path("/tmp")
        return Path.cwd()


def detect_serverless() -> bool:
    """Return True when running on a serverless platform."""
    return bool(os.getenv("VERCEL") or os.getenv("AWS_REGION"))


def get_config(service_name: str = "proxy", **overrides) -> ProxyConfig:
    """Build the configuration once at startup."""
    overrides.setdefault("service_name", service_name)
    if "serverless" not in overrides and os.getenv("PROXY_SERVERLESS") is None:
        overrides["serverless"] = detect_serverless()
    return ProxyConfig(**overrides)
