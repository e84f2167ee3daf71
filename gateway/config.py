"""
Configuration management using Pydantic Settings.
Challenge: One place for service URLs, JWT secret, rate limits and proxy timeouts.
Design: Settings are read once at startup; the service registry is built from them.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Gateway settings loaded from environment. Validates at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "PlataMX API Gateway"
    debug: bool = False
    port: int = 3000

    # JWT (shared secret with the auth service)
    jwt_secret: str = "your-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # Redis (rate limit counters)
    redis_url: str = "redis://localhost:6379/0"

    # Rate limiting: 100 requests per IP per 15 minutes
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # Downstream services
    auth_service_url: str = "http://localhost:3001"
    catalog_service_url: str = "http://localhost:3002"
    payment_service_url: str = "http://localhost:3003"
    shipping_service_url: str = "http://localhost:3004"
    notification_service_url: str = "http://localhost:3005"

    # JSON object: service name -> "all" | "none" | {"GET": ["/path/:id"]}
    service_policy_overrides: dict[str, Any] = {}

    # Proxy
    proxy_timeout_seconds: float = 30.0

    # CORS
    cors_allowed_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"

    @field_validator("rate_limit_window_seconds", "rate_limit_max_requests")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("rate limit values must be positive")
        return v

    @field_validator("proxy_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("proxy timeout must be greater than zero")
        return v

    @field_validator(
        "auth_service_url",
        "catalog_service_url",
        "payment_service_url",
        "shipping_service_url",
        "notification_service_url",
    )
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance. Avoids re-reading env on every request."""
    return Settings()
