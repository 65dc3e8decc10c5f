"""
Application configuration using Pydantic settings.

Usage:
    from repochat.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified application settings loaded from environment variables and .env file.

    The cache is optional: with CACHE_BACKEND=redis and no reachable Redis the
    application still serves every request, only slower.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # App settings
    app_name: str = "RepoChat"
    api_prefix: str = "/api"
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # CORS
    cors_allowed_origins: str = Field(default="http://localhost:3000", validation_alias="CORS_ALLOWED_ORIGINS")

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    # Redis
    redis_url_override: Optional[str] = Field(default=None, validation_alias="REDIS_URL")
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")
    redis_password: Optional[str] = Field(default=None, validation_alias="REDIS_PASSWORD")

    @property
    def redis_url(self) -> str:
        """Return REDIS_URL when set, otherwise build it from components."""
        if self.redis_url_override:
            return self.redis_url_override
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Cache
    cache_backend: Literal["redis", "memory"] = Field(default="redis", validation_alias="CACHE_BACKEND")
    # Upper bound for a single store round trip, in seconds
    cache_operation_timeout: float = Field(default=0.5, validation_alias="CACHE_OPERATION_TIMEOUT")

    # Context acquisition
    max_context_files: int = Field(default=20, validation_alias="MAX_CONTEXT_FILES")

    @field_validator("cache_operation_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("CACHE_OPERATION_TIMEOUT must be positive")
        return v

    @field_validator("max_context_files")
    @classmethod
    def validate_max_context_files(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_CONTEXT_FILES must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
