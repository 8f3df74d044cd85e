"""Configuration settings for rpcguard."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpcguard.constants import DEFAULT_RPC_ENDPOINTS
from rpcguard.models.retry import RetryConfig


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``RPCGUARD_``)."""

    model_config = SettingsConfigDict(
        env_prefix="RPCGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoint pool
    rpc_endpoints: str = Field(
        default=",".join(DEFAULT_RPC_ENDPOINTS),
        description="Comma-separated list of RPC endpoint URLs, in priority order",
    )
    blacklist_duration_ms: float = Field(default=60_000, ge=0)
    failure_threshold: int = Field(default=5, ge=1)

    # Retry policy
    max_retries: int = Field(default=3, ge=1)
    base_delay_ms: float = Field(default=1000, ge=0)
    max_delay_ms: float | None = None

    # Transport
    request_timeout_ms: float = Field(default=30_000, gt=0)
    requests_per_second: float = Field(default=10.0, gt=0)
    user_agent: str = "rpcguard/1.0"

    # Logging
    log_level: str = "INFO"

    @field_validator("rpc_endpoints")
    @classmethod
    def check_endpoints(cls, v: str) -> str:
        """Reject a pool with no usable URL."""
        if not [u for u in v.split(",") if u.strip()]:
            raise ValueError("rpc_endpoints must contain at least one URL")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def endpoint_urls(self) -> list[str]:
        """Configured endpoint URLs, stripped and de-duplicated in order."""
        urls: list[str] = []
        for raw in self.rpc_endpoints.split(","):
            url = raw.strip()
            if url and url not in urls:
                urls.append(url)
        return urls

    def retry_config(self) -> RetryConfig:
        """Default retry configuration derived from settings."""
        return RetryConfig(
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            max_delay_ms=self.max_delay_ms,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
