"""Configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:102.0) "
    "Gecko/20100101 Firefox/102.0"
)


class Settings(BaseSettings):
    """Downloader settings loaded from environment variables.

    Every field can be set with a ``WETRANSFER_`` prefixed variable,
    e.g. ``WETRANSFER_MAX_RETRIES=5``.
    """

    model_config = SettingsConfigDict(
        env_prefix="WETRANSFER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Exchange retry policy
    max_retries: int = Field(default=3, ge=0)
    retry_delay: int = Field(default=1000, ge=0)  # milliseconds, base backoff delay

    # Per-request timeout (milliseconds)
    timeout: int = Field(default=30000, gt=0)

    user_agent: str = DEFAULT_USER_AGENT

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def retry_delay_seconds(self) -> float:
        """Base backoff delay in seconds."""
        return self.retry_delay / 1000

    @property
    def timeout_seconds(self) -> float:
        """Per-request timeout in seconds."""
        return self.timeout / 1000

    def with_overrides(self, **overrides) -> "Settings":
        """Return a validated copy with the given non-None fields replaced."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        return Settings(**{**self.model_dump(), **values})


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
