"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from ``TEMPOIQ_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TEMPOIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    key: str = ""
    secret: str = ""

    # Endpoint
    host: str = "localhost"
    port: int | None = None         # None = scheme default
    secure: bool = True
    timeout: float = 30.0

    # Reads
    page_size: int | None = None    # None = server default

    @field_validator("host", mode="before")
    @classmethod
    def strip_host(cls, v: str) -> str:
        """Accept hosts given as URLs and keep only the hostname part."""
        v = v.strip()
        for scheme in ("https://", "http://"):
            if v.startswith(scheme):
                v = v[len(scheme):]
        return v.rstrip("/")

    @field_validator("page_size")
    @classmethod
    def check_page_size(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("page_size must be positive")
        return v

    @property
    def base_url(self) -> str:
        """Base URL assembled from host, port and scheme."""
        scheme = "https" if self.secure else "http"
        if self.port:
            return f"{scheme}://{self.host}:{self.port}"
        return f"{scheme}://{self.host}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
