# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the metric store."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="proofpulse", description="PostgreSQL username")
    password: str = Field(default="", description="PostgreSQL password")
    database: str = Field(default="proofpulse", description="Database name")
    schema_name: str = Field(default="proofpulse", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class StorageSettings(BaseSettings):
    """Selects the external store used for metrics, counters and stats."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["valkey", "postgresql"] = Field(
        default="valkey", description="Store implementation (valkey, postgresql)"
    )


class TrackingSettings(BaseSettings):
    """Session tracking, deduplication and aggregation settings."""

    model_config = SettingsConfigDict(env_prefix="TRACKING_")

    session_timeout_seconds: int = Field(
        default=300, description="Inactivity after which a session stops counting as active"
    )
    sweep_interval_seconds: float = Field(
        default=60, description="Interval of the background expiry sweeps"
    )
    stats_interval_seconds: float = Field(
        default=60, description="Interval of the periodic stats aggregation pass"
    )
    impression_dedup_ttl_seconds: int = Field(
        default=86400,
        description="TTL of the in-process impression dedup cache (0 disables it)",
    )
    fast_request_threshold_ms: float = Field(
        default=200, description="Request interval below which traffic is treated as scripted"
    )


class GeoSettings(BaseSettings):
    """IP geolocation lookup settings."""

    model_config = SettingsConfigDict(env_prefix="GEO_")

    enabled: bool = Field(default=False, description="Resolve visitor locations from IP")
    api_url: str = Field(
        default="https://www.iplocate.io/api/lookup", description="Lookup endpoint base URL"
    )
    api_key: Optional[str] = Field(default=None, description="Lookup API key")
    timeout_seconds: float = Field(default=5, description="HTTP timeout per lookup")
    cache_ttl_hours: int = Field(default=24, description="TTL of cached lookups")
    daily_quota: int = Field(default=1000, description="Maximum API requests per day")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
