"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="coursegate", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_workers: int = Field(default=1, description="Number of workers")
    api_reload: bool = Field(default=True, description="Enable auto-reload")

    # Authentication (tokens are issued elsewhere, only decoded here)
    auth_secret_key: str = Field(
        default="dev-jwt-secret-key-change-in-production-32chars!",
        description="JWT signing key (min 32 chars)",
    )
    auth_algorithm: str = Field(default="HS256", description="JWT algorithm")

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(
        default="coursegate", description="Cassandra keyspace"
    )
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )
    cassandra_request_timeout: float = Field(
        default=10.0, description="Request timeout"
    )
    cassandra_datacenter: str = Field(
        default="datacenter1", description="Local datacenter for replication"
    )
    cassandra_replication_factor: int = Field(
        default=1, description="Replicas per datacenter for the keyspace"
    )
    cassandra_bootstrap_schema: bool = Field(
        default=True, description="Create keyspace and tables at startup"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_timestamp: bool = Field(default=True, description="Include timestamp")
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_include_stack_info: bool = Field(default=True, description="Include stack info")
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    # Completion gate
    unlock_threshold_percent: float = Field(
        default=90.0, description="Video percentage that unlocks the next item"
    )
    aggregate_includes_resources: bool = Field(
        default=False,
        description="Count completed resources in the course aggregate",
    )
    sequencing_policy: Literal["legacy_offsets", "type_priority"] = Field(
        default="legacy_offsets",
        description="How items without an explicit sequence number are ordered",
    )

    # Watch-time tracker
    persist_decile_step: float = Field(
        default=10.0, description="Percentage band width between progress writes"
    )
    tick_min_seconds: float = Field(
        default=0.1, description="Ticks at or below this elapsed time are ignored"
    )
    tick_max_seconds: float = Field(
        default=2.0, description="Ticks at or above this elapsed time are ignored"
    )
    simulated_tick_seconds: float = Field(
        default=0.5, description="Sampling interval for embedded players"
    )
    simulated_autoplay_delay_seconds: float = Field(
        default=2.0, description="Assumed delay before an embedded player starts"
    )
    duration_tolerance_seconds: float = Field(
        default=5.0, description="Max drift between authored and media duration"
    )
    embedded_player_hosts: list[str] = Field(
        default=["drive.google.com"],
        description="Hosts whose players expose no native time-update event",
    )

    # Tracker HTTP client
    api_base_url: str = Field(
        default="http://localhost:8000", description="Base URL used by the tracker"
    )
    api_timeout_seconds: float = Field(
        default=10.0, description="Tracker HTTP request timeout"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
