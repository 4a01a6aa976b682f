"""
ANSP Peer Review - Configuration Management

Central configuration using Pydantic settings.
"""

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    app_env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        description="Deployment environment"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Console log level")
    log_to_file: bool = Field(default=False, description="Also write logs to data/logs")

    # Storage Configuration
    data_dir: Path = Field(
        default=Path("./data"),
        description="Data directory for logs and exports"
    )

    # Database Configuration (PostgreSQL)
    database_url: str = Field(
        default="postgresql+asyncpg://localhost/peer_review",
        description="Database connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL queries for debugging"
    )

    # Scoring Comparison Configuration
    trend_stability_threshold: float = Field(
        default=1.0,
        ge=0.0,
        description="Absolute score delta below which a trend is STABLE"
    )
    improvement_threshold: float = Field(
        default=5.0,
        ge=0.0,
        description="Category score delta separating improved/declined from unchanged"
    )

    @property
    def is_production(self) -> bool:
        """Whether running in production."""
        return self.app_env == AppEnvironment.PRODUCTION

    @property
    def logs_dir(self) -> Path:
        """Directory for log files."""
        path = self.data_dir / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path


# Global settings instance
settings = Settings()
