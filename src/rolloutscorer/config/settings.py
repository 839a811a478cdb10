"""
Application settings using Pydantic.

Provides environment-based configuration loading with ROLLOUTSCORER_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENVIRONMENT = "Production"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ROLLOUTSCORER_",
    )

    # Database
    database_url: str = "postgresql+psycopg://localhost/rolloutscorer"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800
    page_size: int = 1000

    # Debug
    debug: bool = False

    # Environment ("Production" opens review pull requests)
    deployment_environment: str = "Staging"

    # Scoring
    scoring_buffer_days: int = 2
    scoring_config_path: str = "scoring.yaml"
    scorer: str | None = None  # "<module>:<callable>"

    # Run lock
    run_lock_enabled: bool = True
    run_lock_key: int = 0x524F4C4C  # "ROLL"

    # Credentials
    credentials_backend: str = "azure"  # azure, env

    # HTTP client settings
    http_timeout: int = 30
    http_max_retries: int = 3

    # AWS (CloudWatch metrics)
    aws_region: str = "us-east-1"
    metrics_enabled: bool = False

    @property
    def skip_review(self) -> bool:
        """Review pull requests are only opened from production runs."""
        return self.deployment_environment != PRODUCTION_ENVIRONMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
