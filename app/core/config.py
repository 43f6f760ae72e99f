from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Database
    db_path: str = "./fitcoin.db"

    # Calendar
    tz: str = "UTC"

    # Wallet rules
    initial_grant: float = 3.0
    history_days: int = 7
    history_seed_min: int = 5
    history_seed_max: int = 49
    daily_earning_cap: float = 50.0
    min_stake_amount: float = 10.0

    # Sync jobs
    sync_cooldown_seconds: int = 3600
    sync_poll_interval_seconds: float = 1.5
    job_progress_step: int = 34
    job_timeout_seconds: int = 300
    job_retention_seconds: int = 3600
    max_jobs: int = 1000
    job_sweep_interval_seconds: int = 60

    debug: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
