from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import get_settings

router = APIRouter(prefix="/api", tags=["config"])

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str
    version: str


class ConfigResponse(BaseModel):
    db_path: str
    tz: str
    initial_grant: float
    history_days: int
    daily_earning_cap: float
    min_stake_amount: float
    sync_cooldown_seconds: int
    sync_poll_interval_seconds: float
    job_progress_step: int
    job_timeout_seconds: int
    job_retention_seconds: int
    max_jobs: int
    debug: bool


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=VERSION)


@router.get("/config", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration."""
    settings = get_settings()
    return ConfigResponse(
        db_path=settings.db_path,
        tz=settings.tz,
        initial_grant=settings.initial_grant,
        history_days=settings.history_days,
        daily_earning_cap=settings.daily_earning_cap,
        min_stake_amount=settings.min_stake_amount,
        sync_cooldown_seconds=settings.sync_cooldown_seconds,
        sync_poll_interval_seconds=settings.sync_poll_interval_seconds,
        job_progress_step=settings.job_progress_step,
        job_timeout_seconds=settings.job_timeout_seconds,
        job_retention_seconds=settings.job_retention_seconds,
        max_jobs=settings.max_jobs,
        debug=settings.debug,
    )
