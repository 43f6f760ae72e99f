"""Sync API endpoints."""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.responses import (
    CooldownResponse,
    GeneratedActivityResponse,
    JobStatusResponse,
    SyncLogResponse,
    SyncStartResponse,
)
from app.services.jobs import (
    JobStatus,
    SyncCooldownError,
    SyncInProgressError,
    SyncJobService,
    get_sync_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _to_response(status: JobStatus) -> JobStatusResponse:
    response = JobStatusResponse(
        job_id=status.job_id,
        status=status.status.value,
        progress=status.progress,
        error=status.error,
    )
    if status.result is not None:
        response.fitcoin_delta = status.result.fitcoin_delta
        response.new_balance = status.result.new_balance
        response.generated_activities = [
            GeneratedActivityResponse.model_validate(a) for a in status.result.generated_activities
        ]
    return response


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def poll_job(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    service: SyncJobService = Depends(get_sync_service),
):
    """Advance a sync job one step and return its status."""
    status = await service.poll(db, job_id)
    return _to_response(status)


@router.post("/{user_id}", response_model=SyncStartResponse, status_code=202)
async def start_sync(user_id: str, service: SyncJobService = Depends(get_sync_service)):
    """Start a sync job. Poll /api/sync/jobs/{job_id} until it finishes."""
    try:
        job = service.start(user_id)
    except SyncCooldownError as e:
        raise HTTPException(
            status_code=429,
            detail=f"Next sync available in {e.remaining_seconds} seconds",
            headers={"Retry-After": str(e.remaining_seconds)},
        )
    except SyncInProgressError as e:
        raise HTTPException(status_code=409, detail=f"Sync {e.job_id} is still running")

    return SyncStartResponse(
        job_id=job.job_id,
        status=job.status.value,
        poll_interval_seconds=get_settings().sync_poll_interval_seconds,
    )


@router.get("/{user_id}/cooldown", response_model=CooldownResponse)
async def get_cooldown(user_id: str, service: SyncJobService = Depends(get_sync_service)):
    """Seconds until the user may sync again."""
    remaining = service.cooldown.remaining_seconds(user_id)
    return CooldownResponse(user_id=user_id, on_cooldown=remaining > 0, remaining_seconds=remaining)


@router.get("/{user_id}/history", response_model=list[SyncLogResponse])
async def get_sync_history(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: SyncJobService = Depends(get_sync_service),
):
    """Recently finished sync jobs for a user."""
    logs = await service.sync_history(db, user_id, limit=limit)
    return [SyncLogResponse.model_validate(log) for log in logs]
