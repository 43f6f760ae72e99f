"""Sync jobs - the asynchronous unit of work behind one activity sync.

A job is created RUNNING and advances a fixed step on every poll. The poll
that takes it past 100 completes it: activities are generated, credited to
the ledger and attached to the job. Terminal jobs answer later polls from
their stored state, so the ledger is credited exactly once per job.
"""

import asyncio
import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Callable, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.config import get_settings
from app.models.database import User
from app.models.sync_log import SyncLog
from app.services.catalog import get_catalog
from app.services.cooldown import CooldownGate
from app.services.generator import ActivityGenerator, GeneratedActivity
from app.services.ledger import AccrualLedger, get_ledger

logger = logging.getLogger(__name__)

UNKNOWN_JOB_ERROR = "unknown job"
TIMED_OUT_ERROR = "timed out"


class JobState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SyncCooldownError(Exception):
    """Raised when a user starts a sync before their cooldown has passed."""

    def __init__(self, user_id: str, remaining_seconds: int):
        self.user_id = user_id
        self.remaining_seconds = remaining_seconds
        super().__init__(f"Sync on cooldown for {user_id}: {remaining_seconds}s remaining")


class SyncInProgressError(Exception):
    """Raised when a user already has a running sync job."""

    def __init__(self, user_id: str, job_id: str):
        self.user_id = user_id
        self.job_id = job_id
        super().__init__(f"Sync already running for {user_id}: {job_id}")


@dataclass
class SyncResult:
    fitcoin_delta: float
    new_balance: float
    generated_activities: list[GeneratedActivity]


@dataclass
class SyncJob:
    user_id: str
    created_at: datetime
    job_id: str = field(default_factory=lambda: f"job_{uuid.uuid4().hex}")
    status: JobState = JobState.PENDING
    progress: int = 0
    updated_at: Optional[datetime] = None
    provider: Optional[str] = None
    result: Optional[SyncResult] = None
    error: Optional[str] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class JobStatus:
    """What a poll returns to the caller."""
    job_id: str
    status: JobState
    progress: int = 0
    result: Optional[SyncResult] = None
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: SyncJob) -> "JobStatus":
        return cls(
            job_id=job.job_id,
            status=job.status,
            progress=job.progress,
            result=job.result,
            error=job.error,
        )


class SyncJobStore:
    """Bounded in-memory job table.

    Jobs are kept in creation order. When the table is full the oldest
    terminal job is evicted first, then the oldest job of any state.
    """

    def __init__(self, max_jobs: int = 1000):
        self.max_jobs = max_jobs
        self._jobs: OrderedDict[str, SyncJob] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def add(self, job: SyncJob) -> None:
        with self._lock:
            while len(self._jobs) >= self.max_jobs:
                self._evict_one()
            self._jobs[job.job_id] = job

    def _evict_one(self) -> None:
        victim = next((job_id for job_id, job in self._jobs.items() if job.is_terminal), None)
        if victim is None:
            victim = next(iter(self._jobs))
            logger.warning(f"Job table full, evicting running job {victim}")
        del self._jobs[victim]

    def get(self, job_id: str) -> Optional[SyncJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def running_for_user(self, user_id: str) -> Optional[SyncJob]:
        with self._lock:
            for job in self._jobs.values():
                if job.user_id == user_id and not job.is_terminal:
                    return job
        return None

    def running(self) -> list[SyncJob]:
        with self._lock:
            return [job for job in self._jobs.values() if not job.is_terminal]

    def remove_terminal_before(self, cutoff: datetime) -> int:
        """Evict terminal jobs last touched before the cutoff."""
        with self._lock:
            stale = [
                job_id for job_id, job in self._jobs.items()
                if job.is_terminal and (job.updated_at or job.created_at) < cutoff
            ]
            for job_id in stale:
                del self._jobs[job_id]
        return len(stale)


class SyncJobService:
    """Starts and advances sync jobs."""

    def __init__(
        self,
        store: SyncJobStore,
        generator: ActivityGenerator,
        ledger: AccrualLedger,
        cooldown: CooldownGate,
        progress_step: int = 34,
        timeout_seconds: int = 300,
        retention_seconds: int = 3600,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.generator = generator
        self.ledger = ledger
        self.cooldown = cooldown
        self.progress_step = progress_step
        self.timeout = timedelta(seconds=timeout_seconds)
        self.retention = timedelta(seconds=retention_seconds)
        self.clock = clock

    def start(self, user_id: str) -> SyncJob:
        """Create a RUNNING job for the user. Does not block."""
        remaining = self.cooldown.remaining_seconds(user_id)
        if remaining > 0:
            logger.warning(f"Sync rejected for {user_id}: cooldown {remaining}s")
            raise SyncCooldownError(user_id, remaining)

        in_flight = self.store.running_for_user(user_id)
        if in_flight is not None:
            logger.warning(f"Sync rejected for {user_id}: {in_flight.job_id} still running")
            raise SyncInProgressError(user_id, in_flight.job_id)

        now = self.clock()
        job = SyncJob(user_id=user_id, created_at=now, updated_at=now)
        job.status = JobState.RUNNING
        self.store.add(job)

        logger.info(f"Started sync job {job.job_id} for {user_id}")
        return job

    async def poll(self, session: AsyncSession, job_id: str) -> JobStatus:
        """
        Advance a job by one step and report its state.

        Unknown (or evicted) job ids report FAILED. Terminal jobs are
        returned unchanged.
        """
        job = self.store.get(job_id)
        if job is None:
            logger.warning(f"Poll for unknown job {job_id}")
            return JobStatus(job_id=job_id, status=JobState.FAILED, error=UNKNOWN_JOB_ERROR)

        async with job.lock:
            if job.is_terminal:
                return JobStatus.from_job(job)

            now = self.clock()
            if now - (job.updated_at or job.created_at) > self.timeout:
                await self._fail(session, job, TIMED_OUT_ERROR)
                return JobStatus.from_job(job)

            if job.progress + self.progress_step >= 100:
                await self._complete(session, job)
            else:
                job.progress += self.progress_step
                job.updated_at = now

            return JobStatus.from_job(job)

    async def _resolve_provider(self, session: AsyncSession, user_id: str) -> Optional[str]:
        result = await session.execute(select(User.primary_provider).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def _complete(self, session: AsyncSession, job: SyncJob) -> None:
        try:
            job.provider = await self._resolve_provider(session, job.user_id)
            activities = self.generator.generate(job.provider)
            new_balance = await self.ledger.credit(
                session, job.user_id, activities, job_id=job.job_id
            )
        except Exception as e:
            logger.error(f"Sync job {job.job_id} failed while completing: {e}")
            await session.rollback()
            await self._fail(session, job, str(e))
            return

        job.result = SyncResult(
            fitcoin_delta=round(sum(a.fitcoin for a in activities), 2),
            new_balance=new_balance,
            generated_activities=activities,
        )
        job.progress = 100
        job.status = JobState.COMPLETED
        job.updated_at = self.clock()
        self.cooldown.arm(job.user_id)

        logger.info(
            f"Sync job {job.job_id} completed: +{job.result.fitcoin_delta} FIT "
            f"for {job.user_id} (balance {job.result.new_balance})"
        )
        await self._log(session, job)

    async def _fail(self, session: AsyncSession, job: SyncJob, error: str) -> None:
        job.status = JobState.FAILED
        job.error = error
        job.updated_at = self.clock()
        logger.error(f"Sync job {job.job_id} for {job.user_id} failed: {error}")
        await self._log(session, job)

    async def _log(self, session: AsyncSession, job: SyncJob) -> None:
        """Record the finished job. The job's outcome stands even if this write fails."""
        details = None
        if job.result is not None:
            details = {"activities": [a.to_dict() for a in job.result.generated_activities]}

        session.add(SyncLog(
            job_id=job.job_id,
            user_id=job.user_id,
            provider=job.provider,
            status=job.status.value,
            fitcoin_delta=job.result.fitcoin_delta if job.result else None,
            activity_count=len(job.result.generated_activities) if job.result else None,
            started_at=job.created_at,
            completed_at=job.updated_at,
            details=details,
            error_message=job.error,
        ))
        try:
            await session.commit()
        except Exception as e:
            logger.error(f"Failed to write sync log for {job.job_id}: {e}")
            await session.rollback()

    async def expire_stale_jobs(self, session: AsyncSession) -> dict[str, int]:
        """Fail idle RUNNING jobs and evict old terminal ones."""
        now = self.clock()
        timed_out = 0
        for job in self.store.running():
            if now - (job.updated_at or job.created_at) > self.timeout:
                async with job.lock:
                    if not job.is_terminal:
                        await self._fail(session, job, TIMED_OUT_ERROR)
                        timed_out += 1

        evicted = self.store.remove_terminal_before(now - self.retention)
        if timed_out or evicted:
            logger.info(f"Job sweep: {timed_out} timed out, {evicted} evicted")
        return {"timed_out": timed_out, "evicted": evicted}

    async def sync_history(self, session: AsyncSession, user_id: str, limit: int = 20) -> list[SyncLog]:
        """Most recent finished sync jobs for a user, newest first."""
        result = await session.execute(
            select(SyncLog)
            .where(SyncLog.user_id == user_id)
            .order_by(desc(SyncLog.completed_at), desc(SyncLog.id))
            .limit(limit)
        )
        return list(result.scalars().all())


@lru_cache()
def get_sync_service() -> SyncJobService:
    """Process-wide sync job service configured from settings."""
    settings = get_settings()
    return SyncJobService(
        store=SyncJobStore(max_jobs=settings.max_jobs),
        generator=ActivityGenerator(get_catalog()),
        ledger=get_ledger(),
        cooldown=CooldownGate(settings.sync_cooldown_seconds),
        progress_step=settings.job_progress_step,
        timeout_seconds=settings.job_timeout_seconds,
        retention_seconds=settings.job_retention_seconds,
    )
