"""Sync log model for tracking finished sync jobs."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON

from app.core.database import Base


class SyncLog(Base):
    """Log of sync jobs that reached a terminal state."""

    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(String, nullable=False, unique=True)
    user_id = Column(String, nullable=False, index=True)
    provider = Column(String, nullable=True)
    status = Column(String, nullable=False)  # "COMPLETED", "FAILED"
    fitcoin_delta = Column(Float, nullable=True)
    activity_count = Column(Integer, nullable=True)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    details = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
