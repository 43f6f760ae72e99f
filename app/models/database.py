from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Float,
    Index,
    UniqueConstraint,
)
from app.core.database import Base


class User(Base):
    """Registered identity. Only user_id and primary_provider matter to accrual."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True)
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    primary_provider = Column(String, nullable=False)
    persona_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Wallet(Base):
    """Per-user wallet: balance, stake and the current day bucket."""

    __tablename__ = "wallets"

    user_id = Column(String, primary_key=True)
    balance = Column(Float, nullable=False, default=0.0)
    staked_amount = Column(Float, nullable=False, default=0.0)
    today_date = Column(Date, nullable=False)
    today_fitcoin_earned = Column(Float, nullable=False, default=0.0)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Optimistic concurrency token, bumped on every UPDATE
    __mapper_args__ = {"version_id_col": version}


class WalletActivity(Base):
    """Generated activity credited to a wallet on a given day."""

    __tablename__ = "wallet_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    title = Column(String, nullable=False)
    fitcoin = Column(Float, nullable=False)
    metric = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    metric_key = Column(String, nullable=True)
    job_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_wallet_activities_user_date", "user_id", "date"),)


class DailyFitcoin(Base):
    """Fitcoin earned by a user on one calendar day (rolling history)."""

    __tablename__ = "daily_fitcoin"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    fitcoin_earned = Column(Float, nullable=False, default=0.0)

    __table_args__ = (UniqueConstraint("user_id", "date", name="uix_daily_fitcoin_user_date"),)
