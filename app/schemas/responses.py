"""Pydantic request and response models for API endpoints."""

from datetime import datetime, date
from typing import Any
from pydantic import BaseModel, Field, model_validator


class ActivityResponse(BaseModel):
    """One credited activity."""
    title: str
    fitcoin: float
    metric: str  # e.g. "4,200 steps"
    icon: str

    class Config:
        from_attributes = True


class GeneratedActivityResponse(ActivityResponse):
    """Activity produced by a sync, with the reading it was converted from."""
    metric_key: str
    unit: str
    raw_value: float


class DailyFitcoinResponse(BaseModel):
    date: date
    fitcoin_earned: float

    class Config:
        from_attributes = True


class TodayResponse(BaseModel):
    date: date
    fitcoin_earned: float
    activities: list[ActivityResponse]

    class Config:
        from_attributes = True


class WalletSummaryResponse(BaseModel):
    """Wallet snapshot read by the wallet, chart and assistant screens."""
    user_id: str
    balance: float
    staked_amount: float
    today: TodayResponse
    last_7_days: list[DailyFitcoinResponse]
    daily_cap: float
    daily_cap_remaining: float
    daily_cap_reached: bool

    class Config:
        from_attributes = True


class RedeemRequest(BaseModel):
    """Redeem either a marketplace reward or a raw amount."""
    reward_id: str | None = None
    cost: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_one_target(self):
        if (self.reward_id is None) == (self.cost is None):
            raise ValueError("Provide exactly one of 'reward_id' or 'cost'")
        return self


class StakeRequest(BaseModel):
    amount: float = Field(gt=0)


class SavingsTierResponse(BaseModel):
    name: str
    min_stake: float
    apy: float

    class Config:
        from_attributes = True


class SavingsResponse(BaseModel):
    user_id: str
    staked_amount: float
    current_tier: SavingsTierResponse
    next_tier: SavingsTierResponse | None = None
    projected_annual_yield: float


class RewardResponse(BaseModel):
    id: str
    name: str
    category: str
    cost: float
    description: str
    icon: str

    class Config:
        from_attributes = True


class SyncStartResponse(BaseModel):
    job_id: str
    status: str
    poll_interval_seconds: float


class JobStatusResponse(BaseModel):
    """Job state as seen by the sync UI. Result fields are set once COMPLETED."""
    job_id: str
    status: str
    progress: int
    fitcoin_delta: float | None = None
    new_balance: float | None = None
    generated_activities: list[GeneratedActivityResponse] | None = None
    error: str | None = None


class CooldownResponse(BaseModel):
    user_id: str
    on_cooldown: bool
    remaining_seconds: int


class SyncLogResponse(BaseModel):
    job_id: str
    provider: str | None
    status: str
    fitcoin_delta: float | None
    activity_count: int | None
    started_at: datetime
    completed_at: datetime | None
    error_message: str | None
    details: dict[str, Any] | None = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    display_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    primary_provider: str = Field(min_length=1)
    persona_id: str | None = None


class UserResponse(BaseModel):
    user_id: str
    display_name: str
    email: str
    primary_provider: str
    persona_id: str | None
    created_at: datetime | None

    class Config:
        from_attributes = True


class MetricDefinitionResponse(BaseModel):
    key: str
    unit: str
    value_per_fitcoin: float

    class Config:
        from_attributes = True


class ProviderMetricsResponse(BaseModel):
    provider: str
    uses_fallback: bool
    metrics: list[MetricDefinitionResponse]
