"""Wallet endpoints: balance, redemptions and staking."""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.responses import (
    RedeemRequest,
    SavingsResponse,
    SavingsTierResponse,
    StakeRequest,
    WalletSummaryResponse,
)
from app.services.ledger import AccrualLedger, InsufficientFundsError, get_ledger
from app.services.rewards import (
    UnknownRewardError,
    find_reward,
    next_tier,
    projected_annual_yield,
    tier_for_stake,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


@router.get("/{user_id}", response_model=WalletSummaryResponse)
async def get_wallet(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    ledger: AccrualLedger = Depends(get_ledger),
):
    """Get the wallet summary, creating the wallet on first access."""
    summary = await ledger.get_or_create(db, user_id)
    return WalletSummaryResponse.model_validate(summary)


@router.post("/{user_id}/redeem", response_model=WalletSummaryResponse)
async def redeem(
    user_id: str,
    body: RedeemRequest,
    db: AsyncSession = Depends(get_db),
    ledger: AccrualLedger = Depends(get_ledger),
):
    """Redeem a marketplace reward (by id) or an arbitrary cost."""
    if body.reward_id is not None:
        try:
            cost = find_reward(body.reward_id).cost
        except UnknownRewardError as e:
            raise HTTPException(status_code=404, detail=str(e))
    else:
        cost = body.cost

    try:
        summary = await ledger.redeem(db, user_id, cost)
    except InsufficientFundsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return WalletSummaryResponse.model_validate(summary)


@router.post("/{user_id}/stake", response_model=WalletSummaryResponse)
async def stake(
    user_id: str,
    body: StakeRequest,
    db: AsyncSession = Depends(get_db),
    ledger: AccrualLedger = Depends(get_ledger),
):
    """Stake Fitcoin into savings."""
    settings = get_settings()
    if body.amount < settings.min_stake_amount:
        raise HTTPException(
            status_code=422,
            detail=f"Minimum stake is {settings.min_stake_amount} FIT",
        )

    try:
        summary = await ledger.stake(db, user_id, body.amount)
    except InsufficientFundsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return WalletSummaryResponse.model_validate(summary)


@router.get("/{user_id}/savings", response_model=SavingsResponse)
async def get_savings(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    ledger: AccrualLedger = Depends(get_ledger),
):
    """Current savings tier and projected yield for the staked amount."""
    summary = await ledger.snapshot(db, user_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No wallet for {user_id}")
    staked = summary.staked_amount
    upcoming = next_tier(staked)

    return SavingsResponse(
        user_id=user_id,
        staked_amount=staked,
        current_tier=SavingsTierResponse.model_validate(tier_for_stake(staked)),
        next_tier=SavingsTierResponse.model_validate(upcoming) if upcoming else None,
        projected_annual_yield=projected_annual_yield(staked),
    )
