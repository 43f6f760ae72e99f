"""Accrual ledger - owns every wallet mutation.

A wallet is read, changed and committed as one unit. Checks always run
before any field is written, so a rejected redeem or stake leaves the
wallet untouched.
"""

import asyncio
import logging
import random
import weakref
from dataclasses import dataclass, field
from datetime import date, timedelta
from functools import lru_cache
from typing import Callable, Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_today
from app.core.config import get_settings
from app.models.database import DailyFitcoin, Wallet, WalletActivity

logger = logging.getLogger(__name__)


class InsufficientFundsError(Exception):
    """Raised when a redeem or stake exceeds the available balance."""

    def __init__(self, user_id: str, requested: float, balance: float):
        self.user_id = user_id
        self.requested = requested
        self.balance = balance
        super().__init__(
            f"Insufficient funds for {user_id}: requested {requested}, balance {balance}"
        )


@dataclass
class ActivityEntry:
    title: str
    fitcoin: float
    metric: str
    icon: str


@dataclass
class TodayBucket:
    date: date
    fitcoin_earned: float
    activities: list[ActivityEntry] = field(default_factory=list)


@dataclass
class DailyFitcoinEntry:
    date: date
    fitcoin_earned: float


@dataclass
class WalletSummary:
    """Read model of a wallet as clients see it."""
    user_id: str
    balance: float
    staked_amount: float
    today: TodayBucket
    last_7_days: list[DailyFitcoinEntry]
    daily_cap: float
    daily_cap_remaining: float
    daily_cap_reached: bool


class AccrualLedger:
    """Balance, stake, day bucket and rolling history for each user."""

    def __init__(
        self,
        initial_grant: float = 3.0,
        history_days: int = 7,
        history_seed_range: tuple[int, int] = (5, 49),
        daily_cap: float = 50.0,
        today_fn: Callable[[], date] = date.today,
        rng: Optional[random.Random] = None,
    ):
        self.initial_grant = initial_grant
        self.history_days = history_days
        self.history_seed_range = history_seed_range
        self.daily_cap = daily_cap
        self.today_fn = today_fn
        self.rng = rng or random.Random()
        # Entries drop out once no coroutine holds or awaits the lock
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def _window_start(self, today: date) -> date:
        return today - timedelta(days=self.history_days - 1)

    async def _load_wallet(self, session: AsyncSession, user_id: str) -> Optional[Wallet]:
        result = await session.execute(select(Wallet).where(Wallet.user_id == user_id))
        return result.scalar_one_or_none()

    async def _get_or_create_wallet(self, session: AsyncSession, user_id: str) -> Wallet:
        """Load the wallet, creating and committing a fresh one if missing."""
        wallet = await self._load_wallet(session, user_id)
        if wallet is not None:
            return wallet

        today = self.today_fn()
        wallet = Wallet(
            user_id=user_id,
            balance=self.initial_grant,
            staked_amount=0.0,
            today_date=today,
            today_fitcoin_earned=0.0,
        )
        session.add(wallet)

        # Past days get plausible seed amounts, today starts empty
        low, high = self.history_seed_range
        for offset in range(self.history_days - 1, 0, -1):
            session.add(DailyFitcoin(
                user_id=user_id,
                date=today - timedelta(days=offset),
                fitcoin_earned=float(self.rng.randint(low, high)),
            ))
        session.add(DailyFitcoin(user_id=user_id, date=today, fitcoin_earned=0.0))

        try:
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(f"Created wallet for {user_id} with initial grant {self.initial_grant}")
        return wallet

    async def _summarize(self, session: AsyncSession, wallet: Wallet) -> WalletSummary:
        today = self.today_fn()

        activities_result = await session.execute(
            select(WalletActivity)
            .where(
                WalletActivity.user_id == wallet.user_id,
                WalletActivity.date == wallet.today_date,
            )
            .order_by(WalletActivity.id)
        )
        activities = [
            ActivityEntry(title=a.title, fitcoin=a.fitcoin, metric=a.metric, icon=a.icon)
            for a in activities_result.scalars().all()
        ]

        window_start = self._window_start(today)
        history_result = await session.execute(
            select(DailyFitcoin).where(
                DailyFitcoin.user_id == wallet.user_id,
                DailyFitcoin.date >= window_start,
                DailyFitcoin.date <= today,
            )
        )
        earned_by_date = {row.date: row.fitcoin_earned for row in history_result.scalars().all()}
        last_days = [
            DailyFitcoinEntry(date=day, fitcoin_earned=earned_by_date.get(day, 0.0))
            for day in (window_start + timedelta(days=i) for i in range(self.history_days))
        ]

        earned_today = wallet.today_fitcoin_earned if wallet.today_date == today else 0.0
        cap_remaining = round(max(0.0, self.daily_cap - earned_today), 2)

        return WalletSummary(
            user_id=wallet.user_id,
            balance=wallet.balance,
            staked_amount=wallet.staked_amount,
            today=TodayBucket(
                date=wallet.today_date,
                fitcoin_earned=wallet.today_fitcoin_earned,
                activities=activities,
            ),
            last_7_days=last_days,
            daily_cap=self.daily_cap,
            daily_cap_remaining=cap_remaining,
            daily_cap_reached=cap_remaining <= 0,
        )

    async def get_or_create(self, session: AsyncSession, user_id: str) -> WalletSummary:
        """Return the user's wallet, creating it with the initial grant if needed."""
        async with self._lock_for(user_id):
            wallet = await self._get_or_create_wallet(session, user_id)
            return await self._summarize(session, wallet)

    async def snapshot(self, session: AsyncSession, user_id: str) -> Optional[WalletSummary]:
        """Read-only view of a wallet. None when the user has no wallet yet."""
        wallet = await self._load_wallet(session, user_id)
        if wallet is None:
            return None
        return await self._summarize(session, wallet)

    async def _credit(
        self,
        session: AsyncSession,
        user_id: str,
        activities: list,
        job_id: Optional[str],
    ) -> Wallet:
        """Apply and commit a credit. Caller holds the user's lock."""
        delta = round(sum(a.fitcoin for a in activities), 2)
        wallet = await self._get_or_create_wallet(session, user_id)
        today = self.today_fn()

        try:
            if wallet.today_date != today:
                logger.info(f"Day rollover for {user_id}: {wallet.today_date} -> {today}")
                wallet.today_date = today
                wallet.today_fitcoin_earned = 0.0

            for activity in activities:
                session.add(WalletActivity(
                    user_id=user_id,
                    date=today,
                    title=activity.title,
                    fitcoin=activity.fitcoin,
                    metric=activity.metric,
                    icon=activity.icon,
                    metric_key=getattr(activity, "metric_key", None),
                    job_id=job_id,
                ))

            wallet.today_fitcoin_earned = round(wallet.today_fitcoin_earned + delta, 2)
            wallet.balance = round(wallet.balance + delta, 2)

            history_result = await session.execute(
                select(DailyFitcoin).where(
                    DailyFitcoin.user_id == user_id,
                    DailyFitcoin.date == today,
                )
            )
            history_row = history_result.scalar_one_or_none()
            if history_row is None:
                session.add(DailyFitcoin(user_id=user_id, date=today, fitcoin_earned=delta))
            else:
                history_row.fitcoin_earned = round(history_row.fitcoin_earned + delta, 2)

            # Oldest days fall out of the window
            await session.execute(
                delete(DailyFitcoin).where(
                    DailyFitcoin.user_id == user_id,
                    DailyFitcoin.date < self._window_start(today),
                )
            )

            await session.commit()
        except Exception:
            await session.rollback()
            raise

        logger.info(
            f"Credited {delta} FIT to {user_id} from {len(activities)} activities "
            f"(balance {wallet.balance})"
        )
        return wallet

    async def credit(
        self,
        session: AsyncSession,
        user_id: str,
        activities: Iterable,
        job_id: Optional[str] = None,
    ) -> float:
        """
        Credit a sync's activities and return the new balance.

        The credit is committed once this returns; nothing is read back
        afterwards, so a caller can treat a return as "credited".
        """
        async with self._lock_for(user_id):
            wallet = await self._credit(session, user_id, list(activities), job_id)
            return wallet.balance

    async def apply_sync_result(
        self,
        session: AsyncSession,
        user_id: str,
        activities: Iterable,
        job_id: Optional[str] = None,
    ) -> WalletSummary:
        """
        Credit a sync's activities to the wallet.

        Resets the day bucket first if it belongs to an earlier day, then
        appends the activities and adds their total to today's earnings,
        the balance and today's history entry.
        """
        async with self._lock_for(user_id):
            wallet = await self._credit(session, user_id, list(activities), job_id)
            return await self._summarize(session, wallet)

    async def redeem(self, session: AsyncSession, user_id: str, cost: float) -> WalletSummary:
        """Spend Fitcoin on a reward."""
        if cost <= 0:
            raise ValueError(f"Redeem cost must be positive, got {cost}")

        async with self._lock_for(user_id):
            wallet = await self._get_or_create_wallet(session, user_id)
            if wallet.balance < cost:
                logger.warning(f"Redeem of {cost} rejected for {user_id}: balance {wallet.balance}")
                raise InsufficientFundsError(user_id, cost, wallet.balance)

            try:
                wallet.balance = round(wallet.balance - cost, 2)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

            logger.info(f"{user_id} redeemed {cost} FIT (balance {wallet.balance})")
            return await self._summarize(session, wallet)

    async def stake(self, session: AsyncSession, user_id: str, amount: float) -> WalletSummary:
        """Move Fitcoin from the balance into savings."""
        if amount <= 0:
            raise ValueError(f"Stake amount must be positive, got {amount}")

        async with self._lock_for(user_id):
            wallet = await self._get_or_create_wallet(session, user_id)
            if wallet.balance < amount:
                logger.warning(f"Stake of {amount} rejected for {user_id}: balance {wallet.balance}")
                raise InsufficientFundsError(user_id, amount, wallet.balance)

            try:
                wallet.balance = round(wallet.balance - amount, 2)
                wallet.staked_amount = round(wallet.staked_amount + amount, 2)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

            logger.info(f"{user_id} staked {amount} FIT (staked {wallet.staked_amount})")
            return await self._summarize(session, wallet)


@lru_cache()
def get_ledger() -> AccrualLedger:
    """Process-wide ledger configured from settings."""
    settings = get_settings()
    return AccrualLedger(
        initial_grant=settings.initial_grant,
        history_days=settings.history_days,
        history_seed_range=(settings.history_seed_min, settings.history_seed_max),
        daily_cap=settings.daily_earning_cap,
        today_fn=lambda: local_today(settings.tz),
    )
