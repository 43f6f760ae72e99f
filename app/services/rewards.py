"""Marketplace rewards and savings tiers."""

from dataclasses import dataclass
from typing import Optional


class UnknownRewardError(Exception):
    """Raised when a reward id is not in the marketplace."""
    pass


@dataclass(frozen=True)
class Reward:
    id: str
    name: str
    category: str
    cost: float
    description: str
    icon: str


@dataclass(frozen=True)
class SavingsTier:
    name: str
    min_stake: float
    apy: float  # percent


REWARDS: tuple[Reward, ...] = (
    Reward("m4", "Healthy Smoothie Voucher", "Nutrition Partner", 5,
           "Redeem for one free smoothie at HealthyBites Cafe.", "GlassWater"),
    Reward("m5", "Online Yoga Class", "Wellness App", 10,
           "Access a premium online yoga session from ZenFlow.", "Flower"),
    Reward("m6", "Meditation App Trial", "Wellness App", 10,
           "Unlock a 1-month premium trial for the CalmMind app.", "Sparkles"),
    Reward("m7", "Protein Bar Pack", "Snack Company", 20,
           "Get a variety pack of 5 protein bars shipped to you.", "Cookie"),
    Reward("m8", "1-Week Gym Pass", "Fitness Center", 30,
           "Get a free 7-day pass to any partner gym.", "Dumbbell"),
    Reward("m3", "Personalized Meal Plan", "Health Provider", 800,
           "Get a 4-week custom nutrition plan.", "Apple"),
    Reward("m1", "Insurance Premium Waiver", "Insurance Company", 1500,
           "Waive one month of your yearly premium.", "Shield"),
    Reward("m2", "50% Wearable Discount", "Wearable Company", 5000,
           "Claim 50% off the latest smart device.", "Watch"),
)

# Ordered by min_stake ascending
SAVINGS_TIERS: tuple[SavingsTier, ...] = (
    SavingsTier("Bronze", 0, 5),
    SavingsTier("Silver", 1000, 8),
    SavingsTier("Gold", 5000, 12),
)


def find_reward(reward_id: str) -> Reward:
    for reward in REWARDS:
        if reward.id == reward_id:
            return reward
    raise UnknownRewardError(f"Unknown reward: {reward_id}")


def tier_for_stake(staked_amount: float) -> SavingsTier:
    """Highest tier whose minimum stake the amount reaches."""
    current = SAVINGS_TIERS[0]
    for tier in SAVINGS_TIERS:
        if staked_amount >= tier.min_stake:
            current = tier
    return current


def next_tier(staked_amount: float) -> Optional[SavingsTier]:
    """The next tier up, or None at the top tier."""
    for tier in SAVINGS_TIERS:
        if tier.min_stake > staked_amount:
            return tier
    return None


def projected_annual_yield(staked_amount: float) -> float:
    return round(staked_amount * tier_for_stake(staked_amount).apy / 100, 2)
