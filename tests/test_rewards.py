"""Tests for marketplace rewards and savings tiers."""

import pytest

from app.services.rewards import (
    UnknownRewardError,
    find_reward,
    next_tier,
    projected_annual_yield,
    tier_for_stake,
)


class TestRewards:

    def test_find_reward(self):
        assert find_reward("m8").cost == 30

    def test_unknown_reward(self):
        with pytest.raises(UnknownRewardError):
            find_reward("m0")


class TestTiers:

    @pytest.mark.parametrize("staked, tier", [
        (0, "Bronze"),
        (999.99, "Bronze"),
        (1000, "Silver"),
        (4999, "Silver"),
        (5000, "Gold"),
        (100000, "Gold"),
    ])
    def test_tier_for_stake(self, staked, tier):
        assert tier_for_stake(staked).name == tier

    def test_next_tier(self):
        assert next_tier(0).name == "Silver"
        assert next_tier(1000).name == "Gold"
        assert next_tier(5000) is None

    def test_projected_yield(self):
        assert projected_annual_yield(2000) == pytest.approx(160)
        assert projected_annual_yield(0) == 0
