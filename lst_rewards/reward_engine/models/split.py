"""Data models for the two-stage reward split."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SplitParameters:
    """Percentages supplied per transfer; never persisted."""
    total_rewards_pct: float  # share of block rewards attributed to the stake pool
    lst_rewards_pct: float    # share of the stake pool portion passed to LST holders


@dataclass(frozen=True)
class SplitResult:
    """Outcome of applying a SplitParameters to a reward total."""
    total_reward_lamports: int
    total_rewards_pct: float
    lst_rewards_pct: float
    stake_pool_rewards: int
    transfer_amount: int
