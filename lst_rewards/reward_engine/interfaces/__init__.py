"""Core interfaces for the reward pipeline."""

from .reward_source import RewardSource

__all__ = [
    "RewardSource",
]
