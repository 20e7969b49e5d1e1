"""Data models for the reward pipeline."""

from .reward_record import RewardRecord, RewardSourceKind
from .split import SplitParameters, SplitResult
from .transfer import StakePoolAccounts, TransferPlan, TransferOutcome
from .endorsement import EndorsementSignature
from .epoch import EpochSchedule, EpochInfo

__all__ = [
    "RewardRecord",
    "RewardSourceKind",
    "SplitParameters",
    "SplitResult",
    "StakePoolAccounts",
    "TransferPlan",
    "TransferOutcome",
    "EndorsementSignature",
    "EpochSchedule",
    "EpochInfo",
]
