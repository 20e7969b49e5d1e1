from .source_registry import SourceRegistry
from .reward_calculation_service import RewardCalculator
from .split_policy import compute_split, compute_transfer_split, parse_percentage
from .transfer_service import TransferExecutor
from .endorsement_service import EndorsementSigner

__all__ = [
    "SourceRegistry",
    "RewardCalculator",
    "compute_split",
    "compute_transfer_split",
    "parse_percentage",
    "TransferExecutor",
    "EndorsementSigner",
]
