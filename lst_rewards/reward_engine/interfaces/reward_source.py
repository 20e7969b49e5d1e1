"""Abstract interface for block-reward data providers."""

from abc import ABC, abstractmethod

from solders.pubkey import Pubkey

from ..models.reward_record import RewardSourceKind


class RewardSource(ABC):
    """
    Interface that every reward data provider must implement.

    Providers return the raw block-reward total in lamports for a
    (validator identity, epoch) pair so the calculator stays source-agnostic.
    """

    @abstractmethod
    def source_kind(self) -> RewardSourceKind:
        """Kind recorded on the RewardRecord this source produces."""
        pass

    @abstractmethod
    def fetch_total_rewards(self, validator_identity: Pubkey, epoch: int) -> int:
        """
        Fetch the block-reward total for ``validator_identity`` in ``epoch``.

        Returns:
            Total lamports credited; 0 when the validator produced no blocks.

        Raises:
            RewardsError: Source-specific failures (EpochNotFinalized,
                QueryTimeout, QueryExecutionFailed, AmbiguousResult, ...)
        """
        pass
