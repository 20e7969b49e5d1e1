"""Computes and persists block-reward records."""

from datetime import datetime, timezone
from typing import Optional

import bittensor as bt
from solders.pubkey import Pubkey

from ..models.reward_record import RewardRecord, RewardSourceKind
from ..utils.reward_store import RewardRecordStore
from .source_registry import SourceRegistry
from lst_rewards.utils.error_handling import AmountOverflow, InputValidationError
from lst_rewards.utils.keys import short_key

U64_MAX = 2**64 - 1


class RewardCalculator:
    """Fetches a reward total from a source and stores it as the authoritative record."""

    def __init__(self, registry: SourceRegistry, store: Optional[RewardRecordStore] = None, events_logger=None):
        self.registry = registry
        self.store = store or RewardRecordStore()
        self.events_logger = events_logger

    def load_existing(self, validator_identity: Pubkey, epoch: int) -> Optional[RewardRecord]:
        """Previously computed record for this key, if any."""
        if not self.store.exists(validator_identity, epoch):
            return None
        return self.store.load(validator_identity, epoch)

    def calculate(self, kind: RewardSourceKind, validator_identity: Pubkey, epoch: int) -> RewardRecord:
        """
        Compute the reward total for ``(validator_identity, epoch)`` and save it.

        A record that already exists for the same key is overwritten.

        Raises:
            InputValidationError: If no source of ``kind`` is registered
            RewardsError: Whatever the source raises; nothing is written then
        """
        source = self.registry.get_source(kind)
        if source is None:
            raise InputValidationError(f"No reward source registered for '{kind.value}'")

        if epoch < 0:
            raise InputValidationError(f"Epoch must be non-negative, got {epoch}")

        bt.logging.info(f"Calculating block rewards for {short_key(validator_identity)} "
                        f"in epoch {epoch} using {kind.value} source")

        total = int(source.fetch_total_rewards(validator_identity, epoch))
        if total < 0 or total > U64_MAX:
            raise AmountOverflow(
                f"Reward total {total} is outside the lamport range",
                identity=str(validator_identity),
                epoch=epoch,
            )

        record = RewardRecord(
            validator_identity=validator_identity,
            epoch=epoch,
            total_reward_lamports=total,
            source=kind,
            computed_at=datetime.now(timezone.utc),
        )
        path = self.store.save(record)

        bt.logging.info(f"Saved rewards to {path}")
        if self.events_logger is not None:
            self.events_logger.event(
                f"calculate identity={validator_identity} epoch={epoch} "
                f"total_block_rewards={total} source={kind.value}"
            )
        return record
