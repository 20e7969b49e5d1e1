"""Reward source that reads block rewards directly from the ledger over RPC."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Tuple

import bittensor as bt
from solders.pubkey import Pubkey

from lst_rewards.clients.solana_rpc_client import SolanaRpcClient
from lst_rewards.utils.config import RPC_MAX_WORKERS
from lst_rewards.utils.epoch_utils import get_first_slot_of_epoch
from lst_rewards.utils.error_handling import EpochNotFinalized, LeaderScheduleUnavailable
from lst_rewards.utils.keys import short_key

from .interfaces.reward_source import RewardSource
from .models.reward_record import RewardSourceKind


class LedgerRewardSource(RewardSource):
    """
    Sums the rewards credited to a validator identity in every block it
    produced during an epoch.

    Leader slots come from the epoch's leader schedule; each slot's block is
    fetched concurrently and skipped slots count as zero.
    """

    def __init__(self, rpc: SolanaRpcClient, max_workers: int = RPC_MAX_WORKERS):
        self.rpc = rpc
        self.max_workers = max(1, max_workers)
        self._leader_slots: Dict[Tuple[str, int], List[int]] = {}

    def source_kind(self) -> RewardSourceKind:
        return RewardSourceKind.DIRECT

    def ensure_epoch_finalized(self, epoch: int) -> None:
        current_epoch = self.rpc.get_epoch_info().epoch
        if epoch >= current_epoch:
            raise EpochNotFinalized(
                f"Epoch {epoch} has not completed yet (current epoch is {current_epoch})",
                epoch=epoch,
            )

    def get_leader_slots(self, validator_identity: Pubkey, epoch: int) -> List[int]:
        """Absolute slots in ``epoch`` where ``validator_identity`` was scheduled as leader."""
        cache_key = (str(validator_identity), epoch)
        if cache_key in self._leader_slots:
            return self._leader_slots[cache_key]

        epoch_schedule = self.rpc.get_epoch_schedule()
        epoch_first_slot = get_first_slot_of_epoch(epoch, epoch_schedule)

        schedule = self.rpc.get_leader_schedule(epoch_first_slot, validator_identity)
        if schedule is None:
            raise LeaderScheduleUnavailable(
                f"RPC has no leader schedule for epoch {epoch}",
                identity=str(validator_identity),
                epoch=epoch,
            )
        relative_slots = schedule.get(str(validator_identity), [])
        leader_slots = [epoch_first_slot + relative_slot for relative_slot in relative_slots]

        bt.logging.info(
            f"Found {len(leader_slots)} leader slots for {short_key(validator_identity)} in epoch {epoch}"
        )
        self._leader_slots[cache_key] = leader_slots
        return leader_slots

    def _rewards_for_slot(self, validator_identity: Pubkey, slot: int) -> int:
        rewards = self.rpc.get_block_rewards(slot)
        if rewards is None:
            return 0
        identity = str(validator_identity)
        return sum(
            int(reward.get("lamports", 0))
            for reward in rewards
            if reward.get("pubkey") == identity and int(reward.get("lamports", 0)) > 0
        )

    def get_total_block_rewards_for_slots(self, validator_identity: Pubkey, slots: List[int]) -> int:
        """Sum rewards across ``slots``; the first failing slot aborts the whole sum."""
        if not slots:
            return 0

        total_rewards = 0
        completed = 0
        report_every = max(1, len(slots) // 10)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(slots))) as executor:
            futures = {
                executor.submit(self._rewards_for_slot, validator_identity, slot): slot
                for slot in slots
            }
            try:
                for future in as_completed(futures):
                    total_rewards += future.result()
                    completed += 1
                    if completed % report_every == 0 or completed == len(slots):
                        bt.logging.info(f"Fetched block rewards for {completed}/{len(slots)} slots")
            except Exception:
                for pending in futures:
                    pending.cancel()
                bt.logging.error(f"Block reward fetch aborted after {completed}/{len(slots)} slots")
                raise

        return total_rewards

    def fetch_total_rewards(self, validator_identity: Pubkey, epoch: int) -> int:
        self.ensure_epoch_finalized(epoch)

        leader_slots = self.get_leader_slots(validator_identity, epoch)
        if not leader_slots:
            bt.logging.warning(
                f"No blocks produced by {short_key(validator_identity)} in epoch {epoch}; total is 0"
            )
            return 0

        return self.get_total_block_rewards_for_slots(validator_identity, leader_slots)
