"""Moves the LST share of a stored reward total into a stake pool reserve."""

from typing import Optional

import bittensor as bt
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..models.split import SplitParameters
from ..models.transfer import TransferOutcome, TransferPlan
from ..utils.reward_store import RewardRecordStore
from .split_policy import compute_transfer_split
from lst_rewards.chain.stake_pool import decode_stake_pool, transfer_to_reserve_ixs
from lst_rewards.chain.transaction import TransactionSender
from lst_rewards.clients.solana_rpc_client import SolanaRpcClient
from lst_rewards.utils.error_handling import InvalidStakePool, TransactionFailed
from lst_rewards.utils.keys import short_key


class TransferExecutor:
    """
    Plans and submits a reward transfer.

    The reserve transfer and the pool balance update go into one transaction,
    so a failed submission leaves no partial state and can be retried by the
    operator. Nothing is persisted about past transfers: running a transfer
    twice for the same epoch pays twice.
    """

    def __init__(
        self,
        rpc: SolanaRpcClient,
        sender: TransactionSender,
        store: Optional[RewardRecordStore] = None,
        events_logger=None,
    ):
        self.rpc = rpc
        self.sender = sender
        self.store = store or RewardRecordStore()
        self.events_logger = events_logger

    def plan(
        self,
        validator_identity: Pubkey,
        epoch: int,
        stake_pool: Pubkey,
        split_params: SplitParameters,
        payer: Pubkey,
    ) -> TransferPlan:
        """
        Load the record, apply the split and build the instructions.

        Raises:
            RecordNotFound: If no calculation was stored for this key
            ZeroTransferAmount: If the split rounds down to zero (no RPC calls made)
            InvalidStakePool: If ``stake_pool`` is not a stake pool account
        """
        record = self.store.load(validator_identity, epoch)
        split = compute_transfer_split(record.total_reward_lamports, split_params)

        bt.logging.info(
            f"Epoch {epoch}: {split.transfer_amount} of {record.total_reward_lamports} lamports "
            f"go to LST holders of pool {short_key(stake_pool)}"
        )

        account = self.rpc.get_account_info(stake_pool)
        if account is None:
            raise InvalidStakePool("Stake pool account does not exist", stake_pool=str(stake_pool))
        program_id, data = account
        pool_accounts = decode_stake_pool(stake_pool, program_id, data)

        return TransferPlan(
            record=record,
            split=split,
            payer=payer,
            stake_pool=pool_accounts,
            instructions=transfer_to_reserve_ixs(payer, pool_accounts, split.transfer_amount),
            payer_balance=self.rpc.get_balance(payer),
        )

    def submit(self, plan: TransferPlan, payer: Keypair) -> TransferOutcome:
        """Sign and submit a plan built by :meth:`plan`."""
        if payer.pubkey() != plan.payer:
            raise TransactionFailed("Payer keypair does not match the planned payer",
                                    expected=str(plan.payer), got=str(payer.pubkey()))

        instructions = self.sender.with_auto_compute_budget(plan.payer, plan.instructions)
        result = self.sender.submit(instructions, [payer])

        outcome = TransferOutcome(
            amount_transferred=plan.transfer_amount if result.signature else 0,
            transaction_signature=result.signature,
            stake_pool_pubkey=plan.stake_pool.stake_pool,
            send_mode=result.send_mode.value,
            detail=result.detail,
        )

        if result.signature and self.events_logger is not None:
            self.events_logger.event(
                f"transfer identity={plan.record.validator_identity} epoch={plan.record.epoch} "
                f"stake_pool={plan.stake_pool.stake_pool} lamports={plan.transfer_amount} "
                f"signature={result.signature}"
            )
        return outcome

    def execute(
        self,
        validator_identity: Pubkey,
        epoch: int,
        stake_pool: Pubkey,
        split_params: SplitParameters,
        payer: Keypair,
    ) -> TransferOutcome:
        """Plan and submit in one step."""
        plan = self.plan(validator_identity, epoch, stake_pool, split_params, payer.pubkey())
        return self.submit(plan, payer)
