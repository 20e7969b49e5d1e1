"""Data models for reward transfers into a stake pool reserve."""

from dataclasses import dataclass, field
from typing import List, Optional

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from .reward_record import RewardRecord
from .split import SplitResult


@dataclass(frozen=True)
class StakePoolAccounts:
    """Accounts of an SPL stake pool needed to update its balance."""
    program_id: Pubkey
    stake_pool: Pubkey
    withdraw_authority: Pubkey
    validator_list: Pubkey
    reserve_stake: Pubkey
    pool_mint: Pubkey
    manager_fee_account: Pubkey
    token_program: Pubkey


@dataclass
class TransferPlan:
    """Everything decided before a transfer is signed and submitted."""
    record: RewardRecord
    split: SplitResult
    payer: Pubkey
    stake_pool: StakePoolAccounts
    instructions: List[Instruction] = field(default_factory=list)
    payer_balance: Optional[int] = None

    @property
    def transfer_amount(self) -> int:
        return self.split.transfer_amount


@dataclass(frozen=True)
class TransferOutcome:
    """Result reported to the operator after a transfer run."""
    amount_transferred: int
    transaction_signature: Optional[str]
    stake_pool_pubkey: Pubkey
    send_mode: str = "send-actual"
    detail: Optional[str] = None  # simulation logs or dumped message
