"""
SPL stake pool helpers.

Decodes the fixed-offset prefix of a stake pool account and builds the
instructions that move lamports into the pool reserve and refresh the
pool's balance accounting in the same transaction.
"""

import struct
from typing import List

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from lst_rewards.reward_engine.models.transfer import StakePoolAccounts
from lst_rewards.utils.error_handling import InvalidStakePool, log_and_raise_validation_error

STAKE_POOL_ACCOUNT_TYPE = 1
UPDATE_STAKE_POOL_BALANCE_IX = 7
WITHDRAW_AUTHORITY_SEED = b"withdraw"

# account_type u8, manager, staker, stake_deposit_authority, stake_withdraw_bump_seed u8,
# validator_list, reserve_stake, pool_mint, manager_fee_account, token_program_id
_STAKE_POOL_PREFIX = struct.Struct("<B32s32s32sB32s32s32s32s32s")


def find_withdraw_authority(stake_pool: Pubkey, program_id: Pubkey) -> Pubkey:
    authority, _bump = Pubkey.find_program_address(
        [bytes(stake_pool), WITHDRAW_AUTHORITY_SEED], program_id
    )
    return authority


def decode_stake_pool(stake_pool: Pubkey, program_id: Pubkey, data: bytes) -> StakePoolAccounts:
    """
    Decode the accounts referenced by a stake pool account.

    Raises:
        InvalidStakePool: If the data is not an initialized stake pool
    """
    if len(data) < _STAKE_POOL_PREFIX.size:
        raise InvalidStakePool(
            f"Account data too short for a stake pool ({len(data)} bytes)",
            stake_pool=str(stake_pool),
        )

    (
        account_type,
        _manager,
        _staker,
        _deposit_authority,
        _bump_seed,
        validator_list,
        reserve_stake,
        pool_mint,
        manager_fee_account,
        token_program,
    ) = _STAKE_POOL_PREFIX.unpack_from(data)

    if account_type != STAKE_POOL_ACCOUNT_TYPE:
        log_and_raise_validation_error(
            f"Account {stake_pool} is not a stake pool (account type {account_type})",
            data={"stake_pool": str(stake_pool), "owner": str(program_id)},
            error_cls=InvalidStakePool,
        )

    return StakePoolAccounts(
        program_id=program_id,
        stake_pool=stake_pool,
        withdraw_authority=find_withdraw_authority(stake_pool, program_id),
        validator_list=Pubkey.from_bytes(validator_list),
        reserve_stake=Pubkey.from_bytes(reserve_stake),
        pool_mint=Pubkey.from_bytes(pool_mint),
        manager_fee_account=Pubkey.from_bytes(manager_fee_account),
        token_program=Pubkey.from_bytes(token_program),
    )


def update_stake_pool_balance_ix(accounts: StakePoolAccounts) -> Instruction:
    return Instruction(
        accounts.program_id,
        bytes([UPDATE_STAKE_POOL_BALANCE_IX]),
        [
            AccountMeta(accounts.stake_pool, is_signer=False, is_writable=True),
            AccountMeta(accounts.withdraw_authority, is_signer=False, is_writable=False),
            AccountMeta(accounts.validator_list, is_signer=False, is_writable=True),
            AccountMeta(accounts.reserve_stake, is_signer=False, is_writable=False),
            AccountMeta(accounts.manager_fee_account, is_signer=False, is_writable=True),
            AccountMeta(accounts.pool_mint, is_signer=False, is_writable=True),
            AccountMeta(accounts.token_program, is_signer=False, is_writable=False),
        ],
    )


def transfer_to_reserve_ixs(payer: Pubkey, accounts: StakePoolAccounts, lamports: int) -> List[Instruction]:
    """Reserve transfer followed by the pool balance update."""
    return [
        transfer(TransferParams(from_pubkey=payer, to_pubkey=accounts.reserve_stake, lamports=lamports)),
        update_stake_pool_balance_ix(accounts),
    ]
