"""Two-stage percentage split of a block-reward total."""

import math
from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Union

from ..models.split import SplitParameters, SplitResult
from lst_rewards.utils.error_handling import AmountOverflow, InvalidPercentage, ZeroTransferAmount

U64_MAX = 2**64 - 1
HUNDRED = Decimal(100)


def parse_percentage(value: Union[str, float, int], name: str = "percentage") -> float:
    """
    Parse and range-check a percentage in [0, 100].

    Out-of-range values are rejected, never clamped.
    """
    try:
        pct = float(str(value).strip().rstrip("%"))
    except (TypeError, ValueError) as e:
        raise InvalidPercentage(f"{name} must be a number, got {value!r}") from e

    if math.isnan(pct) or math.isinf(pct) or pct < 0 or pct > 100:
        raise InvalidPercentage(f"{name} must be between 0 and 100, got {value!r}")
    return pct


def _apply_pct(amount: int, pct: float) -> int:
    with localcontext() as ctx:
        ctx.prec = 60
        share = Decimal(amount) * Decimal(str(pct)) / HUNDRED
        return int(share.to_integral_value(rounding=ROUND_DOWN))


def compute_split(total_reward_lamports: int, params: SplitParameters) -> SplitResult:
    """
    Compute how many lamports go to LST holders.

        considered      = total * total_rewards_pct / 100
        transfer_amount = considered * lst_rewards_pct / 100

    Each stage rounds down so the transfer never exceeds the earned total.

    Raises:
        InvalidPercentage: If either percentage is outside [0, 100]
        AmountOverflow: If the total is outside the u64 lamport range
    """
    total_pct = parse_percentage(params.total_rewards_pct, "total_rewards_pct")
    lst_pct = parse_percentage(params.lst_rewards_pct, "lst_rewards_pct")

    if isinstance(total_reward_lamports, bool) or not isinstance(total_reward_lamports, int):
        raise AmountOverflow(f"Reward total must be an integer lamport amount, got {total_reward_lamports!r}")
    if total_reward_lamports < 0 or total_reward_lamports > U64_MAX:
        raise AmountOverflow(f"Reward total {total_reward_lamports} is outside the lamport range")

    stake_pool_rewards = _apply_pct(total_reward_lamports, total_pct)
    transfer_amount = _apply_pct(stake_pool_rewards, lst_pct)

    return SplitResult(
        total_reward_lamports=total_reward_lamports,
        total_rewards_pct=total_pct,
        lst_rewards_pct=lst_pct,
        stake_pool_rewards=stake_pool_rewards,
        transfer_amount=transfer_amount,
    )


def compute_transfer_split(total_reward_lamports: int, params: SplitParameters) -> SplitResult:
    """
    Like :func:`compute_split`, but refuse a split that transfers nothing.

    Raises:
        ZeroTransferAmount: If the transfer amount rounds down to zero
    """
    split = compute_split(total_reward_lamports, params)
    if split.transfer_amount == 0:
        raise ZeroTransferAmount(
            "Computed transfer amount is 0 lamports; nothing to transfer",
            split=split,
            total_block_rewards=total_reward_lamports,
        )
    return split
