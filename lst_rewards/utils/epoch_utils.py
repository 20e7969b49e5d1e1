"""Epoch schedule arithmetic and epoch selection rules."""

from typing import Optional

from lst_rewards.reward_engine.models.epoch import EpochSchedule
from lst_rewards.utils.config import RECENT_EPOCH_WINDOW
from lst_rewards.utils.error_handling import EpochNotFinalized, InvalidEpoch

MINIMUM_SLOTS_PER_EPOCH = 32


def get_first_slot_of_epoch(epoch: int, epoch_schedule: EpochSchedule) -> int:
    """
    Absolute slot at which ``epoch`` starts.

    Warm-up epochs double in length from MINIMUM_SLOTS_PER_EPOCH until
    ``first_normal_epoch``; afterwards every epoch has ``slots_per_epoch`` slots.

    Examples:
        >>> schedule = EpochSchedule(432000, 432000, True, 14, 524256)
        >>> get_first_slot_of_epoch(15, schedule)
        956256
    """
    if epoch <= epoch_schedule.first_normal_epoch:
        return ((1 << epoch) - 1) * MINIMUM_SLOTS_PER_EPOCH
    return (
        (epoch - epoch_schedule.first_normal_epoch) * epoch_schedule.slots_per_epoch
        + epoch_schedule.first_normal_slot
    )


def validate_epoch(
    epoch: Optional[int],
    current_epoch: int,
    window: int = RECENT_EPOCH_WINDOW,
) -> int:
    """
    Check that ``epoch`` is one of the last ``window`` completed epochs.

    Args:
        epoch: Requested epoch, or None to pick the last completed epoch
        current_epoch: Epoch the cluster is currently in
        window: Number of completed epochs that may be selected

    Returns:
        The validated epoch

    Raises:
        EpochNotFinalized: If the epoch has not completed yet
        InvalidEpoch: If the epoch is negative or older than the window
    """
    if epoch is None:
        epoch = current_epoch - 1

    if epoch < 0:
        raise InvalidEpoch(f"Epoch must be non-negative, got {epoch}")

    if epoch >= current_epoch:
        raise EpochNotFinalized(
            f"Epoch must be one of the last completed epochs (less than {current_epoch})",
            epoch=epoch,
        )

    oldest = max(current_epoch - window, 0)
    if epoch < oldest:
        raise InvalidEpoch(
            f"Epoch must be one of the last {window} completed epochs "
            f"(epoch {oldest} to {current_epoch - 1})",
            epoch=epoch,
        )

    return epoch
