"""Data models for cluster epoch state."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EpochSchedule:
    """Subset of ``getEpochSchedule`` needed to locate an epoch's slots."""
    slots_per_epoch: int
    leader_schedule_slot_offset: int
    warmup: bool
    first_normal_epoch: int
    first_normal_slot: int


@dataclass(frozen=True)
class EpochInfo:
    epoch: int
    slot_index: int
    slots_in_epoch: int
    absolute_slot: int
