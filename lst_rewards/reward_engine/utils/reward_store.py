"""
Persistence for computed reward records.

One JSON file per (validator identity, epoch) pair lets a transfer replay
the exact total that was calculated earlier without recomputing it.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import bittensor as bt
from solders.pubkey import Pubkey

from ..models.reward_record import RewardRecord
from lst_rewards.utils.config import REWARDS_DIR
from lst_rewards.utils.error_handling import RecordCorrupted, RecordNotFound


class RewardRecordStore:
    """Reads and writes RewardRecords under a local directory."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self.base_dir = Path(base_dir).expanduser() if base_dir else REWARDS_DIR

    def path_for(self, validator_identity: Pubkey, epoch: int) -> Path:
        return self.base_dir / f"rewards_{validator_identity}_{epoch}.json"

    def exists(self, validator_identity: Pubkey, epoch: int) -> bool:
        return self.path_for(validator_identity, epoch).is_file()

    def save(self, record: RewardRecord) -> Path:
        """
        Save a record, fully replacing any earlier record for the same key.

        The file is written to a temporary sibling first and moved into place,
        so a crash never leaves a half-written record behind.

        Returns:
            Path of the written record
        """
        output_file = self.path_for(record.validator_identity, record.epoch)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=output_file.parent, prefix=".rewards_", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(record.to_dict(), f, indent=2)
            os.replace(tmp_path, output_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        bt.logging.debug(f"Saved reward record to {output_file}")
        return output_file

    def load(self, validator_identity: Pubkey, epoch: int) -> RewardRecord:
        """
        Load the record for ``(validator_identity, epoch)``.

        Raises:
            RecordNotFound: If no record was calculated for this key
            RecordCorrupted: If the file cannot be parsed or belongs to another key
        """
        record_file = self.path_for(validator_identity, epoch)

        if not record_file.is_file():
            raise RecordNotFound(
                "No reward record found. Run a calculate command for this epoch first",
                identity=str(validator_identity),
                epoch=epoch,
                path=str(record_file),
            )

        bt.logging.debug(f"Loading reward record from: {record_file}")

        try:
            with open(record_file, 'r') as f:
                record = RewardRecord.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            raise RecordCorrupted(
                f"Invalid reward record file: {e}",
                path=str(record_file),
            ) from e

        if record.key != (str(validator_identity), epoch):
            raise RecordCorrupted(
                "Reward record belongs to a different identity or epoch",
                path=str(record_file),
                found_identity=str(record.validator_identity),
                found_epoch=record.epoch,
            )

        return record
