"""Data model for a persisted reward computation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from solders.pubkey import Pubkey


class RewardSourceKind(Enum):
    """Data provider that produced a reward total."""
    DIRECT = "direct"
    ANALYTICS_QUERY = "analytics_query"


@dataclass(frozen=True)
class RewardRecord:
    """Block rewards earned by one validator identity over one epoch."""
    validator_identity: Pubkey
    epoch: int
    total_reward_lamports: int
    source: RewardSourceKind
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> tuple:
        return (str(self.validator_identity), self.epoch)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the record to a JSON-friendly dictionary."""
        return {
            "validator_identity": str(self.validator_identity),
            "epoch": self.epoch,
            "total_block_rewards": self.total_reward_lamports,
            "computed_at": self.computed_at.isoformat(),
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RewardRecord':
        """Rebuild a record from :meth:`to_dict` output; raises KeyError/ValueError on bad input."""
        total = data["total_block_rewards"]
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise ValueError(f"Invalid total_block_rewards: {total!r}")
        epoch = data["epoch"]
        if isinstance(epoch, bool) or not isinstance(epoch, int) or epoch < 0:
            raise ValueError(f"Invalid epoch: {epoch!r}")
        computed_at = datetime.fromisoformat(data["computed_at"])
        if computed_at.tzinfo is None:
            computed_at = computed_at.replace(tzinfo=timezone.utc)
        return cls(
            validator_identity=Pubkey.from_string(data["validator_identity"]),
            epoch=epoch,
            total_reward_lamports=total,
            source=RewardSourceKind(data["source"]),
            computed_at=computed_at,
        )
