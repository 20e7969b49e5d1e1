"""Registry for managing reward sources."""

from typing import Dict, Optional
import bittensor as bt

from ..interfaces.reward_source import RewardSource
from ..models.reward_record import RewardSourceKind


class SourceRegistry:
    """Registry for managing and selecting reward sources by kind."""

    def __init__(self):
        self._sources: Dict[RewardSourceKind, RewardSource] = {}

    def register_source(self, source: RewardSource):
        """Register a reward source, replacing any source of the same kind."""
        if not isinstance(source, RewardSource):
            raise ValueError(f"Source must implement RewardSource, got {type(source)}")

        kind = source.source_kind()
        self._sources[kind] = source
        bt.logging.debug(f"Registered reward source: {kind.value}")

    def get_source(self, kind: RewardSourceKind) -> Optional[RewardSource]:
        return self._sources.get(kind)
